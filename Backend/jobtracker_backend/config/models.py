"""
Configuration models for the tracker.
These dataclasses match the structure of YAML config files and their usage in the code.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TrackerSettingsModel:
    # Undo window after a delete, in milliseconds
    undo_timeout_ms: int = 5000

    # Dashboard sizes
    recent_applications_limit: int = 5
    top_companies_limit: int = 5

    # CSV export
    export_date_format: str = '%Y-%m-%d'
    export_file_prefix: str = 'job_tracker_export_'

    # Storage locations, empty means the platform default
    data_dir: str = ''
    export_dir: str = ''
