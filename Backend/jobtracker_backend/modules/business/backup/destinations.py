import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from jobtracker_backend.config.global_constants import EXPORT_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


class ExportDestination:
    """Directory receiving timestamped CSV exports"""

    def __init__(
        self,
        directory: Path,
        file_prefix: str = 'job_tracker_export_',
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.directory = Path(directory)
        self.file_prefix = file_prefix
        self._clock = clock or datetime.now

    def new_file_name(self) -> str:
        return f"{self.file_prefix}{self._clock().strftime(EXPORT_TIMESTAMP_FORMAT)}.csv"

    def write(self, file_name: str, content: str) -> Path:
        """Write UTF-8 text to a file in the directory and return its path"""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / file_name
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        logger.info(f"Wrote export file: {path}")
        return path
