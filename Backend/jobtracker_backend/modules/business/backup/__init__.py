"""CSV export, import and backup bookkeeping."""

from jobtracker_backend.modules.business.backup.backup_service import BackupService
from jobtracker_backend.modules.business.backup.csv_codec import (
    adecode_lines, decode_csv, decode_lines, encode_applications, iter_text_lines
)
from jobtracker_backend.modules.business.backup.destinations import ExportDestination

__all__ = [
    'BackupService',
    'ExportDestination',
    'adecode_lines',
    'decode_csv',
    'decode_lines',
    'encode_applications',
    'iter_text_lines',
]
