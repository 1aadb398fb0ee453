import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import List, Optional

from jobtracker_backend.config import default_data_dir
from jobtracker_backend.config.global_constants import STORAGE_SETTINGS, BackupType, BackupStatus
from jobtracker_backend.modules.models.storage import CloudBackup
from jobtracker_backend.modules.storage.csv_storage import CSVStorageService
from jobtracker_backend.modules.utils import block_base_methods, decode_dataclass

logger = logging.getLogger(__name__)


@block_base_methods
class BackupStorage(CSVStorageService):
    """Storage service for backup records"""

    def __init__(self, data_dir: Optional[Path] = None):
        data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        super().__init__(
            file_path=str(data_dir / STORAGE_SETTINGS['backups_file']),
            columns=[f.name for f in fields(CloudBackup)],
        )

    async def insert_backup(self, backup: CloudBackup) -> int:
        return await self.insert(asdict(backup))

    async def update_backup(self, backup: CloudBackup) -> bool:
        return await self.update(backup.id, asdict(backup))

    async def get_backup(self, backup_id: int) -> Optional[CloudBackup]:
        data = await self.get(backup_id)
        return decode_dataclass(CloudBackup, data) if data else None

    async def get_all_backups(self) -> List[CloudBackup]:
        """Backup records, newest first"""
        rows = await self.get_all()
        backups = [decode_dataclass(CloudBackup, row) for row in rows]
        return sorted(backups, key=lambda b: b.backup_timestamp, reverse=True)

    async def get_backups_by_type(self, backup_type: BackupType) -> List[CloudBackup]:
        rows = await self.query({'backup_type': backup_type})
        backups = [decode_dataclass(CloudBackup, row) for row in rows]
        return sorted(backups, key=lambda b: b.backup_timestamp, reverse=True)

    async def get_last_successful_backup(self) -> Optional[CloudBackup]:
        rows = await self.query({'backup_status': BackupStatus.COMPLETED})
        backups = [decode_dataclass(CloudBackup, row) for row in rows]
        return max(backups, key=lambda b: b.backup_timestamp, default=None)

    async def delete_backup(self, backup_id: int) -> None:
        await self.delete(backup_id)

    async def delete_all_backups(self) -> None:
        await self.delete_all()
