import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import List, Optional

from jobtracker_backend.config import default_data_dir
from jobtracker_backend.config.global_constants import STORAGE_SETTINGS
from jobtracker_backend.modules.models.storage import StatusHistory
from jobtracker_backend.modules.storage.csv_storage import CSVStorageService
from jobtracker_backend.modules.utils import block_base_methods, decode_dataclass

logger = logging.getLogger(__name__)


@block_base_methods
class StatusHistoryStorage(CSVStorageService):
    """Append-only log of status transitions"""

    def __init__(self, data_dir: Optional[Path] = None):
        data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        super().__init__(
            file_path=str(data_dir / STORAGE_SETTINGS['status_history_file']),
            columns=[f.name for f in fields(StatusHistory)],
        )

    async def add_entry(self, entry: StatusHistory) -> int:
        """Append a status transition and return its ID"""
        return await self.insert(asdict(entry))

    async def get_history(self, application_id: int) -> List[StatusHistory]:
        """Transitions of one application, oldest status date first"""
        rows = await self.query({'application_id': application_id})
        entries = [decode_dataclass(StatusHistory, row) for row in rows]
        return sorted(entries, key=lambda e: e.status_date)

    async def get_all_history(self) -> List[StatusHistory]:
        """Every transition, most recently recorded first"""
        rows = await self.get_all()
        entries = [decode_dataclass(StatusHistory, row) for row in rows]
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    async def get_history_by_date_range(self, start_date: int, end_date: int) -> List[StatusHistory]:
        entries = await self.get_all_history()
        return sorted(
            (e for e in entries if start_date <= e.status_date <= end_date),
            key=lambda e: e.status_date
        )

    async def delete_for_application(self, application_id: int) -> int:
        removed = await self.delete_matching({'application_id': application_id})
        if removed:
            logger.debug(f"Removed {removed} status history rows of application {application_id}")
        return removed

    async def delete_all_history(self) -> None:
        await self.delete_all()
