import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import List, Optional

from jobtracker_backend.config import default_data_dir
from jobtracker_backend.config.global_constants import STORAGE_SETTINGS
from jobtracker_backend.modules.models.storage import Communication
from jobtracker_backend.modules.storage.csv_storage import CSVStorageService
from jobtracker_backend.modules.utils import block_base_methods, decode_dataclass

logger = logging.getLogger(__name__)


@block_base_methods
class CommunicationStorage(CSVStorageService):
    """Storage service for recruiter communications"""

    def __init__(self, data_dir: Optional[Path] = None):
        data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        super().__init__(
            file_path=str(data_dir / STORAGE_SETTINGS['communications_file']),
            columns=[f.name for f in fields(Communication)],
        )

    async def add_communication(self, communication: Communication) -> int:
        return await self.insert(asdict(communication))

    async def update_communication(self, communication: Communication) -> bool:
        return await self.update(communication.id, asdict(communication))

    async def get_communication(self, communication_id: int) -> Optional[Communication]:
        data = await self.get(communication_id)
        return decode_dataclass(Communication, data) if data else None

    async def get_communications(self, application_id: int) -> List[Communication]:
        """Communications of one application, newest first"""
        rows = await self.query({'application_id': application_id})
        entries = [decode_dataclass(Communication, row) for row in rows]
        return sorted(entries, key=lambda c: c.communication_date or 0, reverse=True)

    async def get_all_communications(self) -> List[Communication]:
        rows = await self.get_all()
        return [decode_dataclass(Communication, row) for row in rows]

    async def delete_communication(self, communication_id: int) -> None:
        await self.delete(communication_id)

    async def delete_for_application(self, application_id: int) -> int:
        return await self.delete_matching({'application_id': application_id})

    async def delete_all_communications(self) -> None:
        await self.delete_all()
