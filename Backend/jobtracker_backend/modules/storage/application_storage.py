import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Dict, List, Optional

from jobtracker_backend.config import default_data_dir
from jobtracker_backend.config.global_constants import STORAGE_SETTINGS
from jobtracker_backend.modules.models.storage import JobApplication, SalaryRange
from jobtracker_backend.modules.storage.communication_storage import CommunicationStorage
from jobtracker_backend.modules.storage.csv_storage import CSVStorageService
from jobtracker_backend.modules.storage.status_history_storage import StatusHistoryStorage
from jobtracker_backend.modules.utils import block_base_methods, decode_dataclass

logger = logging.getLogger(__name__)

# salary_range is stored flattened into two columns
APPLICATION_COLUMNS = [
    f.name for f in fields(JobApplication) if f.name != 'salary_range'
] + ['salary_min', 'salary_max']


def application_to_row(application: JobApplication) -> Dict:
    row = asdict(application)
    salary = row.pop('salary_range') or {}
    row['salary_min'] = salary.get('min')
    row['salary_max'] = salary.get('max')
    return row


def row_to_application(row: Dict) -> JobApplication:
    salary_min = row.get('salary_min') or None
    salary_max = row.get('salary_max') or None
    application = decode_dataclass(JobApplication, row)
    if salary_min is not None or salary_max is not None:
        application.salary_range = SalaryRange(
            min=int(salary_min) if salary_min is not None else None,
            max=int(salary_max) if salary_max is not None else None,
        )
    return application


@block_base_methods
class ApplicationStorage(CSVStorageService):
    """Storage service for job applications. Deleting an application removes its history and communications."""

    def __init__(
        self,
        status_history: StatusHistoryStorage,
        communications: CommunicationStorage,
        data_dir: Optional[Path] = None
    ):
        data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        super().__init__(
            file_path=str(data_dir / STORAGE_SETTINGS['applications_file']),
            columns=APPLICATION_COLUMNS,
        )
        self._status_history = status_history
        self._communications = communications

    async def get_application(self, application_id: int) -> Optional[JobApplication]:
        """Get an application by ID"""
        data = await self.get(application_id)
        return row_to_application(data) if data else None

    async def get_all_applications(self) -> List[JobApplication]:
        """All applications, most recently updated first"""
        rows = await self.get_all()
        applications = [row_to_application(row) for row in rows]
        return sorted(applications, key=lambda app: app.updated_timestamp, reverse=True)

    async def insert_application(self, application: JobApplication) -> int:
        """Insert an application and return its ID. A non-zero ID replaces any row with that ID."""
        application_id = await self.insert(application_to_row(application))
        logger.debug(f"Inserted application {application_id}: {application.company_name} / {application.job_title}")
        return application_id

    async def update_application(self, application: JobApplication) -> bool:
        """Update an existing application, returning False when it does not exist"""
        return await self.update(application.id, application_to_row(application))

    async def delete_application(self, application_id: int) -> None:
        """Delete an application together with its status history and communications"""
        await self._status_history.delete_for_application(application_id)
        await self._communications.delete_for_application(application_id)
        await self.delete(application_id)
        logger.info(f"Deleted application {application_id}")

    async def delete_all_applications(self) -> None:
        await self._status_history.delete_all_history()
        await self._communications.delete_all_communications()
        await self.delete_all()

    async def exists(self, application_id: int) -> bool:
        return await self.get(application_id) is not None
