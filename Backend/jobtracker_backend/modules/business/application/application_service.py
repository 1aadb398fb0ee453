import logging
from dataclasses import replace
from typing import Callable, List, Optional

from jobtracker_backend.config.global_constants import (
    ApplicationStatus, SortOption, RECENT_APPLICATIONS_LIMIT, TOP_COMPANIES_LIMIT
)
from jobtracker_backend.modules.business.analytics import (
    average_transition_time, compute_analytics, compute_dashboard_statistics
)
from jobtracker_backend.modules.business.application.undo_manager import UndoManager
from jobtracker_backend.modules.business.filter import apply_query
from jobtracker_backend.modules.errors import ApplicationNotFoundError, ValidationError
from jobtracker_backend.modules.models.services import Analytics, DashboardStatistics, DateRange, FilterState
from jobtracker_backend.modules.models.storage import Communication, JobApplication, StatusHistory
from jobtracker_backend.modules.storage.application_storage import ApplicationStorage
from jobtracker_backend.modules.storage.communication_storage import CommunicationStorage
from jobtracker_backend.modules.storage.status_history_storage import StatusHistoryStorage
from jobtracker_backend.modules.utils import current_millis

logger = logging.getLogger(__name__)

ANALYTICS_PRESETS = {
    'last_month': DateRange.last_month,
    'last_quarter': DateRange.last_quarter,
    'last_year': DateRange.last_year,
    'all_time': None,
}


class ApplicationService:
    def __init__(
        self,
        applications: ApplicationStorage,
        status_history: StatusHistoryStorage,
        communications: CommunicationStorage,
        undo_manager: UndoManager,
        recent_limit: int = RECENT_APPLICATIONS_LIMIT,
        top_companies: int = TOP_COMPANIES_LIMIT,
        clock: Callable[[], int] = current_millis
    ):
        """Initialize the application service.

        Args:
            applications: Storage for applications, cascading deletes to history and communications
            status_history: Append-only log of status transitions
            communications: Storage for recruiter communications
            undo_manager: Buffer for undoing the last delete
            recent_limit: Default size of the recent applications list
            top_companies: Number of companies in the analytics ranking
            clock: Source of epoch milliseconds
        """
        self._applications = applications
        self._status_history = status_history
        self._communications = communications
        self._undo = undo_manager
        self._recent_limit = recent_limit
        self._top_companies = top_companies
        self._clock = clock

    @staticmethod
    def validate(application: JobApplication) -> None:
        if not application.company_name or not application.company_name.strip():
            raise ValidationError("Company name is required")
        if not application.job_title or not application.job_title.strip():
            raise ValidationError("Job title is required")

    async def save_application(self, application: JobApplication) -> int:
        """Insert a new application or update an existing one, returning its ID"""
        self.validate(application)
        now = self._clock()

        if not application.is_saved:
            application = replace(application, created_timestamp=now, updated_timestamp=now)
            application_id = await self._applications.insert_application(application)
            await self._status_history.add_entry(StatusHistory(
                application_id=application_id,
                status=application.status,
                status_date=application.application_date,
                notes="Application created",
                timestamp=now
            ))
            logger.info(f"Created application {application_id}: {application.company_name} / {application.job_title}")
            return application_id

        existing = await self.get_application(application.id)
        application = replace(
            application,
            created_timestamp=existing.created_timestamp,
            updated_timestamp=max(now, existing.created_timestamp)
        )
        await self._applications.update_application(application)
        logger.info(f"Updated application {application.id}")
        return application.id

    async def get_application(self, application_id: int) -> JobApplication:
        application = await self._applications.get_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def update_status(
        self,
        application_id: int,
        status: ApplicationStatus,
        status_date: Optional[int] = None,
        notes: Optional[str] = None
    ) -> JobApplication:
        """Move an application to a new status and log the transition"""
        application = await self.get_application(application_id)
        now = self._clock()
        status_date = now if status_date is None else status_date

        updated = replace(application, status=status, updated_timestamp=max(now, application.created_timestamp))
        await self._applications.update_application(updated)
        await self._status_history.add_entry(StatusHistory(
            application_id=application_id,
            status=status,
            status_date=status_date,
            notes=notes,
            timestamp=now
        ))
        logger.info(f"Application {application_id}: {application.status.value} -> {status.value}")
        return updated

    async def delete_application(self, application_id: int) -> Optional[JobApplication]:
        """Delete an application, keeping it available for undo. Returns None if it did not exist."""
        application = await self._applications.get_application(application_id)
        if application is None:
            logger.warning(f"Cannot delete missing application {application_id}")
            return None

        self._undo.record_deletion(application)
        await self._applications.delete_application(application_id)
        return application

    async def undo_delete(self) -> int:
        return await self._undo.undo()

    def can_undo(self) -> bool:
        return self._undo.can_undo()

    async def get_recent_applications(self, limit: Optional[int] = None) -> List[JobApplication]:
        applications = await self._applications.get_all_applications()
        return applications[:self._recent_limit if limit is None else limit]

    async def list_applications(
        self,
        filter_state: Optional[FilterState] = None,
        query: Optional[str] = None,
        sort_option: SortOption = SortOption.NEWEST
    ) -> List[JobApplication]:
        applications = await self._applications.get_all_applications()
        return apply_query(applications, filter_state, query, sort_option)

    async def get_history(self, application_id: int) -> List[StatusHistory]:
        await self.get_application(application_id)
        return await self._status_history.get_history(application_id)

    async def average_transition_time(
        self,
        from_status: ApplicationStatus,
        to_status: ApplicationStatus
    ) -> Optional[float]:
        """Mean milliseconds between two statuses of the same application, None without data"""
        return average_transition_time(await self._status_history.get_all_history(), from_status, to_status)

    async def get_dashboard_statistics(self) -> DashboardStatistics:
        return compute_dashboard_statistics(await self._applications.get_all_applications())

    async def get_analytics(self, date_range: Optional[DateRange] = None) -> Analytics:
        applications = await self._applications.get_all_applications()
        history = await self._status_history.get_all_history()
        return compute_analytics(applications, date_range, history, self._top_companies)

    async def get_filtered_analytics(self, preset: str = 'all_time') -> Analytics:
        """Analytics over one of the named ranges: last_month, last_quarter, last_year or all_time"""
        try:
            make_range = ANALYTICS_PRESETS[preset]
        except KeyError:
            raise ValueError(f"Unknown analytics range: {preset}")
        date_range = make_range(self._clock()) if make_range else None
        return await self.get_analytics(date_range)

    async def add_communication(self, communication: Communication) -> int:
        await self.get_application(communication.application_id)
        communication_id = await self._communications.add_communication(communication)
        logger.debug(f"Added communication {communication_id} to application {communication.application_id}")
        return communication_id

    async def get_communications(self, application_id: int) -> List[Communication]:
        await self.get_application(application_id)
        return await self._communications.get_communications(application_id)
