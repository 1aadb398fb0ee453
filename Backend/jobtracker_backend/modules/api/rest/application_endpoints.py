import logging
from typing import Dict, Any, List, Optional

from fastapi import Body, Query, status

from jobtracker_backend.config.global_constants import ApplicationStatus, JobType, RemoteStatus, SortOption
from jobtracker_backend.modules.api.rest.base import BaseRESTEndpoint
from jobtracker_backend.modules.api.utils import handle_endpoint_errors
from jobtracker_backend.modules.business.application.application_service import ApplicationService
from jobtracker_backend.modules.errors import ApplicationNotFoundError
from jobtracker_backend.modules.models.services import (
    ApplicationRequest, CommunicationRequest, FilterState, StatusUpdateRequest
)
from jobtracker_backend.modules.models.storage import Communication, JobApplication
from jobtracker_backend.modules.utils import current_millis, decode_dataclass, to_jsonable

logger = logging.getLogger(__name__)


def request_to_application(request: ApplicationRequest) -> JobApplication:
    data = request.model_dump()
    if data['application_date'] is None:
        data['application_date'] = current_millis()
    return decode_dataclass(JobApplication, data)


class ApplicationEndpoints(BaseRESTEndpoint):
    def __init__(self, application_service: ApplicationService):
        self._application_service = application_service
        super().__init__()

    def setup_routes(self):
        @self.router.get("/api/applications")
        @handle_endpoint_errors
        async def list_applications(
            status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
            start_date: Optional[int] = None,
            end_date: Optional[int] = None,
            company: Optional[str] = None,
            job_type: Optional[JobType] = None,
            remote_status: Optional[RemoteStatus] = None,
            q: Optional[str] = None,
            sort: SortOption = SortOption.NEWEST
        ) -> List[Dict[str, Any]]:
            """Filtered, searched and sorted applications"""
            filter_state = FilterState(
                status=status_filter,
                start_date=start_date,
                end_date=end_date,
                company=company,
                job_type=job_type,
                remote_status=remote_status
            )
            applications = await self._application_service.list_applications(filter_state, q, sort)
            return to_jsonable(applications)

        @self.router.post("/api/applications", status_code=status.HTTP_201_CREATED)
        @handle_endpoint_errors
        async def save_application(request: ApplicationRequest = Body(...)) -> Dict[str, int]:
            """Create an application, or update it when an id is given"""
            application_id = await self._application_service.save_application(request_to_application(request))
            return {"id": application_id}

        @self.router.get("/api/applications/recent")
        @handle_endpoint_errors
        async def recent_applications(limit: Optional[int] = None) -> List[Dict[str, Any]]:
            return to_jsonable(await self._application_service.get_recent_applications(limit))

        @self.router.post("/api/applications/undo")
        @handle_endpoint_errors
        async def undo_delete() -> Dict[str, int]:
            """Restore the most recently deleted application"""
            return {"id": await self._application_service.undo_delete()}

        @self.router.get("/api/applications/{application_id}")
        @handle_endpoint_errors
        async def get_application(application_id: int) -> Dict[str, Any]:
            return to_jsonable(await self._application_service.get_application(application_id))

        @self.router.put("/api/applications/{application_id}/status")
        @handle_endpoint_errors
        async def update_status(
            application_id: int,
            request: StatusUpdateRequest = Body(...)
        ) -> Dict[str, Any]:
            updated = await self._application_service.update_status(
                application_id, request.status, request.status_date, request.notes
            )
            return to_jsonable(updated)

        @self.router.delete("/api/applications/{application_id}")
        @handle_endpoint_errors
        async def delete_application(application_id: int) -> Dict[str, Any]:
            """Delete an application. It can be restored with the undo route for a short time."""
            deleted = await self._application_service.delete_application(application_id)
            if deleted is None:
                raise ApplicationNotFoundError(application_id)
            return {"deleted": application_id, "can_undo": self._application_service.can_undo()}

        @self.router.get("/api/applications/{application_id}/history")
        @handle_endpoint_errors
        async def status_history(application_id: int) -> List[Dict[str, Any]]:
            return to_jsonable(await self._application_service.get_history(application_id))

        @self.router.get("/api/applications/{application_id}/communications")
        @handle_endpoint_errors
        async def communications(application_id: int) -> List[Dict[str, Any]]:
            return to_jsonable(await self._application_service.get_communications(application_id))

        @self.router.post("/api/applications/{application_id}/communications", status_code=status.HTTP_201_CREATED)
        @handle_endpoint_errors
        async def add_communication(
            application_id: int,
            request: CommunicationRequest = Body(...)
        ) -> Dict[str, int]:
            data = request.model_dump()
            if data['communication_date'] is None:
                data['communication_date'] = current_millis()
            communication = Communication(application_id=application_id, **data)
            return {"id": await self._application_service.add_communication(communication)}
