from typing import Dict, Any

from fastapi import Query

from jobtracker_backend.modules.api.rest.base import BaseRESTEndpoint
from jobtracker_backend.modules.api.utils import handle_endpoint_errors
from jobtracker_backend.modules.business.application.application_service import ApplicationService
from jobtracker_backend.modules.utils import to_jsonable


class StatisticsEndpoints(BaseRESTEndpoint):
    def __init__(self, application_service: ApplicationService):
        self._application_service = application_service
        super().__init__()

    def setup_routes(self) -> None:
        @self.router.get("/api/statistics/dashboard")
        @handle_endpoint_errors
        async def dashboard() -> Dict[str, Any]:
            """Counts shown on the dashboard tiles"""
            return to_jsonable(await self._application_service.get_dashboard_statistics())

        @self.router.get("/api/statistics/analytics")
        @handle_endpoint_errors
        async def analytics(period: str = Query('all_time', alias='range')) -> Dict[str, Any]:
            """Rates and distributions over last_month, last_quarter, last_year or all_time"""
            return to_jsonable(await self._application_service.get_filtered_analytics(period))
