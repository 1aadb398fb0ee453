from fastapi import APIRouter

from jobtracker_backend.modules.api.rest.application_endpoints import ApplicationEndpoints
from jobtracker_backend.modules.api.rest.backup_endpoints import BackupEndpoints
from jobtracker_backend.modules.api.rest.statistics_endpoints import StatisticsEndpoints
from jobtracker_backend.modules.business.application.application_service import ApplicationService
from jobtracker_backend.modules.business.backup.backup_service import BackupService


def create_rest_api(
    application_service: ApplicationService,
    backup_service: BackupService
) -> APIRouter:
    """Create and configure the REST API router."""
    api_router = APIRouter()

    # Initialize endpoints
    application_endpoints = ApplicationEndpoints(application_service)
    statistics_endpoints = StatisticsEndpoints(application_service)
    backup_endpoints = BackupEndpoints(backup_service)

    # Include all routes
    api_router.include_router(application_endpoints.routes)
    api_router.include_router(statistics_endpoints.routes)
    api_router.include_router(backup_endpoints.routes)

    return api_router
