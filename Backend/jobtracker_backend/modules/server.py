import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from jobtracker_backend.config import tracker_settings, default_data_dir, TrackerSettingsModel
from jobtracker_backend.config.global_constants import STORAGE_SETTINGS
from jobtracker_backend.modules.api.rest import create_rest_api
from jobtracker_backend.modules.business.application.application_service import ApplicationService
from jobtracker_backend.modules.business.application.undo_manager import UndoManager
from jobtracker_backend.modules.business.backup.backup_service import BackupService
from jobtracker_backend.modules.business.backup.destinations import ExportDestination
from jobtracker_backend.modules.storage import (
    ApplicationStorage, BackupStorage, CommunicationStorage, StatusHistoryStorage
)


def create_app(data_dir: Optional[Path] = None, settings: Optional[TrackerSettingsModel] = None) -> FastAPI:
    """Wire storages and services under ``data_dir`` and return the FastAPI app."""
    settings = settings or tracker_settings.get()
    data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
    export_dir = Path(settings.export_dir).expanduser() if settings.export_dir \
        else data_dir / STORAGE_SETTINGS['exports_dir']
    logger.info(f"Using data directory {data_dir}")

    # Initialize storage models
    status_history_storage = StatusHistoryStorage(data_dir)
    communication_storage = CommunicationStorage(data_dir)
    application_storage = ApplicationStorage(status_history_storage, communication_storage, data_dir)
    backup_storage = BackupStorage(data_dir)

    undo_manager = UndoManager(application_storage, timeout_ms=settings.undo_timeout_ms)
    application_service = ApplicationService(
        applications=application_storage,
        status_history=status_history_storage,
        communications=communication_storage,
        undo_manager=undo_manager,
        recent_limit=settings.recent_applications_limit,
        top_companies=settings.top_companies_limit
    )
    backup_service = BackupService(
        applications=application_storage,
        backups=backup_storage,
        destination=ExportDestination(export_dir, settings.export_file_prefix),
        date_format=settings.export_date_format
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for FastAPI application."""
        # Startup
        logger.info("Starting server...")
        tracker_settings.start_watching()
        yield
        # Shutdown
        logger.info("Shutting down server...")
        tracker_settings.stop_watching()

    app = FastAPI(lifespan=lifespan)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["127.0.0.1"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_rest_api(application_service, backup_service))
    return app


def main():
    uvicorn.run(create_app(), host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
