import logging
from typing import Dict, Any, List

from fastapi import HTTPException, Request
from fastapi.responses import Response

from jobtracker_backend.config.global_constants import BackupType
from jobtracker_backend.modules.api.rest.base import BaseRESTEndpoint
from jobtracker_backend.modules.api.utils import handle_endpoint_errors
from jobtracker_backend.modules.business.backup.backup_service import BackupService
from jobtracker_backend.modules.utils import to_jsonable

logger = logging.getLogger(__name__)


class BackupEndpoints(BaseRESTEndpoint):
    def __init__(self, backup_service: BackupService):
        self._backup_service = backup_service
        super().__init__()

    def setup_routes(self) -> None:
        @self.router.get("/api/backup/export")
        @handle_endpoint_errors
        async def export_csv():
            """Download every application as CSV"""
            content = await self._backup_service.export_csv_text()
            file_name = self._backup_service.destination.new_file_name()
            return Response(
                content=content.encode('utf-8'),
                media_type="text/csv; charset=utf-8",
                headers={"Content-Disposition": f'attachment; filename="{file_name}"'}
            )

        @self.router.post("/api/backup")
        @handle_endpoint_errors
        async def create_backup(backup_type: str = 'CSV') -> Dict[str, Any]:
            """Write a backup and return its record, FAILED records included"""
            backup = await self._backup_service.create_backup(BackupType.from_string(backup_type))
            return to_jsonable(backup)

        @self.router.post("/api/backup/import")
        @handle_endpoint_errors
        async def import_csv(request: Request) -> Dict[str, int]:
            """Import applications from a UTF-8 CSV body, read as it arrives"""
            result = await self._backup_service.import_stream(request.stream())
            if not result.success:
                logger.warning(f"Import rejected after {result.imported} applications: {result.error}")
                raise HTTPException(status_code=400, detail=result.error)
            return {"imported": result.imported}

        @self.router.get("/api/backups")
        @handle_endpoint_errors
        async def list_backups() -> List[Dict[str, Any]]:
            return to_jsonable(await self._backup_service.list_backups())
