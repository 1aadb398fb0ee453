import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Callable, Iterable, List, Optional, TextIO, TypeVar, Union

from jobtracker_backend.config.global_constants import BackupType, BackupStatus
from jobtracker_backend.modules.business.backup.csv_codec import (
    DEFAULT_EXPORT_DATE_FORMAT, adecode_lines, decode_lines, iter_encoded_rows, iter_text_lines
)
from jobtracker_backend.modules.business.backup.destinations import ExportDestination
from jobtracker_backend.modules.errors import BackupError
from jobtracker_backend.modules.models.services import ImportResult
from jobtracker_backend.modules.models.storage import CloudBackup
from jobtracker_backend.modules.storage.application_storage import ApplicationStorage
from jobtracker_backend.modules.storage.backup_storage import BackupStorage
from jobtracker_backend.modules.utils import current_millis

logger = logging.getLogger(__name__)

COULD_NOT_READ_FILE = "Could not read file"
NO_VALID_APPLICATIONS = "No valid applications found in CSV"

# Rows encoded between two cancellation checkpoints during export
EXPORT_CHUNK_ROWS = 500

T = TypeVar('T')


async def _iterate(items: Iterable[T]) -> AsyncIterator[T]:
    for item in items:
        yield item


class BackupService:
    """Exports applications to CSV backups and imports them back.

    Every public operation reports failure through its return value
    (a FAILED backup record or an ImportResult carrying an error) and
    never raises for I/O or data problems.
    """

    def __init__(
        self,
        applications: ApplicationStorage,
        backups: BackupStorage,
        destination: ExportDestination,
        date_format: str = DEFAULT_EXPORT_DATE_FORMAT,
        clock: Callable[[], int] = current_millis
    ):
        self._applications = applications
        self._backups = backups
        self._destination = destination
        self._date_format = date_format
        self._clock = clock

    @property
    def destination(self) -> ExportDestination:
        return self._destination

    async def create_backup(self, backup_type: BackupType = BackupType.CSV) -> CloudBackup:
        """Run a backup of the given type and return its final record"""
        logger.info(f"Starting {backup_type.value} backup")

        if backup_type == BackupType.CSV:
            return await self._run_backup(backup_type, self._write_csv_file)
        return await self._run_backup(backup_type, self._unsupported(backup_type))

    async def export_to(self, sink: TextIO, location: Optional[str] = None) -> CloudBackup:
        """Write the CSV export to a caller supplied text sink, recording it as a CSV backup"""
        async def write_to_sink():
            content = await self.export_csv_text()
            await asyncio.to_thread(sink.write, content)
            return None, location or getattr(sink, 'name', None)

        return await self._run_backup(BackupType.CSV, write_to_sink)

    async def export_csv_text(self) -> str:
        """CSV text of every application"""
        applications = await self._applications.get_all_applications()
        rows = []
        for index, row in enumerate(iter_encoded_rows(applications, self._date_format)):
            rows.append(row)
            if index % EXPORT_CHUNK_ROWS == 0:
                await asyncio.sleep(0)
        logger.info(f"Encoded {len(applications)} applications to CSV")
        return ''.join(rows)

    async def _write_csv_file(self):
        content = await self.export_csv_text()
        file_name = self._destination.new_file_name()
        path = await asyncio.to_thread(self._destination.write, file_name, content)
        return file_name, str(path)

    @staticmethod
    def _unsupported(backup_type: BackupType):
        async def fail():
            raise BackupError(f"{backup_type.display_name} backup not available. Please use CSV export.")
        return fail

    async def _run_backup(self, backup_type: BackupType, perform) -> CloudBackup:
        record = CloudBackup(
            backup_type=backup_type,
            backup_timestamp=self._clock(),
            backup_status=BackupStatus.PENDING
        )
        try:
            record = replace(record, id=await self._backups.insert_backup(record))
        except Exception as e:
            logger.error(f"Could not record {backup_type.value} backup: {e}")
            return replace(record, backup_status=BackupStatus.FAILED, error=str(e))

        try:
            file_id, location = await perform()
            record = replace(
                record,
                backup_status=BackupStatus.COMPLETED,
                backup_file_id=file_id,
                backup_location=location
            )
            logger.info(f"Backup {record.id} completed: {location}")
        except asyncio.CancelledError:
            await self._finish(replace(record, backup_status=BackupStatus.FAILED, error="Cancelled"))
            raise
        except Exception as e:
            logger.error(f"Backup {record.id} failed: {e}")
            record = replace(record, backup_status=BackupStatus.FAILED, error=str(e))

        await self._finish(record)
        return record

    async def _finish(self, record: CloudBackup) -> None:
        try:
            await self._backups.update_backup(record)
        except Exception as e:
            logger.error(f"Could not update backup record {record.id}: {e}")

    async def import_from(self, lines: Union[Iterable[str], AsyncIterable[str]]) -> ImportResult:
        """Insert every valid application found in CSV lines (header first).

        Lines, plain or async, are consumed lazily. Rows that do not decode are
        skipped and rows whose insert fails are counted as not imported; neither
        aborts the batch. A source that fails while being read ends the import
        with "Could not read file".
        """
        if isinstance(lines, AsyncIterable):
            applications = adecode_lines(lines, self._clock)
        else:
            applications = _iterate(decode_lines(lines, self._clock))

        valid_rows = 0
        imported = 0
        try:
            async for application in applications:
                valid_rows += 1
                try:
                    await self._applications.insert_application(application)
                    imported += 1
                except Exception as e:
                    logger.warning(f"Skipping {application.company_name} / {application.job_title}: {e}")
                # Cancellation point between rows
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            logger.info(f"Import cancelled after {imported} applications")
            raise
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read import source after {imported} applications: {e}")
            return ImportResult(imported=imported, error=COULD_NOT_READ_FILE)
        except Exception as e:
            logger.error(f"Import failed after {imported} applications: {e}")
            return ImportResult(imported=imported, error=str(e))

        if valid_rows == 0:
            return ImportResult(imported=0, error=NO_VALID_APPLICATIONS)

        logger.info(f"Imported {imported} of {valid_rows} applications")
        return ImportResult(imported=imported)

    async def import_file(self, path: Path) -> ImportResult:
        """Stream a UTF-8 CSV file line by line into import_from"""
        try:
            f = open(path, 'r', encoding='utf-8', newline='')
        except OSError as e:
            logger.error(f"Could not open {path}: {e}")
            return ImportResult(error=COULD_NOT_READ_FILE)

        with f:
            return await self.import_from(f)

    async def import_stream(self, chunks: AsyncIterable[bytes]) -> ImportResult:
        """Import a UTF-8 CSV byte stream, decoding it incrementally"""
        return await self.import_from(iter_text_lines(chunks))

    async def list_backups(self) -> List[CloudBackup]:
        return await self._backups.get_all_backups()

    async def last_successful_backup(self) -> Optional[CloudBackup]:
        return await self._backups.get_last_successful_backup()

    async def backups_by_type(self, backup_type: BackupType) -> List[CloudBackup]:
        return await self._backups.get_backups_by_type(backup_type)

    async def delete_backup(self, backup_id: int) -> None:
        await self._backups.delete_backup(backup_id)

    async def delete_all_backups(self) -> None:
        await self._backups.delete_all_backups()
