import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from jobtracker_backend.config.global_constants import UNDO_TIMEOUT_MS
from jobtracker_backend.modules.errors import NothingToUndoError, UndoTimeoutError
from jobtracker_backend.modules.models.storage import JobApplication
from jobtracker_backend.modules.storage.application_storage import ApplicationStorage
from jobtracker_backend.modules.utils import current_millis

logger = logging.getLogger(__name__)


class UndoManager:
    """Single-slot buffer holding the most recently deleted application.

    A deletion can be undone until ``timeout_ms`` has passed. Recording a new
    deletion replaces whatever the slot held.
    """

    def __init__(
        self,
        applications: ApplicationStorage,
        timeout_ms: int = UNDO_TIMEOUT_MS,
        clock: Callable[[], int] = current_millis
    ):
        self._applications = applications
        self._timeout_ms = timeout_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._deleted: Optional[JobApplication] = None
        self._deleted_at = 0

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def record_deletion(self, application: JobApplication) -> None:
        with self._lock:
            self._deleted = application
            self._deleted_at = self._clock()
        logger.debug(f"Recorded deletion of application {application.id} for undo")

    def can_undo(self) -> bool:
        with self._lock:
            return self._deleted is not None and self._clock() - self._deleted_at <= self._timeout_ms

    def clear(self) -> None:
        with self._lock:
            self._deleted = None
            self._deleted_at = 0

    async def undo(self) -> int:
        """Re-insert the last deleted application and return its ID.

        Raises:
            NothingToUndoError: the slot is empty
            UndoTimeoutError: the deletion is older than the timeout
        """
        with self._lock:
            application, deleted_at = self._deleted, self._deleted_at
            if application is None:
                raise NothingToUndoError()

            elapsed = self._clock() - deleted_at
            self._deleted = None
            self._deleted_at = 0
            if elapsed > self._timeout_ms:
                logger.info(f"Undo of application {application.id} expired after {elapsed} ms")
                raise UndoTimeoutError(elapsed, self._timeout_ms)

        try:
            restored = application
            if await self._applications.exists(application.id):
                logger.warning(f"Id {application.id} is taken, restoring {application.company_name} under a new id")
                restored = replace(application, id=0)
            application_id = await self._applications.insert_application(restored)
        except Exception:
            # Put the deletion back unless another one replaced it meanwhile
            with self._lock:
                if self._deleted is None:
                    self._deleted, self._deleted_at = application, deleted_at
            raise

        logger.info(f"Restored application {application_id}: {application.company_name}")
        return application_id
