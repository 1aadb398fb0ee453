"""Exception types raised by the tracker's services."""


class JobTrackerError(Exception):
    """Base class for tracker errors that callers are expected to handle"""


class ValidationError(JobTrackerError, ValueError):
    """A required field is missing or malformed; nothing was written"""


class ApplicationNotFoundError(JobTrackerError, LookupError):
    def __init__(self, application_id: int):
        super().__init__(f"Application not found: {application_id}")
        self.application_id = application_id


class UndoError(JobTrackerError):
    """Undo could not be performed. The undo slot is empty afterwards."""


class NothingToUndoError(UndoError):
    def __init__(self):
        super().__init__("No application to restore")


class UndoTimeoutError(UndoError):
    def __init__(self, elapsed_ms: int, timeout_ms: int):
        super().__init__(f"Undo timeout expired ({elapsed_ms} ms > {timeout_ms} ms)")
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms


class BackupError(JobTrackerError):
    """A backup destination could not be written"""
