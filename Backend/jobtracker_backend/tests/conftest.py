from datetime import datetime

import pytest

from jobtracker_backend.config.global_constants import ApplicationStatus
from jobtracker_backend.modules.business.application.application_service import ApplicationService
from jobtracker_backend.modules.business.application.undo_manager import UndoManager
from jobtracker_backend.modules.business.backup.backup_service import BackupService
from jobtracker_backend.modules.business.backup.destinations import ExportDestination
from jobtracker_backend.modules.models.storage import JobApplication
from jobtracker_backend.modules.storage import (
    ApplicationStorage, BackupStorage, CommunicationStorage, StatusHistoryStorage
)
from jobtracker_backend.modules.utils import to_millis


def millis(year: int, month: int, day: int) -> int:
    """Local midnight of a calendar day as epoch milliseconds"""
    return to_millis(datetime(year, month, day))


def make_application(company: str = "Acme", title: str = "Engineer", **kwargs) -> JobApplication:
    """Create a JobApplication with test data"""
    defaults = {
        'company_name': company,
        'job_title': title,
        'application_date': millis(2024, 1, 10),
        'status': ApplicationStatus.APPLIED,
    }
    defaults.update(kwargs)
    return JobApplication(**defaults)


class FakeClock:
    """Manually advanced millisecond clock"""

    def __init__(self, now: int = millis(2024, 3, 1)):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def status_history(tmp_path):
    return StatusHistoryStorage(tmp_path)


@pytest.fixture
def communications(tmp_path):
    return CommunicationStorage(tmp_path)


@pytest.fixture
def applications(tmp_path, status_history, communications):
    return ApplicationStorage(status_history, communications, tmp_path)


@pytest.fixture
def backups(tmp_path):
    return BackupStorage(tmp_path)


@pytest.fixture
def undo_manager(applications, clock):
    return UndoManager(applications, timeout_ms=5000, clock=clock)


@pytest.fixture
def application_service(applications, status_history, communications, undo_manager, clock):
    return ApplicationService(
        applications=applications,
        status_history=status_history,
        communications=communications,
        undo_manager=undo_manager,
        clock=clock
    )


@pytest.fixture
def export_dir(tmp_path):
    return tmp_path / "exports"


@pytest.fixture
def backup_service(applications, backups, export_dir, clock):
    destination = ExportDestination(export_dir, clock=lambda: datetime(2024, 3, 1, 9, 30, 15))
    return BackupService(applications, backups, destination, clock=clock)
