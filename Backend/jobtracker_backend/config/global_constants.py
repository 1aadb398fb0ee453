"""
Constants and enum definitions shared across the tracker.
"""

from enum import Enum
from typing import Optional

# Storage settings
STORAGE_SETTINGS = {
    'applications_file': 'job_applications.csv',
    'status_history_file': 'status_history.csv',
    'communications_file': 'communications.csv',
    'backups_file': 'cloud_backups.csv',
    'exports_dir': 'exports',
}

# Fixed column order of the CSV export/import format
CSV_HEADER = [
    'Company',
    'Job Title',
    'Status',
    'Application Date',
    'Location',
    'Job Type',
    'Remote Status',
    'Salary Min',
    'Salary Max',
    'Notes',
    'Job Link',
]

# Date patterns accepted on import, tried in this order
CSV_DATE_FORMATS = [
    '%Y-%m-%d',     # 2024-01-10
    '%m/%d/%Y',     # 01/10/2024
    '%d/%m/%Y',     # 10/01/2024
    '%b %d, %Y',    # Jan 10, 2024
]

EXPORT_TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'

UNDO_TIMEOUT_MS = 5000
RECENT_APPLICATIONS_LIMIT = 5
TOP_COMPANIES_LIMIT = 5

DAY_MS = 24 * 60 * 60 * 1000


class _DisplayEnum(str, Enum):
    """String enum carrying a human readable label next to its stored name."""

    def __new__(cls, value: str, display_name: str):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.display_name = display_name
        return obj

    @classmethod
    def from_string(cls, value: Optional[str]):
        """Look a member up by name, returning None for unknown values."""
        if not value:
            return None
        return cls.__members__.get(value)


# Application status definitions, declaration order is the status sort order
class ApplicationStatus(_DisplayEnum):
    APPLIED = ('APPLIED', 'Applied')
    EMAIL = ('EMAIL', 'Email Response')
    PHONE = ('PHONE', 'Phone Call')
    INTERVIEW = ('INTERVIEW', 'Interview')
    OFFER = ('OFFER', 'Offer')
    REJECTED_BY_COMPANY = ('REJECTED_BY_COMPANY', 'Rejected by Company')
    REJECTED_BY_ME = ('REJECTED_BY_ME', 'Rejected by Me')
    GHOSTED = ('GHOSTED', 'Ghosted')

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'ApplicationStatus':
        return super().from_string(value) or cls.APPLIED

    @property
    def ordinal(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = list(ApplicationStatus)

# Any status past the initial one, except silence
DASHBOARD_RESPONSE_EXCLUDED = frozenset({ApplicationStatus.APPLIED, ApplicationStatus.GHOSTED})

# Statuses the analytics screen counts as an employer response
ANALYTICS_RESPONSE_STATUSES = frozenset({
    ApplicationStatus.EMAIL,
    ApplicationStatus.PHONE,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFER,
    ApplicationStatus.REJECTED_BY_COMPANY,
})

REJECTION_STATUSES = frozenset({ApplicationStatus.REJECTED_BY_COMPANY, ApplicationStatus.REJECTED_BY_ME})


class JobType(_DisplayEnum):
    FULL_TIME = ('FULL_TIME', 'Full-time')
    PART_TIME = ('PART_TIME', 'Part-time')
    CONTRACT = ('CONTRACT', 'Contract')
    FREELANCE = ('FREELANCE', 'Freelance')


class RemoteStatus(_DisplayEnum):
    REMOTE = ('REMOTE', 'Fully Remote')
    HYBRID = ('HYBRID', 'Hybrid')
    ON_SITE = ('ON_SITE', 'On-site')


class CompanySize(_DisplayEnum):
    STARTUP = ('STARTUP', 'Startup')
    SMB = ('SMB', 'Small/Medium Business')
    ENTERPRISE = ('ENTERPRISE', 'Enterprise')


class CommunicationType(_DisplayEnum):
    EMAIL = ('EMAIL', 'Email')
    PHONE_CALL = ('PHONE_CALL', 'Phone Call')
    IN_PERSON_INTERVIEW = ('IN_PERSON_INTERVIEW', 'In-Person Interview')
    VIDEO_INTERVIEW = ('VIDEO_INTERVIEW', 'Video Interview')


class BackupType(_DisplayEnum):
    CSV = ('CSV', 'CSV Export')
    GOOGLE_DRIVE = ('GOOGLE_DRIVE', 'Google Drive')
    GOOGLE_SHEETS = ('GOOGLE_SHEETS', 'Google Sheets')
    NOTION = ('NOTION', 'Notion')

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'BackupType':
        return super().from_string(value) or cls.CSV


class BackupStatus(str, Enum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'BackupStatus':
        return cls.__members__.get(value or '', cls.PENDING)


class SortOption(_DisplayEnum):
    NEWEST = ('NEWEST', 'Newest First')
    OLDEST = ('OLDEST', 'Oldest First')
    COMPANY = ('COMPANY', 'Company Name')
    STATUS = ('STATUS', 'Status')


VERSION = "0.1.0"
APP_NAME = "JobTracker"
