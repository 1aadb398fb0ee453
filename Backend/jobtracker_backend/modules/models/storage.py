from dataclasses import dataclass, field
from typing import Optional

from jobtracker_backend.config.global_constants import (
    ApplicationStatus, JobType, RemoteStatus, CompanySize, CommunicationType, BackupType, BackupStatus
)
from jobtracker_backend.modules.utils import current_millis


@dataclass
class SalaryRange:
    """Salary bounds, at least one of which is present"""
    min: Optional[int] = None
    max: Optional[int] = None

    def to_display_string(self) -> str:
        if self.min is not None and self.max is not None:
            return f"${_format_salary(self.min)} - ${_format_salary(self.max)}"
        if self.min is not None:
            return f"From ${_format_salary(self.min)}"
        if self.max is not None:
            return f"Up to ${_format_salary(self.max)}"
        return "Not specified"


def _format_salary(amount: int) -> str:
    return f"{amount // 1000}k" if amount >= 1000 else str(amount)


@dataclass
class JobApplication:
    """Data model for a tracked job application. Dates are epoch milliseconds."""
    company_name: str
    job_title: str
    application_date: int
    status: ApplicationStatus = ApplicationStatus.APPLIED
    id: int = 0
    company_location: Optional[str] = None
    job_description: Optional[str] = None
    job_link: Optional[str] = None
    salary_range: Optional[SalaryRange] = None
    job_type: Optional[JobType] = None
    remote_status: Optional[RemoteStatus] = None
    company_size: Optional[CompanySize] = None
    industry: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = None
    company_website: Optional[str] = None
    created_timestamp: int = field(default_factory=current_millis)
    updated_timestamp: int = field(default_factory=current_millis)

    @property
    def is_saved(self) -> bool:
        return self.id != 0


@dataclass
class StatusHistory:
    """One status transition of an application, never modified after insert"""
    application_id: int
    status: ApplicationStatus
    status_date: int
    notes: Optional[str] = None
    id: int = 0
    timestamp: int = field(default_factory=current_millis)


@dataclass
class Communication:
    """Recruiter contact logged against an application"""
    application_id: int
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    recruiter_phone: Optional[str] = None
    communication_type: Optional[CommunicationType] = None
    communication_date: Optional[int] = None
    communication_notes: Optional[str] = None
    id: int = 0


@dataclass
class CloudBackup:
    """Metadata describing one backup attempt"""
    backup_type: BackupType
    backup_timestamp: int
    backup_status: BackupStatus = BackupStatus.PENDING
    backup_file_id: Optional[str] = None
    backup_location: Optional[str] = None
    error: Optional[str] = None
    id: int = 0
