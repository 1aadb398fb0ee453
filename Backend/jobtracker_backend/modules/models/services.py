from dataclasses import dataclass, field
from typing import List, Optional, Dict

from pydantic import BaseModel, Field, model_validator

from jobtracker_backend.config.global_constants import (
    ApplicationStatus, JobType, RemoteStatus, CompanySize, CommunicationType, DAY_MS
)
from jobtracker_backend.modules.utils import current_millis


@dataclass(frozen=True)
class FilterState:
    """Criteria for the applications list. A None criterion matches everything."""
    status: Optional[ApplicationStatus] = None
    start_date: Optional[int] = None
    end_date: Optional[int] = None
    company: Optional[str] = None
    job_type: Optional[JobType] = None
    remote_status: Optional[RemoteStatus] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def has_company(self) -> bool:
        return bool(self.company and self.company.strip())

    @property
    def is_empty(self) -> bool:
        return (
            self.status is None
            and not self.has_date_range
            and not self.has_company
            and self.job_type is None
            and self.remote_status is None
        )


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of epoch milliseconds used to scope analytics"""
    start_date: int
    end_date: int

    def contains(self, timestamp: int) -> bool:
        return self.start_date <= timestamp <= self.end_date

    @classmethod
    def last_days(cls, days: int, now: Optional[int] = None) -> 'DateRange':
        now = current_millis() if now is None else now
        return cls(now - days * DAY_MS, now)

    @classmethod
    def last_month(cls, now: Optional[int] = None) -> 'DateRange':
        return cls.last_days(30, now)

    @classmethod
    def last_quarter(cls, now: Optional[int] = None) -> 'DateRange':
        return cls.last_days(90, now)

    @classmethod
    def last_year(cls, now: Optional[int] = None) -> 'DateRange':
        return cls.last_days(365, now)


@dataclass
class DashboardStatistics:
    total_applications: int = 0
    responses_received: int = 0
    interviews_scheduled: int = 0
    offers_received: int = 0
    rejections: int = 0
    status_distribution: Dict[ApplicationStatus, int] = field(default_factory=dict)


@dataclass
class MonthlyCount:
    """Applications submitted in one calendar month. month_number is 0-based."""
    month: str
    year: int
    month_number: int
    count: int


@dataclass
class CompanyResponseRate:
    company_name: str
    total_applications: int
    responses: int
    response_rate: float


@dataclass
class Analytics:
    total_applications: int = 0
    response_rate: float = 0.0
    interview_rate: float = 0.0
    success_rate: float = 0.0
    average_time_to_response: Optional[float] = None  # in days
    status_distribution: Dict[ApplicationStatus, int] = field(default_factory=dict)
    applications_over_time: List[MonthlyCount] = field(default_factory=list)
    status_transition_times: Dict[str, float] = field(default_factory=dict)  # e.g. "APPLIED_TO_EMAIL" -> days
    company_response_rates: List[CompanyResponseRate] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of a CSV import. error is set when nothing usable was imported."""
    imported: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


# Request models for the REST surface
class SalaryRangeRequest(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None

    @model_validator(mode='after')
    def check_bounds(self) -> 'SalaryRangeRequest':
        if self.min is None and self.max is None:
            raise ValueError("Salary range needs a minimum or a maximum")
        return self


class ApplicationRequest(BaseModel):
    company_name: str
    job_title: str
    application_date: Optional[int] = None
    status: ApplicationStatus = ApplicationStatus.APPLIED
    id: int = 0
    company_location: Optional[str] = None
    job_description: Optional[str] = None
    job_link: Optional[str] = None
    salary_range: Optional[SalaryRangeRequest] = None
    job_type: Optional[JobType] = None
    remote_status: Optional[RemoteStatus] = None
    company_size: Optional[CompanySize] = None
    industry: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    company_website: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus
    status_date: Optional[int] = None
    notes: Optional[str] = None


class CommunicationRequest(BaseModel):
    communication_type: CommunicationType
    communication_date: Optional[int] = None
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    recruiter_phone: Optional[str] = None
    communication_notes: Optional[str] = None
