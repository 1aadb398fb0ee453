"""Dashboard counts and analytics aggregations over application snapshots.

Two definitions of a "response" coexist:

- dashboard: any status other than APPLIED or GHOSTED (``is_dashboard_response``)
- analytics: EMAIL, PHONE, INTERVIEW, OFFER or REJECTED_BY_COMPANY (``is_analytics_response``)

The dashboard tiles and the per-company ranking use the first, the analytics
response and interview rates use the second.
"""
import logging
from collections import Counter, defaultdict
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from jobtracker_backend.config.global_constants import (
    ApplicationStatus, ANALYTICS_RESPONSE_STATUSES, DASHBOARD_RESPONSE_EXCLUDED, REJECTION_STATUSES,
    TOP_COMPANIES_LIMIT, DAY_MS
)
from jobtracker_backend.modules.models.services import (
    Analytics, CompanyResponseRate, DashboardStatistics, DateRange, MonthlyCount
)
from jobtracker_backend.modules.models.storage import JobApplication, StatusHistory
from jobtracker_backend.modules.utils import from_millis

logger = logging.getLogger(__name__)

# Consecutive pipeline stages reported in Analytics.status_transition_times
PIPELINE_TRANSITIONS: List[Tuple[ApplicationStatus, ApplicationStatus]] = [
    (ApplicationStatus.APPLIED, ApplicationStatus.EMAIL),
    (ApplicationStatus.EMAIL, ApplicationStatus.PHONE),
    (ApplicationStatus.PHONE, ApplicationStatus.INTERVIEW),
    (ApplicationStatus.INTERVIEW, ApplicationStatus.OFFER),
]


def is_dashboard_response(status: ApplicationStatus) -> bool:
    return status not in DASHBOARD_RESPONSE_EXCLUDED


def is_analytics_response(status: ApplicationStatus) -> bool:
    return status in ANALYTICS_RESPONSE_STATUSES


def count_dashboard_responses(applications: Iterable[JobApplication]) -> int:
    return sum(1 for app in applications if is_dashboard_response(app.status))


def count_analytics_responses(applications: Iterable[JobApplication]) -> int:
    return sum(1 for app in applications if is_analytics_response(app.status))


def percentage(part: int, whole: int) -> float:
    """part / whole * 100, or 0 when whole is 0. Not rounded."""
    return part / whole * 100 if whole > 0 else 0.0


def status_distribution(applications: Iterable[JobApplication]) -> Dict[ApplicationStatus, int]:
    """Count per status. Statuses with no applications are absent."""
    return dict(Counter(app.status for app in applications))


def compute_dashboard_statistics(applications: Sequence[JobApplication]) -> DashboardStatistics:
    distribution = status_distribution(applications)
    return DashboardStatistics(
        total_applications=len(applications),
        responses_received=sum(n for status, n in distribution.items() if is_dashboard_response(status)),
        interviews_scheduled=distribution.get(ApplicationStatus.INTERVIEW, 0),
        offers_received=distribution.get(ApplicationStatus.OFFER, 0),
        rejections=sum(n for status, n in distribution.items() if status in REJECTION_STATUSES),
        status_distribution=distribution,
    )


def monthly_application_counts(
    applications: Iterable[JobApplication],
    tz: Optional[tzinfo] = None
) -> List[MonthlyCount]:
    """Applications per calendar month of application_date, oldest month first.

    Months are computed in ``tz``, or in the local time zone when it is None.
    """
    counts: Counter = Counter()
    labels: Dict[Tuple[int, int], str] = {}

    for app in applications:
        when = from_millis(app.application_date, tz)
        key = (when.year, when.month - 1)
        counts[key] += 1
        labels.setdefault(key, when.strftime("%b %Y"))

    return [
        MonthlyCount(month=labels[key], year=key[0], month_number=key[1], count=counts[key])
        for key in sorted(counts)
    ]


def company_response_rates(
    applications: Iterable[JobApplication],
    limit: int = TOP_COMPANIES_LIMIT
) -> List[CompanyResponseRate]:
    """Companies ranked by dashboard response rate, best first.

    Companies are grouped by exact name. Equal rates keep the order in which
    companies first appear in the input.
    """
    groups: Dict[str, List[JobApplication]] = defaultdict(list)
    for app in applications:
        groups[app.company_name].append(app)

    rates = []
    for company, apps in groups.items():
        responses = count_dashboard_responses(apps)
        rates.append(CompanyResponseRate(
            company_name=company,
            total_applications=len(apps),
            responses=responses,
            response_rate=percentage(responses, len(apps)),
        ))

    rates.sort(key=lambda rate: rate.response_rate, reverse=True)
    return rates[:limit]


def _history_by_application(status_history: Iterable[StatusHistory]) -> Dict[int, List[StatusHistory]]:
    grouped: Dict[int, List[StatusHistory]] = defaultdict(list)
    for entry in status_history:
        grouped[entry.application_id].append(entry)
    return grouped


def average_transition_time(
    status_history: Iterable[StatusHistory],
    from_status: ApplicationStatus,
    to_status: ApplicationStatus
) -> Optional[float]:
    """Mean milliseconds from ``from_status`` to ``to_status`` within the same application.

    Every pair of (from, to) records of one application whose from date is
    strictly earlier than the to date contributes one sample. Returns None
    when there is no such pair.
    """
    deltas = []
    for entries in _history_by_application(status_history).values():
        starts = [e.status_date for e in entries if e.status == from_status]
        ends = [e.status_date for e in entries if e.status == to_status]
        deltas.extend(end - start for start in starts for end in ends if start < end)

    if not deltas:
        return None
    return sum(deltas) / len(deltas)


def status_transition_times(status_history: Sequence[StatusHistory]) -> Dict[str, float]:
    """Average days between consecutive pipeline stages, keyed like ``APPLIED_TO_EMAIL``"""
    result = {}
    for from_status, to_status in PIPELINE_TRANSITIONS:
        average_ms = average_transition_time(status_history, from_status, to_status)
        if average_ms is not None:
            result[f"{from_status.value}_TO_{to_status.value}"] = average_ms / DAY_MS
    return result


def average_time_to_response(status_history: Iterable[StatusHistory]) -> Optional[float]:
    """Average days from an application's APPLIED record to its first later analytics response"""
    waits = []
    for entries in _history_by_application(status_history).values():
        applied = [e.status_date for e in entries if e.status == ApplicationStatus.APPLIED]
        if not applied:
            continue
        start = min(applied)
        responses = [
            e.status_date for e in entries
            if is_analytics_response(e.status) and e.status_date > start
        ]
        if responses:
            waits.append(min(responses) - start)

    if not waits:
        return None
    return sum(waits) / len(waits) / DAY_MS


def compute_analytics(
    applications: Sequence[JobApplication],
    date_range: Optional[DateRange] = None,
    status_history: Optional[Sequence[StatusHistory]] = None,
    top_companies: int = TOP_COMPANIES_LIMIT,
    tz: Optional[tzinfo] = None
) -> Analytics:
    """Rates, distributions and time series for the analytics screen.

    When ``date_range`` is given only applications dated inside it (inclusive)
    are counted, and only their status history is used for transition times.
    """
    if date_range is not None:
        applications = [app for app in applications if date_range.contains(app.application_date)]

    total = len(applications)
    responses = count_analytics_responses(applications)
    interviews = sum(1 for app in applications if app.status == ApplicationStatus.INTERVIEW)
    offers = sum(1 for app in applications if app.status == ApplicationStatus.OFFER)

    analytics = Analytics(
        total_applications=total,
        response_rate=percentage(responses, total),
        interview_rate=percentage(interviews, responses),
        success_rate=percentage(offers, total),
        status_distribution=status_distribution(applications),
        applications_over_time=monthly_application_counts(applications, tz),
        company_response_rates=company_response_rates(applications, top_companies),
    )

    if status_history:
        application_ids = {app.id for app in applications}
        history = [entry for entry in status_history if entry.application_id in application_ids]
        analytics.status_transition_times = status_transition_times(history)
        analytics.average_time_to_response = average_time_to_response(history)

    logger.debug(
        f"Analytics over {total} applications: response {analytics.response_rate:.1f}%, "
        f"interview {analytics.interview_rate:.1f}%, success {analytics.success_rate:.1f}%"
    )
    return analytics
