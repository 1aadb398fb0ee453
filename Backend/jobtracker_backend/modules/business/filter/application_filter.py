"""Filtering, free-text search and sorting over in-memory application lists.

Every function here is pure: the input list is never mutated and a new list is returned.
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from jobtracker_backend.config.global_constants import SortOption
from jobtracker_backend.modules.models.services import FilterState
from jobtracker_backend.modules.models.storage import JobApplication

logger = logging.getLogger(__name__)

Predicate = Callable[[JobApplication], bool]

# Sort key and direction per option. sorted() is stable, so ties keep input order.
SORT_KEYS: Dict[SortOption, Tuple[Callable[[JobApplication], object], bool]] = {
    SortOption.NEWEST: (lambda app: app.application_date, True),
    SortOption.OLDEST: (lambda app: app.application_date, False),
    SortOption.COMPANY: (lambda app: app.company_name.casefold(), False),
    SortOption.STATUS: (lambda app: app.status.ordinal, False),
}


def build_predicates(filter_state: FilterState) -> List[Predicate]:
    """Predicates for the criteria that are set, cheapest comparisons first"""
    predicates: List[Predicate] = []

    if filter_state.status is not None:
        status = filter_state.status
        predicates.append(lambda app: app.status == status)
    if filter_state.job_type is not None:
        job_type = filter_state.job_type
        predicates.append(lambda app: app.job_type == job_type)
    if filter_state.remote_status is not None:
        remote_status = filter_state.remote_status
        predicates.append(lambda app: app.remote_status == remote_status)
    if filter_state.has_date_range:
        start, end = filter_state.start_date, filter_state.end_date
        predicates.append(lambda app: start <= app.application_date <= end)
    if filter_state.has_company:
        company = filter_state.company.lower()
        predicates.append(lambda app: company in app.company_name.lower())

    return predicates


def matches_filter(application: JobApplication, filter_state: FilterState) -> bool:
    return all(predicate(application) for predicate in build_predicates(filter_state))


def filter_applications(applications: Sequence[JobApplication], filter_state: FilterState) -> List[JobApplication]:
    """Applications satisfying every criterion set on the filter"""
    if filter_state.is_empty:
        return list(applications)

    predicates = build_predicates(filter_state)
    return [app for app in applications if all(predicate(app) for predicate in predicates)]


def matches_query(application: JobApplication, query: str) -> bool:
    """Case-insensitive substring match on company, title or notes. ``query`` must already be lower case."""
    if query in application.company_name.lower():
        return True
    if query in application.job_title.lower():
        return True
    return application.notes is not None and query in application.notes.lower()


def search_applications(applications: Sequence[JobApplication], query: Optional[str]) -> List[JobApplication]:
    """Applications whose company, title or notes contain the query. A blank query matches all."""
    if not query or not query.strip():
        return list(applications)

    query = query.lower()
    return [app for app in applications if matches_query(app, query)]


def sort_applications(applications: Sequence[JobApplication], option: SortOption) -> List[JobApplication]:
    try:
        key, descending = SORT_KEYS[option]
    except KeyError:
        raise ValueError(f"Unsupported sort option: {option}")
    return sorted(applications, key=key, reverse=descending)


def apply_query(
    applications: Sequence[JobApplication],
    filter_state: Optional[FilterState] = None,
    query: Optional[str] = None,
    sort_option: SortOption = SortOption.NEWEST
) -> List[JobApplication]:
    """Filter, then search, then sort, the way the applications list presents them"""
    result = filter_applications(applications, filter_state or FilterState())
    result = search_applications(result, query)
    result = sort_applications(result, sort_option)
    logger.debug(f"Query matched {len(result)} of {len(applications)} applications")
    return result
