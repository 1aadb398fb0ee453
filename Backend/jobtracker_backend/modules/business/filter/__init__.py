"""Filter module for narrowing, searching and ordering application lists."""

from jobtracker_backend.modules.business.filter.application_filter import (
    filter_applications,
    search_applications,
    sort_applications,
    apply_query,
)

__all__ = [
    'filter_applications',
    'search_applications',
    'sort_applications',
    'apply_query',
]
