"""Statistics and analytics aggregations."""

from jobtracker_backend.modules.business.analytics.statistics import (
    compute_dashboard_statistics,
    compute_analytics,
    company_response_rates,
    monthly_application_counts,
    average_transition_time,
    count_dashboard_responses,
    count_analytics_responses,
)

__all__ = [
    'compute_dashboard_statistics',
    'compute_analytics',
    'company_response_rates',
    'monthly_application_counts',
    'average_transition_time',
    'count_dashboard_responses',
    'count_analytics_responses',
]
