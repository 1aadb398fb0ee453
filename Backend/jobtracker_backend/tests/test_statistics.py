from datetime import timezone

import pytest

from jobtracker_backend.config.global_constants import ApplicationStatus, DAY_MS
from jobtracker_backend.modules.business.analytics import (
    compute_analytics, compute_dashboard_statistics, company_response_rates,
    count_analytics_responses, count_dashboard_responses, average_transition_time,
    monthly_application_counts
)
from jobtracker_backend.modules.business.analytics.statistics import (
    average_time_to_response, percentage, status_transition_times
)
from jobtracker_backend.modules.models.services import DateRange
from jobtracker_backend.modules.models.storage import StatusHistory
from conftest import make_application, millis


def test_status_distribution_sums_to_total():
    apps = [make_application(status=status) for status in ApplicationStatus] + [make_application()]

    stats = compute_dashboard_statistics(apps)

    assert sum(stats.status_distribution.values()) == stats.total_applications == 9
    assert stats.status_distribution[ApplicationStatus.APPLIED] == 2


def test_dashboard_counts():
    apps = [
        make_application(status=ApplicationStatus.APPLIED),
        make_application(status=ApplicationStatus.GHOSTED),
        make_application(status=ApplicationStatus.EMAIL),
        make_application(status=ApplicationStatus.INTERVIEW),
        make_application(status=ApplicationStatus.OFFER),
        make_application(status=ApplicationStatus.REJECTED_BY_COMPANY),
        make_application(status=ApplicationStatus.REJECTED_BY_ME),
    ]

    stats = compute_dashboard_statistics(apps)

    assert stats.total_applications == 7
    assert stats.responses_received == 5
    assert stats.interviews_scheduled == 1
    assert stats.offers_received == 1
    assert stats.rejections == 2


def test_response_definitions_differ_on_rejected_by_me():
    apps = [make_application(status=ApplicationStatus.REJECTED_BY_ME)]
    assert count_dashboard_responses(apps) == 1
    assert count_analytics_responses(apps) == 0


def test_empty_input_gives_zero_rates():
    analytics = compute_analytics([])
    assert analytics.total_applications == 0
    assert analytics.response_rate == 0
    assert analytics.interview_rate == 0
    assert analytics.success_rate == 0
    assert analytics.applications_over_time == []
    assert compute_dashboard_statistics([]).status_distribution == {}


def test_percentage_handles_zero_denominator():
    assert percentage(1, 0) == 0
    assert percentage(1, 3) == pytest.approx(33.333, rel=1e-3)


def test_acme_globex_scenario():
    # Setup
    apps = [
        make_application("Acme", "Engineer", id=1, status=ApplicationStatus.INTERVIEW, application_date=millis(2024, 1, 10)),
        make_application("Globex", "Analyst", id=2, status=ApplicationStatus.GHOSTED, application_date=millis(2024, 2, 5)),
    ]

    # Test
    stats = compute_dashboard_statistics(apps)
    analytics = compute_analytics(apps)

    # Verify
    assert stats.total_applications == 2
    assert stats.responses_received == 1
    assert stats.interviews_scheduled == 1
    assert analytics.response_rate == 50.0
    assert analytics.interview_rate == 100.0
    assert analytics.success_rate == 0.0
    assert [(m.month, m.count) for m in analytics.applications_over_time] == [("Jan 2024", 1), ("Feb 2024", 1)]
    assert analytics.company_response_rates[0].company_name == "Acme"
    assert analytics.company_response_rates[0].response_rate == 100.0
    assert analytics.company_response_rates[1].response_rate == 0.0


def test_monthly_counts_are_chronological_with_zero_based_months():
    apps = [
        make_application(application_date=millis(2024, 3, 1)),
        make_application(application_date=millis(2023, 11, 15)),
        make_application(application_date=millis(2024, 3, 31)),
    ]

    months = monthly_application_counts(apps)

    assert [(m.year, m.month_number, m.count) for m in months] == [(2023, 10, 1), (2024, 2, 2)]
    assert months[0].month == "Nov 2023"


def test_monthly_counts_respect_timezone():
    # 2024-02-01 00:30 UTC
    app = make_application(application_date=1706747400000)
    months = monthly_application_counts([app], tz=timezone.utc)
    assert months[0].month == "Feb 2024"


def test_company_ranking_keeps_top_five_of_six():
    # Setup
    apps = []
    # Company i has 4 applications of which i respond
    for i in range(6):
        for j in range(4):
            status = ApplicationStatus.EMAIL if j < min(i, 4) else ApplicationStatus.APPLIED
            apps.append(make_application(f"Company {i}", "Engineer", status=status))

    # Test
    rates = company_response_rates(apps)

    # Verify
    assert len(rates) == 5
    assert all(0 <= rate.response_rate <= 100 for rate in rates)
    assert [rate.response_rate for rate in rates] == sorted((r.response_rate for r in rates), reverse=True)
    # Companies 4 and 5 tie at 100%, first appearance wins
    assert [rate.company_name for rate in rates] == [
        "Company 4", "Company 5", "Company 3", "Company 2", "Company 1"
    ]


def test_company_ranking_groups_by_exact_name():
    apps = [make_application("Acme"), make_application("acme", status=ApplicationStatus.OFFER)]
    names = {rate.company_name for rate in company_response_rates(apps)}
    assert names == {"Acme", "acme"}


def test_date_range_restricts_analytics():
    apps = [
        make_application(status=ApplicationStatus.OFFER, application_date=millis(2024, 1, 10)),
        make_application(status=ApplicationStatus.APPLIED, application_date=millis(2023, 6, 1)),
    ]

    analytics = compute_analytics(apps, DateRange(millis(2024, 1, 1), millis(2024, 1, 10)))

    assert analytics.total_applications == 1
    assert analytics.success_rate == 100.0


def test_date_range_presets():
    now = millis(2024, 6, 1)
    assert DateRange.last_month(now) == DateRange(now - 30 * DAY_MS, now)
    assert DateRange.last_quarter(now).start_date == now - 90 * DAY_MS
    assert DateRange.last_year(now).start_date == now - 365 * DAY_MS


def history(app_id, status, day):
    return StatusHistory(application_id=app_id, status=status, status_date=millis(2024, 1, day))


def test_average_transition_time_pairs_within_application():
    entries = [
        history(1, ApplicationStatus.APPLIED, 1),
        history(1, ApplicationStatus.EMAIL, 3),
        history(2, ApplicationStatus.APPLIED, 1),
        history(2, ApplicationStatus.EMAIL, 5),
        # EMAIL before APPLIED does not count
        history(3, ApplicationStatus.EMAIL, 1),
        history(3, ApplicationStatus.APPLIED, 2),
    ]

    average = average_transition_time(entries, ApplicationStatus.APPLIED, ApplicationStatus.EMAIL)

    assert average / DAY_MS == pytest.approx(3.0, abs=0.05)


def test_average_transition_time_without_pairs_is_none():
    entries = [history(1, ApplicationStatus.APPLIED, 1)]
    assert average_transition_time(entries, ApplicationStatus.APPLIED, ApplicationStatus.OFFER) is None


def test_transition_times_and_time_to_response_use_days():
    entries = [
        history(1, ApplicationStatus.APPLIED, 1),
        history(1, ApplicationStatus.EMAIL, 5),
        history(1, ApplicationStatus.PHONE, 7),
    ]

    transitions = status_transition_times(entries)

    assert transitions["APPLIED_TO_EMAIL"] == pytest.approx(4.0, abs=0.05)
    assert transitions["EMAIL_TO_PHONE"] == pytest.approx(2.0, abs=0.05)
    assert "PHONE_TO_INTERVIEW" not in transitions
    assert average_time_to_response(entries) == pytest.approx(4.0, abs=0.05)


def test_analytics_uses_history_of_applications_in_range():
    apps = [make_application(id=1, application_date=millis(2024, 1, 1))]
    entries = [
        history(1, ApplicationStatus.APPLIED, 1),
        history(1, ApplicationStatus.EMAIL, 3),
        history(2, ApplicationStatus.APPLIED, 1),
        history(2, ApplicationStatus.EMAIL, 21),
    ]

    analytics = compute_analytics(apps, status_history=entries)

    assert analytics.status_transition_times["APPLIED_TO_EMAIL"] == pytest.approx(2.0, abs=0.05)
