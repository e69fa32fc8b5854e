"""Tests for the lifetime view, financial overview, and aggregate time report."""

from datetime import date

import pytest

from timebudget.core.errors import NotFoundError, ValidationError
from timebudget.projects.ledger import (
    create_budget_injection,
    create_recurring_budget,
    deactivate_recurring_budget,
)
from timebudget.reporting.aggregate import aggregate_time, period_start
from timebudget.reporting.lifetime import get_financial_overview, get_lifetime_summary
from timebudget.timetracker.entries import create_time_entry
from timebudget.workforce.users import set_user_rate


def _log(conn, user_id, project_id, entry_date, seconds):
    return create_time_entry(
        conn, user_id=user_id, project_id=project_id, entry_date=entry_date,
        duration_seconds=seconds, admin_override=True,
    )


def _second_project(conn):
    conn.execute("INSERT INTO projects (id, name) VALUES (2, 'Gemini')")
    conn.commit()
    return 2


class TestLifetime:
    def test_budget_vs_spend(self, memory_db, seed_user, seed_project):
        create_budget_injection(memory_db, project_id=seed_project, injection_date="2024-01-01", amount="1000")
        create_budget_injection(memory_db, project_id=seed_project, injection_date="2024-06-01", amount="500")
        _log(memory_db, seed_user, seed_project, "2023-11-20", 3600 * 10)
        _log(memory_db, seed_user, seed_project, "2024-07-02", 3600 * 20)

        assert get_lifetime_summary(memory_db, seed_project) == {
            "project": {"id": seed_project, "name": "Apollo"},
            "totalBudget": 1500.0,
            "totalSpend": 750.0,
            "leftover": 750.0,
            "usedPercentage": 50,
        }

    def test_no_budget(self, memory_db, seed_user, seed_project):
        _log(memory_db, seed_user, seed_project, "2024-01-02", 3600)
        summary = get_lifetime_summary(memory_db, seed_project)
        assert summary["totalBudget"] == 0.0
        assert summary["usedPercentage"] == 0
        assert summary["leftover"] == -25.0

    def test_unknown_project(self, memory_db):
        with pytest.raises(NotFoundError):
            get_lifetime_summary(memory_db, 9)

    def test_recurring_funding_counts(self, memory_db, seed_user, seed_project):
        create_recurring_budget(memory_db, project_id=seed_project, amount="1000", frequency="monthly",
                                start_date="2024-01-01", end_date="2024-03-31")
        summary = get_lifetime_summary(memory_db, seed_project, as_of=date(2024, 6, 15))
        assert summary["totalBudget"] == 3000.0
        assert summary["leftover"] == 3000.0

    def test_recurring_and_one_off_combined(self, memory_db, seed_user, seed_project):
        create_budget_injection(memory_db, project_id=seed_project, injection_date="2024-01-01", amount="500")
        create_recurring_budget(memory_db, project_id=seed_project, amount="1000", frequency="monthly",
                                start_date="2024-01-01", end_date="2024-03-31")
        _log(memory_db, seed_user, seed_project, "2024-02-05", 3600 * 10)

        summary = get_lifetime_summary(memory_db, seed_project, as_of=date(2024, 6, 15))
        assert summary["totalBudget"] == 3500.0
        assert summary["totalSpend"] == 250.0
        assert summary["leftover"] == 3250.0
        assert summary["usedPercentage"] == 7

    def test_deactivated_recurring_stops_accruing(self, memory_db, seed_project):
        rid = create_recurring_budget(memory_db, project_id=seed_project, amount="300",
                                      frequency="quarterly", start_date="2024-01-01")
        deactivate_recurring_budget(memory_db, rid, on="2024-02-15")
        summary = get_lifetime_summary(memory_db, seed_project, as_of=date(2024, 12, 1))
        assert summary["totalBudget"] == 200.0


class TestFinancialOverview:
    def test_cost_over_time_sorted(self, memory_db, seed_user, seed_project):
        create_budget_injection(memory_db, project_id=seed_project, injection_date="2024-01-15",
                                amount="800", description="Phase 1")
        _log(memory_db, seed_user, seed_project, "2024-03-02", 3600)
        _log(memory_db, seed_user, seed_project, "2024-01-05", 3600)
        set_user_rate(memory_db, seed_user, "50")
        _log(memory_db, seed_user, seed_project, "2024-01-25", 3600)

        overview = get_financial_overview(memory_db, seed_project)
        assert overview["projectName"] == "Apollo"
        assert overview["budgetInjections"] == [
            {"id": 1, "amount": 800.0, "date": "2024-01-15", "description": "Phase 1"},
        ]
        assert overview["costOverTime"] == [
            {"month": "2024-01", "cost": 75.0},
            {"month": "2024-03", "cost": 25.0},
        ]


class TestAggregate:
    @pytest.fixture
    def entries(self, memory_db, seed_user, seed_project):
        _second_project(memory_db)
        _log(memory_db, seed_user, seed_project, "2024-03-04", 3600)   # Monday
        _log(memory_db, seed_user, seed_project, "2024-03-06", 1800)
        _log(memory_db, seed_user, 2, "2024-03-12", 600)
        _log(memory_db, seed_user, 2, "2024-04-01", 60)

    def test_total_without_periods(self, memory_db, entries):
        assert aggregate_time(memory_db, time_unit="none") == [{"totalDuration": 6060}]

    def test_by_project_per_month(self, memory_db, entries):
        rows = aggregate_time(memory_db, group_by="project", time_unit="month")
        assert rows == [
            {"projectId": 1, "name": "Apollo", "timePeriod": "2024-03-01", "totalDuration": 5400},
            {"projectId": 2, "name": "Gemini", "timePeriod": "2024-03-01", "totalDuration": 600},
            {"projectId": 2, "name": "Gemini", "timePeriod": "2024-04-01", "totalDuration": 60},
        ]

    def test_by_user_per_week(self, memory_db, entries):
        rows = aggregate_time(memory_db, group_by="user", time_unit="week",
                              start_date="2024-03-01", end_date="2024-03-31")
        assert [(r["timePeriod"], r["totalDuration"]) for r in rows] == [
            ("2024-03-04", 5400),
            ("2024-03-11", 600),
        ]

    def test_project_filter(self, memory_db, entries):
        rows = aggregate_time(memory_db, group_by="project", time_unit="none", project_ids=[2])
        assert rows == [{"projectId": 2, "name": "Gemini", "totalDuration": 660}]

    @pytest.mark.parametrize("kwargs", [
        {"group_by": "department"},
        {"time_unit": "fortnight"},
        {"start_date": "2024-03-10", "end_date": "2024-03-01"},
    ])
    def test_rejects_bad_parameters(self, memory_db, kwargs):
        with pytest.raises(ValidationError):
            aggregate_time(memory_db, **kwargs)

    def test_period_start(self):
        d = date(2024, 3, 14)
        assert period_start(d, "day") == d
        assert period_start(d, "week") == date(2024, 3, 11)
        assert period_start(d, "month") == date(2024, 3, 1)
        assert period_start(d, "year") == date(2024, 1, 1)
        assert period_start(d, "none") is None
