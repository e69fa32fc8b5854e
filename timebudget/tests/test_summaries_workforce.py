"""Tests for monthly cost summaries and workforce records."""

from datetime import date
from decimal import Decimal

import pytest

from timebudget.core.errors import ConflictError, NotFoundError, ValidationError
from timebudget.timetracker.entries import create_time_entry
from timebudget.timetracker.summaries import generate_monthly_summaries, list_monthly_summaries
from timebudget.workforce.departments import (
    create_department,
    get_user_defaults,
    list_default_descriptions,
    list_departments,
    replace_default_descriptions,
)
from timebudget.workforce.users import create_user, get_user, list_users, set_user_rate


def _backfill(conn, user_id, project_id, entry_date, seconds):
    return create_time_entry(
        conn, user_id=user_id, project_id=project_id, entry_date=entry_date,
        duration_seconds=seconds, admin_override=True,
    )


class TestMonthlySummaries:
    def test_only_closed_months(self, memory_db, seed_user, seed_project):
        _backfill(memory_db, seed_user, seed_project, "2024-01-10", 3600)
        _backfill(memory_db, seed_user, seed_project, "2024-01-20", 1800)
        _backfill(memory_db, seed_user, seed_project, "2024-02-05", 3600)
        _backfill(memory_db, seed_user, seed_project, "2024-03-01", 3600)

        inserted = generate_monthly_summaries(memory_db, current_date=date(2024, 3, 15))
        assert inserted == 2

        rows = list_monthly_summaries(memory_db, project_id=seed_project)
        assert [r["month"] for r in rows] == ["2024-01-01", "2024-02-01"]
        assert rows[0]["total_duration_seconds"] == 5400
        assert rows[0]["total_cost"] == Decimal("37.50")
        assert rows[0]["user_name"] == "Ada Lovelace"

    def test_idempotent(self, memory_db, seed_user, seed_project):
        _backfill(memory_db, seed_user, seed_project, "2024-01-10", 3600)
        assert generate_monthly_summaries(memory_db, current_date=date(2024, 3, 1)) == 1
        assert generate_monthly_summaries(memory_db, current_date=date(2024, 3, 1)) == 0
        assert len(list_monthly_summaries(memory_db)) == 1

    def test_uses_locked_rate(self, memory_db, seed_user, seed_project):
        _backfill(memory_db, seed_user, seed_project, "2024-01-10", 3600)
        set_user_rate(memory_db, seed_user, "100")
        generate_monthly_summaries(memory_db, current_date=date(2024, 2, 1))
        assert list_monthly_summaries(memory_db)[0]["total_cost"] == Decimal("25.00")

    def test_progress_callback(self, memory_db, seed_user, seed_project):
        _backfill(memory_db, seed_user, seed_project, "2024-01-10", 3600)
        _backfill(memory_db, seed_user, seed_project, "2024-02-10", 3600)
        calls = []
        generate_monthly_summaries(
            memory_db, current_date=date(2024, 3, 1), on_progress=lambda i, n: calls.append((i, n))
        )
        assert calls == [(1, 2), (2, 2)]


class TestDepartments:
    def test_create_defaults(self, memory_db):
        did = create_department(memory_db, "Design")
        dept = list_departments(memory_db)[0]
        assert dept["id"] == did
        assert dept["color"] == "info"
        assert dept["max_session_minutes"] == 480

    def test_invalid_color(self, memory_db):
        with pytest.raises(ValidationError):
            create_department(memory_db, "Design", color="magenta")

    def test_replace_descriptions_is_total(self, memory_db, seed_department):
        replace_default_descriptions(memory_db, seed_department, ["Standup", "Code review"])
        count = replace_default_descriptions(memory_db, seed_department, ["Planning", "  "])
        assert count == 1
        rows = list_default_descriptions(memory_db, seed_department)
        assert [r["description"] for r in rows] == ["Planning"]

    def test_replace_unknown_department(self, memory_db):
        with pytest.raises(NotFoundError):
            replace_default_descriptions(memory_db, 3, ["x"])

    def test_user_defaults(self, memory_db, seed_user, seed_department):
        replace_default_descriptions(memory_db, seed_department, ["Standup"])
        defaults = get_user_defaults(memory_db, seed_user)
        assert defaults["departmentThreshold"] == 480
        assert [d["description"] for d in defaults["defaultDescriptions"]] == ["Standup"]

    def test_user_defaults_unknown_user(self, memory_db):
        with pytest.raises(NotFoundError):
            get_user_defaults(memory_db, 12)


class TestUsers:
    def test_create_and_get(self, memory_db, seed_department):
        uid = create_user(memory_db, "Linus", "linus@example.com",
                          department_id=seed_department, rate_per_hour="45.5")
        user = get_user(memory_db, uid)
        assert user["rate_per_hour"] == "45.5"
        assert user["department_name"] == "Engineering"

    def test_duplicate_email(self, memory_db, seed_user, seed_department):
        with pytest.raises(ConflictError):
            create_user(memory_db, "Copy", " ADA@example.com ", department_id=seed_department)

    def test_unknown_department(self, memory_db):
        with pytest.raises(NotFoundError):
            create_user(memory_db, "X", "x@example.com", department_id=9)

    def test_negative_rate(self, memory_db, seed_department):
        with pytest.raises(ValidationError):
            create_user(memory_db, "X", "x@example.com", department_id=seed_department,
                        rate_per_hour="-1")

    def test_set_rate(self, memory_db, seed_user):
        assert set_user_rate(memory_db, seed_user, 30) == Decimal(30)
        assert get_user(memory_db, seed_user)["rate_per_hour"] == "30"

    def test_set_rate_unknown_user(self, memory_db):
        with pytest.raises(NotFoundError):
            set_user_rate(memory_db, 8, 30)

    def test_list_by_department(self, memory_db, seed_user, seed_department):
        other = create_department(memory_db, "Sales")
        create_user(memory_db, "Seller", "s@example.com", department_id=other)
        assert [u["name"] for u in list_users(memory_db, department_id=seed_department)] == ["Ada Lovelace"]
        assert len(list_users(memory_db)) == 2
