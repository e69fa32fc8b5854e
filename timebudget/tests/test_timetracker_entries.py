"""Tests for time entries: rate snapshots, validation, and editing rules."""

from datetime import date
from decimal import Decimal

import pytest

from timebudget.core.errors import ForbiddenError, NotFoundError, ValidationError
from timebudget.timetracker.costing import entry_cost, entry_hours, week_bucket
from timebudget.timetracker.entries import (
    create_time_entry,
    delete_time_entry,
    get_time_entry,
    list_time_entries,
    update_time_entry,
)
from timebudget.workforce.users import set_user_rate

TODAY = date(2024, 3, 12)


def _log(conn, user_id, project_id, entry_date=TODAY, seconds=3600, **kwargs):
    return create_time_entry(
        conn, user_id=user_id, project_id=project_id, entry_date=entry_date,
        duration_seconds=seconds, today=TODAY, **kwargs,
    )


def _second_user(conn):
    conn.execute(
        "INSERT INTO users (id, name, email, department_id, rate_per_hour) "
        "VALUES (2, 'Grace Hopper', 'grace@example.com', 1, '40')"
    )
    conn.commit()
    return 2


class TestCosting:
    @pytest.mark.parametrize("day,bucket", [
        (1, 1), (7, 1), (8, 2), (14, 2), (15, 3), (21, 3), (22, 4), (28, 4), (29, 5), (31, 5),
    ])
    def test_week_bucket(self, day, bucket):
        assert week_bucket(date(2024, 1, day)) == bucket

    def test_entry_hours(self):
        assert entry_hours(5400) == Decimal("1.5")

    def test_entry_cost(self):
        assert entry_cost("25", 3600) == Decimal(25)
        assert entry_cost(Decimal("20"), 5400) == Decimal(30)


class TestCreate:
    def test_snapshots_current_rate(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project)
        entry = get_time_entry(memory_db, eid)
        assert entry["rate_per_hour"] == Decimal(25)
        assert entry["project_name"] == "Apollo"

    def test_rate_change_does_not_touch_history(self, memory_db, seed_user, seed_project):
        set_user_rate(memory_db, seed_user, "20")
        old = _log(memory_db, seed_user, seed_project)
        set_user_rate(memory_db, seed_user, "30")
        new = _log(memory_db, seed_user, seed_project)

        assert get_time_entry(memory_db, old)["rate_per_hour"] == Decimal(20)
        assert get_time_entry(memory_db, new)["rate_per_hour"] == Decimal(30)

    def test_user_without_rate_rejected(self, memory_db, seed_department, seed_project):
        memory_db.execute(
            "INSERT INTO users (id, name, email, department_id) VALUES (5, 'No Rate', 'nr@example.com', 1)"
        )
        with pytest.raises(ValidationError):
            _log(memory_db, 5, seed_project)
        assert list_time_entries(memory_db) == []

    def test_unknown_user(self, memory_db, seed_project):
        with pytest.raises(NotFoundError):
            _log(memory_db, 99, seed_project)

    def test_unknown_project(self, memory_db, seed_user):
        with pytest.raises(NotFoundError):
            _log(memory_db, seed_user, 99)

    @pytest.mark.parametrize("seconds", [0, -60, 1.5, "abc", True, None])
    def test_invalid_duration(self, memory_db, seed_user, seed_project, seconds):
        with pytest.raises(ValidationError):
            _log(memory_db, seed_user, seed_project, seconds=seconds)

    def test_only_today_for_users(self, memory_db, seed_user, seed_project):
        with pytest.raises(ValidationError):
            _log(memory_db, seed_user, seed_project, entry_date="2024-03-11")

    def test_admin_override_backdates(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project, entry_date="2024-02-01", admin_override=True)
        assert get_time_entry(memory_db, eid)["date"] == "2024-02-01"


class TestList:
    def test_filters(self, memory_db, seed_user, seed_project):
        _second_user(memory_db)
        _log(memory_db, seed_user, seed_project, entry_date="2024-03-01", admin_override=True)
        _log(memory_db, seed_user, seed_project, entry_date="2024-03-20", admin_override=True)
        _log(memory_db, 2, seed_project, entry_date="2024-03-05", admin_override=True)

        assert len(list_time_entries(memory_db, user_id=seed_user)) == 2
        in_range = list_time_entries(memory_db, start_date="2024-03-02", end_date="2024-03-20")
        assert [e["date"] for e in in_range] == ["2024-03-20", "2024-03-05"]


class TestUpdateDelete:
    def test_owner_updates_today(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project)
        row = update_time_entry(
            memory_db, eid, acting_user_id=seed_user, today=TODAY,
            duration_seconds=7200, description="Design review",
        )
        assert row["duration_seconds"] == 7200
        assert row["description"] == "Design review"

    def test_update_never_changes_rate(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project)
        set_user_rate(memory_db, seed_user, "99")
        row = update_time_entry(memory_db, eid, acting_user_id=seed_user, today=TODAY,
                                duration_seconds=60)
        assert row["rate_per_hour"] == Decimal(25)

    def test_other_user_forbidden(self, memory_db, seed_user, seed_project):
        other = _second_user(memory_db)
        eid = _log(memory_db, seed_user, seed_project)
        with pytest.raises(ForbiddenError):
            update_time_entry(memory_db, eid, acting_user_id=other, today=TODAY, description="x")
        with pytest.raises(ForbiddenError):
            delete_time_entry(memory_db, eid, acting_user_id=other, today=TODAY)

    def test_past_entry_locked_for_owner(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project, entry_date="2024-03-01", admin_override=True)
        with pytest.raises(ValidationError):
            update_time_entry(memory_db, eid, acting_user_id=seed_user, today=TODAY, description="x")
        with pytest.raises(ValidationError):
            delete_time_entry(memory_db, eid, acting_user_id=seed_user, today=TODAY)

    def test_cannot_move_to_other_day(self, memory_db, seed_user, seed_project):
        eid = _log(memory_db, seed_user, seed_project)
        with pytest.raises(ValidationError):
            update_time_entry(memory_db, eid, acting_user_id=seed_user, today=TODAY,
                              entry_date="2024-03-01")

    def test_admin_edits_anything(self, memory_db, seed_user, seed_project):
        admin = _second_user(memory_db)
        eid = _log(memory_db, seed_user, seed_project, entry_date="2024-03-01", admin_override=True)
        row = update_time_entry(memory_db, eid, acting_user_id=admin, is_admin=True, today=TODAY,
                                entry_date="2024-02-15")
        assert row["date"] == "2024-02-15"
        delete_time_entry(memory_db, eid, acting_user_id=admin, is_admin=True, today=TODAY)
        assert get_time_entry(memory_db, eid) is None

    def test_missing_entry(self, memory_db, seed_user):
        with pytest.raises(NotFoundError):
            delete_time_entry(memory_db, 404, acting_user_id=seed_user, today=TODAY)
