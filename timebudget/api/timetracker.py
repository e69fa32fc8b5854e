"""
Time Tracker Blueprint — Flask routes for time entries, the aggregate
time report, and monthly cost summaries.

The acting user comes from the ``X-User-Id`` / ``X-User-Role`` headers
set by whatever sits in front of the service.
"""

from datetime import date

from flask import Blueprint, jsonify, request

from timebudget.core import get_db
from timebudget.core.errors import ForbiddenError, NotFoundError, ValidationError
from timebudget.core.output import camelize
from timebudget.reporting.aggregate import aggregate_time
from timebudget.timetracker import entries as tt_entries
from timebudget.timetracker.summaries import list_monthly_summaries

bp = Blueprint("timetracker", __name__, url_prefix="/timetracker")


def _acting_user():
    """Return (user_id, is_admin) for the request."""
    raw = request.headers.get("X-User-Id")
    if not raw:
        raise ForbiddenError("X-User-Id header is required")
    try:
        user_id = int(raw)
    except ValueError:
        raise ValidationError("X-User-Id must be an integer")
    return user_id, request.headers.get("X-User-Role", "user").lower() == "admin"


def _required_id(value, field: str) -> int:
    if value in (None, ""):
        raise ValidationError(f"{field} is required", details={"field": field})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", details={"field": field})


def _id_list(name: str):
    values = request.args.getlist(name)
    try:
        return [int(v) for v in values if v != ""]
    except ValueError:
        raise ValidationError(f"{name} must be integers", details={"field": name})


# ---------------------------------------------------------------------------
# Time entries API
# ---------------------------------------------------------------------------


@bp.route("/api/time-entries", methods=["GET"])
def api_list_entries():
    user_id, is_admin = _acting_user()
    if is_admin:
        user_id = request.args.get("userId", type=int)
    with get_db(readonly=True) as conn:
        rows = tt_entries.list_time_entries(
            conn,
            user_id=user_id,
            project_id=request.args.get("projectId", type=int),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/time-entries", methods=["POST"])
def api_create_entry():
    user_id, is_admin = _acting_user()
    data = request.get_json(silent=True) or {}
    if is_admin and data.get("userId") not in (None, ""):
        user_id = _required_id(data["userId"], "userId")
    project_id = _required_id(data.get("projectId"), "projectId")
    with get_db() as conn:
        eid = tt_entries.create_time_entry(
            conn,
            user_id=user_id,
            project_id=project_id,
            entry_date=data.get("date") or date.today().isoformat(),
            duration_seconds=data.get("durationSeconds"),
            description=data.get("description"),
            admin_override=is_admin,
        )
        row = tt_entries.get_time_entry(conn, eid)
    return jsonify(camelize(row)), 201


@bp.route("/api/time-entries/<int:entry_id>", methods=["GET"])
def api_get_entry(entry_id):
    user_id, is_admin = _acting_user()
    with get_db(readonly=True) as conn:
        row = tt_entries.get_time_entry(conn, entry_id)
    if not row or (row["user_id"] != user_id and not is_admin):
        raise NotFoundError(f"Time entry {entry_id} not found")
    return jsonify(camelize(row))


@bp.route("/api/time-entries/<int:entry_id>", methods=["PUT"])
def api_update_entry(entry_id):
    user_id, is_admin = _acting_user()
    data = request.get_json(silent=True) or {}
    project_id = data.get("projectId")
    if project_id is not None:
        project_id = _required_id(project_id, "projectId")
    with get_db() as conn:
        row = tt_entries.update_time_entry(
            conn,
            entry_id,
            acting_user_id=user_id,
            is_admin=is_admin,
            project_id=project_id,
            entry_date=data.get("date"),
            duration_seconds=data.get("durationSeconds"),
            description=data.get("description"),
        )
    return jsonify(camelize(row))


@bp.route("/api/time-entries/<int:entry_id>", methods=["DELETE"])
def api_delete_entry(entry_id):
    user_id, is_admin = _acting_user()
    with get_db() as conn:
        tt_entries.delete_time_entry(conn, entry_id, acting_user_id=user_id, is_admin=is_admin)
    return jsonify({"message": "Time entry deleted"})


# ---------------------------------------------------------------------------
# Reports API
# ---------------------------------------------------------------------------


@bp.route("/api/reports/aggregate", methods=["GET"])
def api_aggregate_report():
    with get_db(readonly=True) as conn:
        rows = aggregate_time(
            conn,
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            group_by=request.args.get("groupBy") or None,
            time_unit=request.args.get("timeUnit", "day"),
            user_ids=_id_list("userIds"),
            project_ids=_id_list("projectIds"),
        )
    return jsonify(rows)


@bp.route("/api/monthly-summaries", methods=["GET"])
def api_monthly_summaries():
    with get_db(readonly=True) as conn:
        rows = list_monthly_summaries(conn, project_id=request.args.get("projectId", type=int))
    return jsonify([camelize(r) for r in rows])
