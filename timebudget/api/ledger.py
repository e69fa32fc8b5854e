"""
Ledger Blueprint — Flask routes for budget injections, recurring budgets,
and department budget splits.
"""

from flask import Blueprint, jsonify, request

from timebudget.core import get_db
from timebudget.core.errors import NotFoundError, ValidationError
from timebudget.core.output import camelize
from timebudget.projects import ledger

bp = Blueprint("ledger", __name__, url_prefix="/ledger")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _required_id(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} is required", details={"field": field})


def _project_arg() -> int:
    return _required_id(request.args.get("projectId"), "projectId")


# ---------------------------------------------------------------------------
# Budget injections API
# ---------------------------------------------------------------------------


@bp.route("/api/budget-injections", methods=["GET"])
def api_list_injections():
    project_id = _project_arg()
    with get_db(readonly=True) as conn:
        rows = ledger.list_budget_injections(conn, project_id)
        total = ledger.get_lifetime_budget(conn, project_id)
    return jsonify({"injections": [camelize(r) for r in rows], "totalBudget": total})


@bp.route("/api/budget-injections", methods=["POST"])
def api_create_injection():
    data = _payload()
    with get_db() as conn:
        iid = ledger.create_budget_injection(
            conn,
            project_id=_required_id(data.get("projectId"), "projectId"),
            injection_date=data.get("date"),
            amount=data.get("amount"),
            description=data.get("description"),
        )
        row = ledger.get_budget_injection(conn, iid)
    return jsonify(camelize(row)), 201


@bp.route("/api/budget-injections/<int:injection_id>", methods=["GET"])
def api_get_injection(injection_id):
    with get_db(readonly=True) as conn:
        row = ledger.get_budget_injection(conn, injection_id)
    if not row:
        raise NotFoundError(f"Budget injection {injection_id} not found")
    return jsonify(camelize(row))


@bp.route("/api/budget-injections/<int:injection_id>", methods=["PUT"])
def api_update_injection(injection_id):
    data = _payload()
    with get_db() as conn:
        row = ledger.update_budget_injection(
            conn,
            injection_id,
            injection_date=data.get("date"),
            amount=data.get("amount"),
            description=data.get("description"),
        )
    return jsonify(camelize(row))


@bp.route("/api/budget-injections/<int:injection_id>", methods=["DELETE"])
def api_delete_injection(injection_id):
    with get_db() as conn:
        ledger.delete_budget_injection(conn, injection_id)
    return jsonify({"message": "Budget injection deleted"})


# ---------------------------------------------------------------------------
# Recurring budgets API
# ---------------------------------------------------------------------------


@bp.route("/api/recurring-budgets", methods=["GET"])
def api_list_recurring():
    project_id = _project_arg()
    include_inactive = request.args.get("activeOnly", "").lower() not in {"1", "true"}
    with get_db(readonly=True) as conn:
        rows = ledger.list_recurring_budgets(conn, project_id, include_inactive=include_inactive)
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/recurring-budgets", methods=["POST"])
def api_create_recurring():
    data = _payload()
    with get_db() as conn:
        rid = ledger.create_recurring_budget(
            conn,
            project_id=_required_id(data.get("projectId"), "projectId"),
            amount=data.get("amount"),
            frequency=data.get("frequency"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            description=data.get("description"),
        )
        row = ledger.get_recurring_budget(conn, rid)
    return jsonify(camelize(row)), 201


@bp.route("/api/recurring-budgets/<int:recurring_id>", methods=["GET"])
def api_get_recurring(recurring_id):
    with get_db(readonly=True) as conn:
        row = ledger.get_recurring_budget(conn, recurring_id)
    if not row:
        raise NotFoundError(f"Recurring budget {recurring_id} not found")
    return jsonify(camelize(row))


@bp.route("/api/recurring-budgets/<int:recurring_id>", methods=["PUT"])
def api_update_recurring(recurring_id):
    data = _payload()
    with get_db() as conn:
        row = ledger.update_recurring_budget(
            conn,
            recurring_id,
            amount=data.get("amount"),
            frequency=data.get("frequency"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            description=data.get("description"),
        )
    return jsonify(camelize(row))


@bp.route("/api/recurring-budgets/<int:recurring_id>/deactivate", methods=["PATCH"])
def api_deactivate_recurring(recurring_id):
    data = _payload()
    with get_db() as conn:
        row = ledger.deactivate_recurring_budget(conn, recurring_id, on=data.get("on"))
    return jsonify(camelize(row))


# ---------------------------------------------------------------------------
# Department splits API
# ---------------------------------------------------------------------------


@bp.route("/api/department-splits", methods=["GET"])
def api_list_splits():
    project_id = _project_arg()
    with get_db(readonly=True) as conn:
        rows = ledger.list_department_splits(conn, project_id)
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/department-splits", methods=["POST"])
def api_create_split():
    data = _payload()
    with get_db() as conn:
        sid = ledger.create_department_split(
            conn,
            project_id=_required_id(data.get("projectId"), "projectId"),
            department_id=_required_id(data.get("departmentId"), "departmentId"),
            budget_amount=data.get("budgetAmount"),
        )
        row = ledger.get_department_split(conn, sid)
    return jsonify(camelize(row)), 201


@bp.route("/api/department-splits/<int:split_id>", methods=["PUT"])
def api_update_split(split_id):
    data = _payload()
    with get_db() as conn:
        row = ledger.update_department_split(conn, split_id, budget_amount=data.get("budgetAmount"))
    return jsonify(camelize(row))


@bp.route("/api/department-splits/<int:split_id>", methods=["DELETE"])
def api_delete_split(split_id):
    with get_db() as conn:
        ledger.delete_department_split(conn, split_id)
    return jsonify({"message": "Department split deleted"})
