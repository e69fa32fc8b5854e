"""
Workforce Blueprint — Flask routes for departments, users, and user defaults.
"""

from flask import Blueprint, jsonify, request

from timebudget.core import get_db
from timebudget.core.errors import NotFoundError
from timebudget.core.output import camelize
from timebudget.workforce import departments as wf_dept
from timebudget.workforce import users as wf_users

bp = Blueprint("workforce", __name__, url_prefix="/workforce")


# ---------------------------------------------------------------------------
# Departments API
# ---------------------------------------------------------------------------


@bp.route("/api/departments", methods=["GET"])
def api_list_departments():
    with get_db(readonly=True) as conn:
        rows = wf_dept.list_departments(conn)
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/departments", methods=["POST"])
def api_create_department():
    data = request.get_json(silent=True) or {}
    with get_db() as conn:
        did = wf_dept.create_department(
            conn,
            data.get("name") or "",
            color=data.get("color", "info"),
            max_session_minutes=data.get("maxSessionMinutes", 480),
        )
        row = wf_dept.get_department(conn, did)
    return jsonify(camelize(row)), 201


@bp.route("/api/departments/<int:department_id>/default-descriptions", methods=["GET"])
def api_list_default_descriptions(department_id):
    with get_db(readonly=True) as conn:
        if wf_dept.get_department(conn, department_id) is None:
            raise NotFoundError(f"Department {department_id} not found")
        rows = wf_dept.list_default_descriptions(conn, department_id)
    return jsonify(rows)


@bp.route("/api/departments/<int:department_id>/default-descriptions", methods=["PUT"])
def api_replace_default_descriptions(department_id):
    data = request.get_json(silent=True) or {}
    with get_db() as conn:
        count = wf_dept.replace_default_descriptions(
            conn, department_id, data.get("descriptions") or []
        )
    return jsonify({"count": count, "message": "Default descriptions updated"})


# ---------------------------------------------------------------------------
# Users API
# ---------------------------------------------------------------------------


@bp.route("/api/users", methods=["GET"])
def api_list_users():
    with get_db(readonly=True) as conn:
        rows = wf_users.list_users(conn, department_id=request.args.get("departmentId", type=int))
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/users", methods=["POST"])
def api_create_user():
    data = request.get_json(silent=True) or {}
    with get_db() as conn:
        uid = wf_users.create_user(
            conn,
            data.get("name"),
            data.get("email"),
            department_id=data.get("departmentId"),
            rate_per_hour=data.get("ratePerHour"),
            role=data.get("role", "user"),
        )
        row = wf_users.get_user(conn, uid)
    return jsonify(camelize(row)), 201


@bp.route("/api/users/<int:user_id>/rate", methods=["PUT"])
def api_set_user_rate(user_id):
    data = request.get_json(silent=True) or {}
    with get_db() as conn:
        rate = wf_users.set_user_rate(conn, user_id, data.get("ratePerHour"))
    return jsonify({"id": user_id, "ratePerHour": rate})


@bp.route("/api/users/<int:user_id>/defaults", methods=["GET"])
def api_user_defaults(user_id):
    with get_db(readonly=True) as conn:
        return jsonify(wf_dept.get_user_defaults(conn, user_id))
