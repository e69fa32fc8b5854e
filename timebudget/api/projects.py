"""
Projects Blueprint — Flask routes for projects and budget reports.
"""

from flask import Blueprint, jsonify, request

from timebudget.core import get_db
from timebudget.core.errors import NotFoundError
from timebudget.core.output import camelize
from timebudget.projects import projects as proj
from timebudget.reporting.breakdown import get_monthly_breakdown
from timebudget.reporting.lifetime import get_financial_overview, get_lifetime_summary

bp = Blueprint("projects", __name__, url_prefix="/projects")

_TRUTHY = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Projects API
# ---------------------------------------------------------------------------


@bp.route("/api/projects", methods=["GET"])
def api_list_projects():
    with get_db(readonly=True) as conn:
        rows = proj.list_projects(conn, search=request.args.get("search"))
    return jsonify([camelize(r) for r in rows])


@bp.route("/api/projects", methods=["POST"])
def api_create_project():
    data = request.get_json(silent=True) or {}
    with get_db() as conn:
        pid = proj.create_project(conn, data.get("name") or "")
    return jsonify({"id": pid, "message": "Project created"}), 201


@bp.route("/api/projects/<int:project_id>", methods=["GET"])
def api_get_project(project_id):
    with get_db(readonly=True) as conn:
        p = proj.get_project(conn, project_id)
    if not p:
        raise NotFoundError(f"Project {project_id} not found")
    return jsonify(camelize(p))


# ---------------------------------------------------------------------------
# Reports API
# ---------------------------------------------------------------------------


@bp.route("/api/projects/<int:project_id>/monthly-breakdown", methods=["GET"])
def api_monthly_breakdown(project_id):
    include_idle = request.args.get("includeIdle", "").lower() in _TRUTHY
    with get_db(readonly=True) as conn:
        report = get_monthly_breakdown(
            conn,
            project_id,
            request.args.get("year"),
            request.args.get("month"),
            include_idle_departments=include_idle,
        )
    return jsonify(report.to_dict())


@bp.route("/api/projects/<int:project_id>/lifetime", methods=["GET"])
def api_lifetime(project_id):
    with get_db(readonly=True) as conn:
        return jsonify(get_lifetime_summary(conn, project_id))


@bp.route("/api/projects/<int:project_id>/financials", methods=["GET"])
def api_financials(project_id):
    with get_db(readonly=True) as conn:
        return jsonify(get_financial_overview(conn, project_id))
