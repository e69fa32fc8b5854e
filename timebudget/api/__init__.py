"""
timebudget Web Application Factory

Centralized Flask app that registers module blueprints.
Mirrors how cli/main.py assembles module CLIs.
"""

from decimal import Decimal

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from timebudget.core import get_logger
from timebudget.core.errors import TimeBudgetError

logger = get_logger("timebudget.api")


class TimeBudgetJSONProvider(DefaultJSONProvider):
    """Serialize Decimal money as a JSON number instead of a string."""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        return DefaultJSONProvider.default(o)


def create_app() -> Flask:
    """Create and configure the timebudget Flask application."""
    app = Flask(__name__)
    app.json = TimeBudgetJSONProvider(app)

    # ── Security headers ─────────────────────────────────────────────────
    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(TimeBudgetError)
    def handle_domain_error(exc: TimeBudgetError):
        if exc.status_code >= 500:
            logger.error("Unhandled domain error: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error during request")
        return jsonify({"error": "Internal server error"}), 500

    # ── Register blueprints ──────────────────────────────────────────────
    from timebudget.api.projects import bp as projects_bp
    app.register_blueprint(projects_bp)

    from timebudget.api.ledger import bp as ledger_bp
    app.register_blueprint(ledger_bp)

    from timebudget.api.timetracker import bp as timetracker_bp
    app.register_blueprint(timetracker_bp)

    from timebudget.api.workforce import bp as workforce_bp
    app.register_blueprint(workforce_bp)

    @app.route("/health")
    def health():
        from timebudget import __version__

        return jsonify({"status": "ok", "version": __version__})

    return app
