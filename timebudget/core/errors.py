"""
Error taxonomy for timebudget.

Business functions raise these; the API layer maps them to HTTP status
codes and the CLI to exit codes. Callers branch on the class, never on
the message.
"""

from typing import Any, Dict, Optional


class TimeBudgetError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(TimeBudgetError, ValueError):
    """Rejected input: non-positive amount, malformed date, bad range."""

    status_code = 400


class NotFoundError(TimeBudgetError, LookupError):
    """Unknown project, user, entry, injection, or recurring definition."""

    status_code = 404


class ConflictError(TimeBudgetError):
    """Write would violate a uniqueness rule; existing rows are unchanged."""

    status_code = 409


class ForbiddenError(TimeBudgetError):
    """Acting user may not modify the target row."""

    status_code = 403
