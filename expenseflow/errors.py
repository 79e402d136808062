"""Typed errors raised by the approval engine and rendered by the API layer."""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask


class ApprovalError(Exception):
    """Base class for every error the engine surfaces to callers."""

    code = "APPROVAL_ERROR"
    http_status = 400

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class ValidationError(ApprovalError):
    """Missing or malformed input, rejected before any state is read."""

    code = "MISSING_FIELDS"
    http_status = 400


class NotFoundError(ApprovalError):
    code = "NOT_FOUND"
    http_status = 404


class NoActiveStepError(ApprovalError):
    code = "NO_ACTIVE_STEP"
    http_status = 400


class UnauthorizedError(ApprovalError):
    """The approver matches no step in the active group."""

    code = "UNAUTHORIZED"
    http_status = 403


class ConflictError(ApprovalError):
    """The expense is already in a terminal state."""

    code = "CONFLICT"
    http_status = 409


class ServerError(ApprovalError):
    code = "SERVER_ERROR"
    http_status = 500


def register_error_handlers(app: Flask) -> None:
    """Render engine errors as JSON responses."""

    @app.errorhandler(ApprovalError)
    def handle_approval_error(exc: ApprovalError):
        if exc.http_status >= 500:
            app.logger.error("Approval engine failure: %s", exc.message)
        return exc.to_dict(), exc.http_status
