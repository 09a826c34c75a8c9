"""Structured error taxonomy shared by the service layer and the API client.

Every failure that crosses the service boundary carries a ``kind`` tag and a
human readable ``message``. The module has no Django imports so the HTTP
client can raise the same classes when it decodes an error envelope.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class ServiceError(Exception):
    """Base class for failures surfaced to API callers."""

    kind = "error"
    status_code = 500
    default_message = "The request could not be completed."

    def __init__(self, message: Optional[str] = None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_payload(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "success": False,
            "data": None,
            "error": self.kind,
            "message": self.message,
        }
        payload.update(self.extra)
        return payload


class ValidationError(ServiceError):
    """Malformed or missing input, optionally with field-level details."""

    kind = "validation_error"
    status_code = 400
    default_message = "The submitted data is invalid."

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        self.errors = errors or {}
        if message is None and self.errors:
            field, messages = next(iter(self.errors.items()))
            message = messages[0] if messages else f"Invalid value for {field}."
        super().__init__(message)

    def as_payload(self) -> Dict[str, object]:
        payload = super().as_payload()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Thread not found."


class PermissionDenied(ServiceError):
    kind = "permission_denied"
    status_code = 403
    default_message = "You do not have permission to perform this action."


class Conflict(ServiceError):
    kind = "conflict"
    status_code = 409
    default_message = "The request conflicts with the current state."


class TransientInfra(ServiceError):
    """Network or storage hiccup; the caller may retry manually."""

    kind = "transient"
    status_code = 503
    default_message = "The service is temporarily unavailable. Please try again."


class SessionExpired(ServiceError):
    kind = "session_expired"
    status_code = 401
    default_message = "Your session has expired. Please sign in again."


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        ValidationError,
        NotFound,
        PermissionDenied,
        Conflict,
        TransientInfra,
        SessionExpired,
    )
}


def error_for_status(status_code: int):
    """Return the error class matching an HTTP status, if one is defined."""

    for cls in ERRORS_BY_KIND.values():
        if cls.status_code == status_code:
            return cls
    return None
