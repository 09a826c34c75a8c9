"""Helpers that turn plain view functions into JSON API endpoints."""

from __future__ import annotations

import json
import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from django.db import DatabaseError
from django.http import HttpRequest, JsonResponse

from . import errors

logger = logging.getLogger(__name__)


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    status: int = 200,
    **extra,
) -> JsonResponse:
    """Render the ``{success, data, message?, ...}`` envelope."""

    payload: Dict[str, Any] = {"success": True, "data": data}
    if message:
        payload["message"] = message
    payload.update(extra)
    return JsonResponse(payload, status=status)


def error_response(exc: errors.ServiceError) -> JsonResponse:
    return JsonResponse(exc.as_payload(), status=exc.status_code)


def parse_json_body(request: HttpRequest) -> Dict[str, Any]:
    """Decode the request body as a JSON object."""

    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode(request.encoding or "utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise errors.ValidationError("Request body must be valid JSON.") from exc
    if not isinstance(data, dict):
        raise errors.ValidationError("Request body must be a JSON object.")
    return data


def api_view(methods: Iterable[str]) -> Callable:
    """Guard a view with authentication, method checks and error rendering.

    Unauthenticated callers receive a ``session_expired`` envelope (401) so
    clients can clear their stored credentials and send the user back to the
    login screen. Service errors render with their own status code; database
    failures are reported as transient infrastructure errors.
    """

    allowed = {method.upper() for method in methods}

    def decorator(view):
        @wraps(view)
        def wrapper(request: HttpRequest, *args, **kwargs):
            if request.method not in allowed:
                response = JsonResponse(
                    {
                        "success": False,
                        "data": None,
                        "error": "method_not_allowed",
                        "message": f"Method {request.method} is not allowed.",
                    },
                    status=405,
                )
                response["Allow"] = ", ".join(sorted(allowed))
                return response

            if not request.user.is_authenticated:
                return error_response(errors.SessionExpired())

            try:
                return view(request, *args, **kwargs)
            except errors.ServiceError as exc:
                if exc.status_code >= 500:
                    logger.warning("%s %s failed: %s", request.method, request.path, exc)
                return error_response(exc)
            except DatabaseError:
                logger.exception("Database failure while handling %s %s", request.method, request.path)
                return error_response(errors.TransientInfra())

        return wrapper

    return decorator
