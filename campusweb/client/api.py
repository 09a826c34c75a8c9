"""
HTTP client for the feedback thread API.

Wraps ``httpx`` with the session credentials held by :class:`ClientSession`,
validates every response with the pydantic models in :mod:`.schemas` and
turns error envelopes back into the shared :mod:`campusweb.core.errors`
classes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from campusweb.core import errors

from .schemas import (
    Envelope,
    FacultyMember,
    MalformedResponse,
    MigrationSummary,
    ReplyData,
    ThreadDetail,
    ThreadList,
    ThreadSummary,
)
from .session import ClientSession

logger = logging.getLogger(__name__)

API_PREFIX = "/api/feedback"
UNSAFE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

FILTER_PARAMS = {
    "status": "status",
    "priority": "priority",
    "type": "type",
    "created_by_role": "createdByRole",
    "search": "search",
    "page": "page",
    "limit": "limit",
    "include_deleted": "includeDeleted",
}

M = TypeVar("M", bound=BaseModel)


class FeedbackClient:
    """Typed access to ``/api/feedback``.

    Pass ``transport`` to route requests through an ``httpx`` transport other
    than the network one (tests use ``httpx.MockTransport``).
    """

    def __init__(self, session: ClientSession, transport: Optional[httpx.BaseTransport] = None):
        self.session = session
        self._http = httpx.Client(
            base_url=session.base_url,
            timeout=session.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "FeedbackClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- plumbing ----------------------------------------------------------

    def _send(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {}
        if method in UNSAFE_METHODS and self.session.csrf_token:
            headers["X-CSRFToken"] = self.session.csrf_token

        self._http.cookies.clear()
        for name, value in self.session.cookies().items():
            self._http.cookies.set(name, value)

        try:
            response = self._http.request(method, API_PREFIX + path, json=json, params=params, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise errors.TransientInfra() from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse(f"Non-JSON response (HTTP {response.status_code}).") from exc
        if not isinstance(payload, dict):
            raise MalformedResponse("Response body is not a JSON object.")

        if response.is_success and payload.get("success") is True:
            return payload
        self._raise_for_envelope(response.status_code, payload)
        raise MalformedResponse("Unsuccessful response without an error envelope.")

    def _raise_for_envelope(self, status_code: int, payload: Dict[str, Any]) -> None:
        kind = payload.get("error")
        message = payload.get("message")
        error_cls = errors.ERRORS_BY_KIND.get(kind) or errors.error_for_status(status_code)

        if error_cls is errors.SessionExpired or status_code == 401:
            self.session.clear_credentials()
            raise errors.SessionExpired(message)
        if error_cls is errors.ValidationError:
            raise errors.ValidationError(message, errors=payload.get("errors"))
        if error_cls is not None:
            raise error_cls(message)
        if status_code >= 500:
            raise errors.TransientInfra(message)
        raise errors.ServiceError(message)

    @staticmethod
    def _parse(model: Type[M], payload: Any) -> M:
        try:
            return model.model_validate(payload)
        except SchemaError as exc:
            raise MalformedResponse(str(exc)) from exc

    def _data(self, model, payload: Dict[str, Any]):
        return self._parse(Envelope[model], payload).data

    # -- reads -------------------------------------------------------------

    def list_threads(self, **filters) -> ThreadList:
        """Fetch one page of visible threads plus the per-status counts.

        Keyword arguments are ``status``, ``priority``, ``type``,
        ``created_by_role``, ``search``, ``page``, ``limit`` and
        ``include_deleted``.
        """
        unknown = set(filters) - set(FILTER_PARAMS)
        if unknown:
            raise TypeError(f"Unknown filter(s): {', '.join(sorted(unknown))}")

        params = {}
        for name, value in filters.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            params[FILTER_PARAMS[name]] = value
        return self._parse(ThreadList, self._send("GET", "/threads", params=params))

    def get_thread(self, thread_id: int) -> ThreadDetail:
        return self._data(ThreadDetail, self._send("GET", f"/threads/{thread_id}"))

    def list_faculty(self) -> List[FacultyMember]:
        return self._data(List[FacultyMember], self._send("GET", "/faculty"))

    # -- writes ------------------------------------------------------------

    def create_thread(
        self,
        title: str,
        message: str,
        target_role: str = "admin",
        target_user_id: Optional[int] = None,
        type: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> ThreadSummary:
        body: Dict[str, Any] = {"title": title, "message": message, "targetRole": target_role}
        if target_user_id is not None:
            body["targetUserId"] = target_user_id
        if type:
            body["type"] = type
        if priority:
            body["priority"] = priority
        return self._data(ThreadSummary, self._send("POST", "/threads", json=body))

    def reply(self, thread_id: int, message: str) -> ReplyData:
        payload = self._send("POST", f"/threads/{thread_id}/reply", json={"message": message})
        return self._data(ReplyData, payload)

    def update_status(self, thread_id: int, status: str) -> ThreadSummary:
        payload = self._send("PUT", f"/threads/{thread_id}/status", json={"status": status})
        return self._data(ThreadSummary, payload)

    def update_priority(self, thread_id: int, priority: str) -> ThreadSummary:
        payload = self._send("PUT", f"/threads/{thread_id}/priority", json={"priority": priority})
        return self._data(ThreadSummary, payload)

    def delete_thread(self, thread_id: int) -> ThreadSummary:
        return self._data(ThreadSummary, self._send("DELETE", f"/threads/{thread_id}"))

    def restore_thread(self, thread_id: int) -> ThreadSummary:
        return self._data(ThreadSummary, self._send("POST", f"/threads/{thread_id}/restore"))

    def migrate_v1(self) -> MigrationSummary:
        return self._data(MigrationSummary, self._send("POST", "/migrate-v1"))

