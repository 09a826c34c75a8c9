"""Explicit session state handed to the API client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .storage import TTLStore

DEFAULT_TIMEOUT = 30.0
DEFAULT_CREDENTIAL_TTL = 60 * 30


@dataclass
class ClientSession:
    """Connection settings plus persisted credentials and UI flags."""

    base_url: str
    store: TTLStore
    timeout: float = DEFAULT_TIMEOUT
    session_cookie_name: str = "sessionid"
    csrf_cookie_name: str = "csrftoken"
    credential_ttl: float = DEFAULT_CREDENTIAL_TTL

    _SESSION_KEY = "auth.session_id"
    _CSRF_KEY = "auth.csrf_token"
    _DISMISS_PREFIX = "dismissed."

    def save_credentials(self, session_id: str, csrf_token: Optional[str] = None) -> None:
        self.store.set(self._SESSION_KEY, session_id, ttl=self.credential_ttl)
        if csrf_token:
            self.store.set(self._CSRF_KEY, csrf_token, ttl=self.credential_ttl)

    def clear_credentials(self) -> None:
        self.store.delete(self._SESSION_KEY, self._CSRF_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.store.get(self._SESSION_KEY) is not None

    @property
    def csrf_token(self) -> Optional[str]:
        return self.store.get(self._CSRF_KEY)

    def cookies(self) -> Dict[str, str]:
        cookies = {}
        session_id = self.store.get(self._SESSION_KEY)
        if session_id:
            cookies[self.session_cookie_name] = session_id
        csrf_token = self.csrf_token
        if csrf_token:
            cookies[self.csrf_cookie_name] = csrf_token
        return cookies

    def dismiss(self, flag: str, ttl: Optional[float] = None) -> None:
        """Remember that the user dismissed a banner or notice."""
        self.store.set(self._DISMISS_PREFIX + flag, True, ttl=ttl)

    def is_dismissed(self, flag: str) -> bool:
        return bool(self.store.get(self._DISMISS_PREFIX + flag, False))
