"""Session state: the last authorisation received from the SDK."""

from __future__ import annotations

from .codec import auth_succeeded
from .types import Authorisation, Details


class SessionState:
    """Holds the current snapshot; accessors return ``""`` when a field is absent."""

    def __init__(self) -> None:
        self._snapshot: Authorisation | None = None

    @property
    def snapshot(self) -> Authorisation | None:
        return self._snapshot

    def replace(self, snapshot: Authorisation) -> None:
        self._snapshot = snapshot

    def is_logged_in(self) -> bool:
        return auth_succeeded(self._snapshot)

    def session_token(self) -> str:
        if self._snapshot is None or self._snapshot.authResponse is None:
            return ""
        return self._snapshot.authResponse.access_token or ""

    def pid(self) -> str:
        return self._detail("pid")

    def first_name(self) -> str:
        return self._detail("first_name")

    def nickname(self) -> str:
        return self._detail("nickname")

    def date_of_birth(self) -> str:
        """Date of birth as ``Y-M-D``."""
        return self._detail("dob")

    def gender(self) -> str:
        return self._detail("gender")

    def language(self) -> str:
        return self._detail("language")

    def locale(self) -> str:
        return self._detail("locale")

    def _details(self) -> Details | None:
        if self._snapshot is None or self._snapshot.authResponse is None:
            return None
        return self._snapshot.authResponse.details

    def _detail(self, name: str) -> str:
        details = self._details()
        if details is None:
            return ""
        return getattr(details, name) or ""
