"""Exception types for the Y8 bridge."""

from __future__ import annotations

from typing import Any


class Y8Error(Exception):
    """Base exception for the Y8 bridge."""


class MalformedEnvelopeError(Y8Error):
    """Raised when a response envelope cannot be split into kind, id and body."""

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"malformed response envelope ({reason}): {raw!r}")


class DuplicateCallError(Y8Error):
    """Raised when a call id is registered while it is still pending."""

    def __init__(self, call_id: int) -> None:
        self.call_id = call_id
        super().__init__(f"call id {call_id} is already pending")


class RelayError(Y8Error):
    """Raised when the HTTP relay returns a non-2xx response."""

    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Y8 relay error {status}: {body}")
