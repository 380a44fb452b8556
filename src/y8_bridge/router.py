"""Entry points the JS SDK side calls to deliver results into the bridge."""

from __future__ import annotations

from loguru import logger

from .codec import decode, decode_auth, parse_envelope
from .readiness import ReadinessGate
from .registry import PendingCalls
from .session import SessionState
from .types import Authorisation


class Y8Router:
    """Routes SDK deliveries to the pending call they answer.

    Domain responses carry their call id in the envelope. Auth responses do
    not, so the dispatcher announces the id of the single auth call it has in
    flight through :meth:`expect_auth`.
    """

    def __init__(
        self, calls: PendingCalls, session: SessionState, gate: ReadinessGate
    ) -> None:
        self._calls = calls
        self._session = session
        self._gate = gate
        self._auth_call_id: int | None = None

    @property
    def auth_call_id(self) -> int | None:
        return self._auth_call_id

    def expect_auth(self, call_id: int) -> None:
        if self._auth_call_id is not None:
            logger.warning(
                "y8.auth id={} replaces unanswered id={}", call_id, self._auth_call_id
            )
        self._auth_call_id = call_id

    def forget_auth(self, call_id: int) -> None:
        if self._auth_call_id == call_id:
            self._auth_call_id = None

    def on_ready(self) -> None:
        self._gate.mark_ready()

    def on_response(self, raw: str) -> None:
        """Handle ``<kind>[<id>]=<body>``.

        Raises :class:`~y8_bridge.errors.MalformedEnvelopeError` when the
        envelope cannot be split; nothing is resolved in that case.
        """
        kind, call_id, body = parse_envelope(raw)
        logger.debug("y8.response id={} kind={} body={}", call_id, kind, body)

        response = decode(kind, body)
        if isinstance(response.data, Authorisation):
            self._session.replace(response.data)
            if call_id == self._auth_call_id:
                self._auth_call_id = None
        self._calls.resolve(call_id, response)

    def on_auth_response(self, raw: str) -> None:
        logger.debug("y8.auth.response body={}", raw)
        response = decode_auth(raw)
        self._session.replace(response.data or Authorisation())

        call_id = self._auth_call_id
        if call_id is None:
            logger.info(
                "y8.auth.response unsolicited, session updated logged_in={}",
                response.success,
            )
            return
        self._auth_call_id = None
        self._calls.resolve(call_id, response)

