"""
The JS SDK boundary.

:class:`SdkPort` is everything the bridge needs from the SDK side.
:class:`HttpRelay` implements it for hosts where the SDK runs in a page
that relays calls over HTTP and pushes results back as Server-Sent Events.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import httpx
from loguru import logger

from .config import Y8Settings
from .errors import MalformedEnvelopeError, RelayError
from .router import Y8Router


class SdkPort(Protocol):
    """Fire-and-forget primitives of the JS SDK."""

    def init(self, app_id: str, ads_id: str) -> None:
        """Start SDK init; the ready signal arrives later through the router."""

    def call(self, call_id: int, request: str, payload: str) -> None:
        """Issue a request; exactly one response arrives later through the router."""


# ---------------------------------------------------------------------------
# HTTP relay
# ---------------------------------------------------------------------------


class HttpRelay:
    """SDK port backed by an HTTP relay.

    ``init`` and ``call`` post to the relay from background tasks on the
    running loop; :meth:`listen` feeds the relay's event stream into a
    router.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
        )
        self._tasks: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: Y8Settings, token: str | None = None) -> HttpRelay:
        """Build a relay from ``relay_url`` and ``relay_timeout``."""
        if not settings.relay_url:
            raise ValueError("relay_url is not configured")
        return cls(settings.relay_url, token=token, timeout=settings.relay_timeout)

    async def close(self) -> None:
        await self.drain()
        await self._http.aclose()

    async def __aenter__(self) -> HttpRelay:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # --- SdkPort ---

    def init(self, app_id: str, ads_id: str) -> None:
        self._spawn(self._post("/init", json={"app_id": app_id, "ads_id": ads_id}))

    def call(self, call_id: int, request: str, payload: str) -> None:
        body = {"id": call_id, "request": request, "payload": payload}
        self._spawn(self._post("/call", json=body))

    async def drain(self) -> None:
        """Wait until every posted request has been answered by the relay."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Streaming ---

    async def listen(self, router: Y8Router) -> None:
        """Deliver relay events to ``router`` until the stream ends."""
        headers = {"Accept": "text/event-stream"}
        async with self._http.stream("GET", "/events", headers=headers) as resp:
            if resp.status_code >= 400:
                await resp.aread()
                raise RelayError(resp.status_code, resp.text)
            data_buffer: list[str] = []

            async for line in resp.aiter_lines():
                if line.startswith("data:"):
                    data_buffer.append(line[5:].strip())
                elif line == "" and data_buffer:
                    raw = "\n".join(data_buffer)
                    data_buffer.clear()
                    self._deliver(router, raw)
            if data_buffer:
                self._deliver(router, "\n".join(data_buffer))

    def _deliver(self, router: Y8Router, raw: str) -> None:
        try:
            event = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("y8.relay undecodable event data={}", raw)
            return
        if not isinstance(event, dict):
            logger.warning("y8.relay unexpected event data={}", raw)
            return

        kind = event.get("type")
        payload = event.get("payload")
        if kind == "ready":
            router.on_ready()
        elif kind == "auth":
            if not isinstance(payload, str):
                payload = json.dumps(payload)
            router.on_auth_response(payload)
        elif kind == "response":
            try:
                router.on_response(str(payload))
            except MalformedEnvelopeError as exc:
                logger.warning("y8.relay dropped response: {}", exc)
        else:
            logger.warning("y8.relay unknown event type={}", kind)

    # --- HTTP primitives ---

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("y8.relay request failed")

    async def _post(self, path: str, json: Any = None) -> None:
        resp = await self._http.post(path, json=json)
        self._handle_response(resp)

    def _handle_response(self, resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except Exception:
                body = resp.text
            raise RelayError(resp.status_code, body)
