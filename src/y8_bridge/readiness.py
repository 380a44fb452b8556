"""Readiness gate: nothing is dispatched before the JS SDK finished init."""

from __future__ import annotations

import asyncio
from typing import Callable

from loguru import logger


class ReadinessGate:
    """One-way flag flipped by the SDK's ready signal.

    ``trigger_init`` starts the SDK's own initialization; it is invoked at
    most once, by :meth:`start` or by the first :meth:`ensure_ready`.
    """

    def __init__(self, trigger_init: Callable[[], None]) -> None:
        self._trigger_init = trigger_init
        self._init_started = False
        self._ready = asyncio.Event()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def init_started(self) -> bool:
        return self._init_started

    def start(self) -> None:
        if self._init_started or self.is_ready:
            return
        logger.info("y8.init requested")
        self._trigger_init()
        # a failed trigger leaves the gate retryable
        self._init_started = True

    async def ensure_ready(self) -> None:
        if self.is_ready:
            return
        self.start()
        await self._ready.wait()

    def mark_ready(self) -> None:
        if self.is_ready:
            logger.warning("y8.ready signalled again, ignoring")
            return
        logger.info("y8.ready")
        self._ready.set()
