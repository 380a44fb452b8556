"""Pending-call registry: one waiter per in-flight call id."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from loguru import logger

from .errors import DuplicateCallError
from .types import Response

Callback = Callable[[Response[Any]], None]
Waiter = asyncio.Future[Response[Any]] | Callback


class PendingCalls:
    """Maps call ids to the waiter that receives their response.

    A waiter is either a future the caller awaits or a plain callback. An
    entry leaves the table in the same step its waiter is resolved, so no id
    can be resolved twice.
    """

    def __init__(self, first_call_id: int = 10000) -> None:
        self._last_id = first_call_id
        self._waiters: dict[int, Waiter] = {}

    @property
    def last_id(self) -> int:
        return self._last_id

    @property
    def pending(self) -> int:
        return len(self._waiters)

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._waiters

    def mint(self) -> int:
        self._last_id += 1
        return self._last_id

    def register(self, call_id: int, waiter: Waiter) -> None:
        if call_id in self._waiters:
            raise DuplicateCallError(call_id)
        self._waiters[call_id] = waiter

    def discard(self, call_id: int) -> None:
        self._waiters.pop(call_id, None)

    def resolve(self, call_id: int, result: Response[Any]) -> bool:
        """Hand ``result`` to the waiter for ``call_id``.

        Returns False when there is nobody left to receive it.
        """
        waiter = self._waiters.pop(call_id, None)
        if waiter is None:
            logger.warning("y8.resolve stale id={} (not pending)", call_id)
            return False

        result.call_id = call_id
        if isinstance(waiter, asyncio.Future):
            if waiter.done():
                logger.warning("y8.resolve stale id={} (caller is gone)", call_id)
                return False
            waiter.set_result(result)
            return True

        try:
            waiter(result)
        except Exception:
            logger.exception("y8.resolve callback failed id={}", call_id)
        return True
