"""Cancellation token: the signal a caller flips when it no longer wants a result.

The executor never aborts on its own; it only reads ``signal.aborted`` once,
after the invocation settles. Invocations that want to stop early can poll
``aborted``, ``await signal.wait()``, or register a listener.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_ABORT_REASON = "Aborted"


class AbortSignal:
    """Read side of an abort controller."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: str | None = None
        self._event = asyncio.Event()
        self._listeners: list[Callable[[str], None]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> str | None:
        return self._reason

    async def wait(self) -> str:
        """Block until the signal is aborted. Returns the abort reason."""
        await self._event.wait()
        return self._reason or DEFAULT_ABORT_REASON

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Call ``callback(reason)`` on abort, or immediately if already aborted."""
        if self._aborted:
            callback(self._reason or DEFAULT_ABORT_REASON)
            return
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _fire(self, reason: str) -> None:
        self._aborted = True
        self._reason = reason
        self._event.set()
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            try:
                callback(reason)
            except Exception:
                logger.warning("Abort listener raised", exc_info=True)


class AbortController:
    """Owns an :class:`AbortSignal` and decides when it fires."""

    def __init__(self) -> None:
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    def abort(self, reason: str = DEFAULT_ABORT_REASON) -> None:
        """Abort the signal. Later calls are no-ops."""
        if self._signal.aborted:
            return
        logger.debug("Abort requested: %s", reason)
        self._signal._fire(reason)
