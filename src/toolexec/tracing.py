"""Lightweight span instrumentation around asynchronous bodies."""

from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from toolexec.session.wire import Wire

logger = logging.getLogger(__name__)

MAX_FINISHED_SPANS = 256


@dataclass
class Span:
    """Mutable metadata slots for one traced operation."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    input: Any = None
    output: Any = None
    error: BaseException | None = None
    start: float = field(default_factory=time.monotonic)
    duration_ms: float | None = None

    @property
    def closed(self) -> bool:
        return self.duration_ms is not None


class Tracer:
    """Creates spans and keeps the most recent finished ones.

    With ``enabled`` (dev tracing) every closed span is logged at INFO,
    otherwise at DEBUG.
    """

    def __init__(self, enabled: bool = False, wire: Wire | None = None) -> None:
        self.enabled = enabled
        self._wire = wire
        self.finished: deque[Span] = deque(maxlen=MAX_FINISHED_SPANS)

    @asynccontextmanager
    async def span(
        self, name: str, attributes: dict[str, Any] | None = None
    ) -> AsyncIterator[Span]:
        """Open a span; it is closed however the body exits."""
        span = Span(name=name, attributes=dict(attributes or {}))
        try:
            yield span
        except BaseException as e:
            if span.error is None:
                span.error = e
            raise
        finally:
            self._close(span)

    def _close(self, span: Span) -> None:
        span.duration_ms = (time.monotonic() - span.start) * 1000
        self.finished.append(span)

        level = logging.INFO if self.enabled else logging.DEBUG
        logger.log(
            level,
            "span %s [%s] %.1fms%s",
            span.name,
            span.id,
            span.duration_ms,
            f" error={span.error!r}" if span.error is not None else "",
        )

        if self._wire is not None:
            from toolexec.session.wire import EventType, WireEvent

            self._wire.send(
                WireEvent(
                    type=EventType.SPAN_END,
                    data={
                        "id": span.id,
                        "name": span.name,
                        "attributes": span.attributes,
                        "duration_ms": span.duration_ms,
                        "error": str(span.error) if span.error is not None else None,
                    },
                )
            )
