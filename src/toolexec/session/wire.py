"""Wire protocol: decouples tool execution from whoever is watching.

Events flow from the executor (and its telemetry and tracing) to
subscribers. The CLI subscribes to render them; tests subscribe to assert
on them.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any


class EventType(enum.Enum):
    TOOL_CALL_UPDATE = "tool_call_update"
    TOOL_OUTPUT = "tool_output"
    TOOL_OUTPUT_TRUNCATED = "tool_output_truncated"
    SPAN_END = "span_end"
    ERROR = "error"
    STATUS = "status"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire:
    """Async message bus: producer -> subscribers.

    Single-producer, multi-consumer broadcast.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[WireEvent | None]] = []
        self._closed: bool = False

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` has been called.
        """
        if self._closed:
            return
        for q in self._subscribers:
            q.put_nowait(event)

    def send_status(self, message: str) -> None:
        self.send(WireEvent(type=EventType.STATUS, data={"message": message}))

    def send_error(self, error: str) -> None:
        self.send(WireEvent(type=EventType.ERROR, data={"error": error}))

    def send_tool_output(self, call_id: str, chunk: str) -> None:
        self.send(
            WireEvent(
                type=EventType.TOOL_OUTPUT,
                data={"call_id": call_id, "chunk": chunk},
            )
        )

    def send_tool_call_update(
        self, call_id: str, status: str, pid: int | None = None
    ) -> None:
        self.send(
            WireEvent(
                type=EventType.TOOL_CALL_UPDATE,
                data={"call_id": call_id, "status": status, "pid": pid},
            )
        )

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        if q in self._subscribers:
            self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        if self._closed:
            return
        self._closed = True
        for q in self._subscribers:
            q.put_nowait(None)
