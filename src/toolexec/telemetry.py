"""Telemetry records emitted by the executor."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolexec.session.wire import Wire

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOutputTruncatedEvent:
    """A successful tool output was too large and got replaced by a stub."""

    prompt_id: str
    tool_name: str
    original_content_length: int
    truncated_content_length: int
    threshold: int
    lines: int


def log_tool_output_truncated(
    event: ToolOutputTruncatedEvent, wire: Wire | None = None
) -> None:
    """Record a truncation: always logged, also published when a wire is attached."""
    logger.info(
        "Truncated %s output: %d -> %d chars (threshold=%d, lines=%d)",
        event.tool_name,
        event.original_content_length,
        event.truncated_content_length,
        event.threshold,
        event.lines,
    )
    if wire is not None:
        from toolexec.session.wire import EventType, WireEvent

        wire.send(WireEvent(type=EventType.TOOL_OUTPUT_TRUNCATED, data=asdict(event)))
