"""Call state model: the lifecycle of one tool call as a tagged union.

    pending ──► executing ──► success | error | cancelled
       └──────────────────────►

Every variant carries the originating request and the confirmation outcome.
``executing`` is only entered from ``pending`` and only for invocations that
expose a process id. Terminal variants carry the response and the duration.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from toolexec.call.errors import ToolErrorType
    from toolexec.tool.base import BaseTool, ToolInvocation


class ToolConfirmationOutcome(str, enum.Enum):
    """How the user (or policy) approved the call before it ran."""

    PROCEED_ONCE = "proceed_once"
    PROCEED_ALWAYS = "proceed_always"
    PROCEED_ALWAYS_TOOL = "proceed_always_tool"
    MODIFY_WITH_EDITOR = "modify_with_editor"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call as requested by the model."""

    call_id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    prompt_id: str = ""


@dataclass(frozen=True)
class ToolCallResponse:
    """Terminal payload handed back to the transcript."""

    call_id: str
    response_parts: list[dict[str, Any]]
    result_display: str | None = None
    error: Exception | None = None
    error_type: ToolErrorType | None = None
    output_file: str | None = None
    content_length: int | None = None


@dataclass(frozen=True)
class PendingCall:
    status: Literal["pending"] = field(default="pending", init=False)
    request: ToolCallRequest
    tool: BaseTool | None = None
    invocation: ToolInvocation | None = None
    start_time: float | None = None
    outcome: ToolConfirmationOutcome | None = None


@dataclass(frozen=True)
class ExecutingCall:
    status: Literal["executing"] = field(default="executing", init=False)
    request: ToolCallRequest
    tool: BaseTool
    invocation: ToolInvocation
    pid: int | None = None
    start_time: float | None = None
    outcome: ToolConfirmationOutcome | None = None


@dataclass(frozen=True)
class SuccessfulCall:
    status: Literal["success"] = field(default="success", init=False)
    request: ToolCallRequest
    tool: BaseTool
    invocation: ToolInvocation
    response: ToolCallResponse
    duration_ms: float | None = None
    outcome: ToolConfirmationOutcome | None = None


@dataclass(frozen=True)
class ErroredCall:
    status: Literal["error"] = field(default="error", init=False)
    request: ToolCallRequest
    response: ToolCallResponse
    tool: BaseTool | None = None
    duration_ms: float | None = None
    outcome: ToolConfirmationOutcome | None = None


@dataclass(frozen=True)
class CancelledCall:
    status: Literal["cancelled"] = field(default="cancelled", init=False)
    request: ToolCallRequest
    tool: BaseTool
    invocation: ToolInvocation
    response: ToolCallResponse
    duration_ms: float | None = None
    outcome: ToolConfirmationOutcome | None = None


ActiveCall = PendingCall | ExecutingCall
CompletedCall = SuccessfulCall | ErroredCall | CancelledCall
ToolCall = ActiveCall | CompletedCall

TERMINAL_STATUSES = frozenset({"success", "error", "cancelled"})


def is_terminal(call: ToolCall) -> bool:
    return call.status in TERMINAL_STATUSES


def now() -> float:
    """Clock used for ``start_time``. Monotonic, so durations never go negative."""
    return time.monotonic()


def duration_since(start_time: float | None) -> float | None:
    """Milliseconds elapsed since ``start_time``, or None when it was never recorded."""
    if start_time is None:
        return None
    return max(0.0, (now() - start_time) * 1000)
