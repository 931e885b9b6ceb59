"""Error taxonomy and the classifier that maps any fault onto it.

``message`` is the raw, developer-facing text that goes into the
machine-readable error field. ``display`` is what a user sees. The two are
never swapped.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ToolErrorType(str, enum.Enum):
    """Classification kind attached to an errored tool call."""

    INVALID_TOOL_PARAMS = "invalid_tool_params"
    TOOL_NOT_REGISTERED = "tool_not_registered"
    EXECUTION_FAILED = "execution_failed"
    EXECUTION_DENIED = "execution_denied"
    SHELL_EXECUTE_ERROR = "shell_execute_error"
    UNHANDLED_EXCEPTION = "unhandled_exception"


@dataclass(frozen=True)
class ToolErrorInfo:
    """Error descriptor carried on a ToolResult."""

    message: str
    type: ToolErrorType = ToolErrorType.EXECUTION_FAILED


class ToolExecutionError(Exception):
    """A deliberately raised, already-classified tool fault.

    Invocations raise this when they know both what went wrong (``message``)
    and how to tell the user (``return_display``).
    """

    def __init__(
        self,
        message: str,
        return_display: str | None = None,
        error_type: ToolErrorType | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.return_display = return_display
        self.error_type = error_type


class ToolCallPreconditionError(RuntimeError):
    """The caller handed the executor a call it cannot run.

    This is a programming error on the caller's side and is raised out of
    ``ToolExecutor.execute`` instead of becoming an errored call.
    """


@dataclass(frozen=True)
class ClassifiedError:
    message: str
    display: str
    error_type: ToolErrorType


def classify_error(error: BaseException) -> ClassifiedError:
    """Normalize a fault into (message, display, kind)."""
    if isinstance(error, ToolExecutionError):
        return ClassifiedError(
            message=error.message,
            display=error.return_display or error.message,
            error_type=error.error_type or ToolErrorType.UNHANDLED_EXCEPTION,
        )

    message = str(error) or type(error).__name__
    return ClassifiedError(
        message=message,
        display=message,
        error_type=ToolErrorType.UNHANDLED_EXCEPTION,
    )
