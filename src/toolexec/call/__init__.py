"""Tool call lifecycle: state model, error taxonomy, terminal responses."""

from toolexec.call.errors import (
    ClassifiedError,
    ToolCallPreconditionError,
    ToolErrorInfo,
    ToolErrorType,
    ToolExecutionError,
    classify_error,
)
from toolexec.call.types import (
    ActiveCall,
    CancelledCall,
    CompletedCall,
    ErroredCall,
    ExecutingCall,
    PendingCall,
    SuccessfulCall,
    ToolCall,
    ToolCallRequest,
    ToolCallResponse,
    ToolConfirmationOutcome,
    is_terminal,
)

__all__ = [
    "ActiveCall",
    "CancelledCall",
    "ClassifiedError",
    "CompletedCall",
    "ErroredCall",
    "ExecutingCall",
    "PendingCall",
    "SuccessfulCall",
    "ToolCall",
    "ToolCallPreconditionError",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolConfirmationOutcome",
    "ToolErrorInfo",
    "ToolErrorType",
    "ToolExecutionError",
    "classify_error",
    "is_terminal",
]
