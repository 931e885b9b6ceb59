"""toolexec: drive one agent tool call to exactly one terminal outcome."""

from toolexec.abort import AbortController, AbortSignal
from toolexec.call.errors import (
    ToolCallPreconditionError,
    ToolErrorInfo,
    ToolErrorType,
    ToolExecutionError,
)
from toolexec.call.types import (
    CancelledCall,
    ErroredCall,
    ExecutingCall,
    PendingCall,
    SuccessfulCall,
    ToolCallRequest,
    ToolCallResponse,
)
from toolexec.config import ToolexecConfig
from toolexec.executor import ToolExecutionContext, ToolExecutor

__version__ = "0.1.0"

__all__ = [
    "AbortController",
    "AbortSignal",
    "CancelledCall",
    "ErroredCall",
    "ExecutingCall",
    "PendingCall",
    "SuccessfulCall",
    "ToolCallPreconditionError",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolErrorInfo",
    "ToolErrorType",
    "ToolExecutionContext",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolexecConfig",
]
