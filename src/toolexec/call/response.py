"""Terminal payload construction for success, error and cancelled calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from toolexec.call.errors import ClassifiedError, ToolExecutionError
from toolexec.call.types import (
    ActiveCall,
    CancelledCall,
    ErroredCall,
    SuccessfulCall,
    ToolCall,
    ToolCallRequest,
    ToolCallResponse,
    duration_since,
)

if TYPE_CHECKING:
    from toolexec.tool.base import LLMContent, ToolResult

logger = logging.getLogger(__name__)

CANCELLED_PREFIX = "[Operation Cancelled] "

# Models that accept binary parts nested inside a function response.
_MULTIMODAL_FUNCTION_RESPONSE_PREFIXES = ("gemini-3",)

_BINARY_PART_KEYS = ("inline_data", "file_data")


def supports_multimodal_function_response(model: str) -> bool:
    return model.startswith(_MULTIMODAL_FUNCTION_RESPONSE_PREFIXES)


def _function_response(
    call_id: str, name: str, response: dict[str, Any]
) -> dict[str, Any]:
    return {"function_response": {"id": call_id, "name": name, "response": response}}


def convert_to_function_response(
    tool_name: str, call_id: str, content: LLMContent, model: str
) -> list[dict[str, Any]]:
    """Convert tool output into transcript response parts.

    Text becomes the ``output`` of a single function response. Binary parts
    ride inside the function response when the model supports it, otherwise
    they follow it as sibling parts.
    """
    if isinstance(content, str):
        return [_function_response(call_id, tool_name, {"output": content})]

    texts: list[str] = []
    binary: list[dict[str, Any]] = []
    passthrough: dict[str, Any] | None = None

    for part in content:
        if isinstance(part, str):
            texts.append(part)
        elif "text" in part:
            texts.append(part["text"])
        elif "function_response" in part and passthrough is None:
            passthrough = part["function_response"].get("response", {})
        elif any(key in part for key in _BINARY_PART_KEYS):
            binary.append(part)
        else:
            logger.warning("Dropping unrecognized content part for %s: %s", tool_name, list(part))

    if passthrough is not None and not texts and not binary:
        return [_function_response(call_id, tool_name, dict(passthrough))]

    if texts:
        output = "\n".join(texts)
    elif binary:
        output = f"Binary content provided ({len(binary)} item(s))."
    else:
        output = ""

    # an accompanying function response keeps its fields; ``output`` is ours
    response = {**(passthrough or {}), "output": output}
    response_part = _function_response(call_id, tool_name, response)
    if not binary:
        return [response_part]

    if supports_multimodal_function_response(model):
        response_part["function_response"]["parts"] = binary
        return [response_part]
    return [response_part, *binary]


def _error_parts(request: ToolCallRequest, message: str) -> list[dict[str, Any]]:
    return [_function_response(request.call_id, request.name, {"error": message})]


def create_cancelled_result(call: ActiveCall, reason: str) -> CancelledCall:
    """Terminal payload for a call whose signal was aborted."""
    error_message = f"{CANCELLED_PREFIX}{reason}"
    response = ToolCallResponse(
        call_id=call.request.call_id,
        response_parts=_error_parts(call.request, error_message),
        result_display=None,
        error=None,
        error_type=None,
        content_length=len(error_message),
    )
    return CancelledCall(
        request=call.request,
        tool=call.tool,
        invocation=call.invocation,
        response=response,
        duration_ms=duration_since(call.start_time),
        outcome=call.outcome,
    )


def create_success_result(
    call: ActiveCall,
    result: ToolResult,
    content: LLMContent,
    output_file: str | None,
    model: str,
) -> SuccessfulCall:
    """Terminal payload for a successful call.

    ``content`` is the (possibly truncated) llm_content of ``result``.
    """
    request = call.request
    response = ToolCallResponse(
        call_id=request.call_id,
        response_parts=convert_to_function_response(
            request.name, request.call_id, content, model
        ),
        result_display=result.return_display,
        error=None,
        error_type=None,
        output_file=output_file,
        content_length=len(content) if isinstance(content, str) else None,
    )
    return SuccessfulCall(
        request=request,
        tool=call.tool,
        invocation=call.invocation,
        response=response,
        duration_ms=duration_since(call.start_time),
        outcome=call.outcome,
    )


def create_error_response(
    request: ToolCallRequest, classified: ClassifiedError
) -> ToolCallResponse:
    """The machine-readable error field carries ``message``; ``display`` goes to the user."""
    return ToolCallResponse(
        call_id=request.call_id,
        response_parts=_error_parts(request, classified.message),
        result_display=classified.display,
        error=ToolExecutionError(
            classified.message, classified.display, classified.error_type
        ),
        error_type=classified.error_type,
        content_length=len(classified.message),
    )


def create_error_result(call: ToolCall, classified: ClassifiedError) -> ErroredCall:
    """Terminal payload for a call that failed."""
    return ErroredCall(
        request=call.request,
        response=create_error_response(call.request, classified),
        tool=getattr(call, "tool", None),
        duration_ms=duration_since(getattr(call, "start_time", None)),
        outcome=call.outcome,
    )
