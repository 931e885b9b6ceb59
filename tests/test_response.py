"""Tests for toolexec.call.response (transcript conversion and terminal payloads)."""

from __future__ import annotations

from fakes import FakeTool, make_call, returning
from toolexec.call.errors import ClassifiedError, ToolErrorType, ToolExecutionError
from toolexec.call.response import (
    CANCELLED_PREFIX,
    convert_to_function_response,
    create_cancelled_result,
    create_error_response,
    create_error_result,
    create_success_result,
    supports_multimodal_function_response,
)
from toolexec.call.types import PendingCall, ToolCallRequest, ToolConfirmationOutcome
from toolexec.tool.base import ToolResult

IMAGE = {"inline_data": {"mime_type": "image/png", "data": "iVBORw0KGgo="}}


def _tool():
    return FakeTool(returning(ToolResult()))


# ---------------------------------------------------------------------------
# convert_to_function_response
# ---------------------------------------------------------------------------


class TestConvertToFunctionResponse:
    def test_string_content(self) -> None:
        parts = convert_to_function_response("shell", "c1", "hi", "gemini-2.5-pro")
        assert parts == [
            {
                "function_response": {
                    "id": "c1",
                    "name": "shell",
                    "response": {"output": "hi"},
                }
            }
        ]

    def test_text_parts_joined(self) -> None:
        parts = convert_to_function_response(
            "read", "c1", ["one", {"text": "two"}], "gemini-2.5-pro"
        )
        assert parts[0]["function_response"]["response"] == {"output": "one\ntwo"}
        assert len(parts) == 1

    def test_binary_as_sibling_for_older_models(self) -> None:
        parts = convert_to_function_response("read", "c1", [IMAGE], "gemini-2.5-pro")
        assert len(parts) == 2
        assert parts[0]["function_response"]["response"] == {
            "output": "Binary content provided (1 item(s))."
        }
        assert parts[1] == IMAGE

    def test_binary_nested_for_multimodal_models(self) -> None:
        parts = convert_to_function_response(
            "read", "c1", ["caption", IMAGE], "gemini-3-pro-preview"
        )
        assert len(parts) == 1
        assert parts[0]["function_response"]["parts"] == [IMAGE]
        assert parts[0]["function_response"]["response"] == {"output": "caption"}

    def test_existing_function_response_readdressed(self) -> None:
        inner = {
            "function_response": {
                "id": "other",
                "name": "other",
                "response": {"content": "x"},
            }
        }
        parts = convert_to_function_response("mcp", "c1", [inner], "gemini-2.5-pro")
        assert parts == [
            {
                "function_response": {
                    "id": "c1",
                    "name": "mcp",
                    "response": {"content": "x"},
                }
            }
        ]

    def test_function_response_merged_with_text(self) -> None:
        inner = {
            "function_response": {
                "id": "other",
                "name": "other",
                "response": {"content": "x", "output": "stale"},
            }
        }
        parts = convert_to_function_response(
            "mcp", "c1", ["summary", inner, IMAGE], "gemini-3-pro"
        )
        assert len(parts) == 1
        function_response = parts[0]["function_response"]
        assert function_response["id"] == "c1"
        assert function_response["name"] == "mcp"
        assert function_response["response"] == {"content": "x", "output": "summary"}
        assert function_response["parts"] == [IMAGE]

    def test_empty_list(self) -> None:
        parts = convert_to_function_response("t", "c1", [], "gemini-2.5-pro")
        assert parts[0]["function_response"]["response"] == {"output": ""}

    def test_multimodal_model_detection(self) -> None:
        assert supports_multimodal_function_response("gemini-3-flash")
        assert not supports_multimodal_function_response("gemini-2.5-flash")


# ---------------------------------------------------------------------------
# Terminal payloads
# ---------------------------------------------------------------------------


class TestCancelledResult:
    def test_payload(self) -> None:
        call = make_call(_tool())
        cancelled = create_cancelled_result(call, "User cancelled tool execution.")
        text = "[Operation Cancelled] User cancelled tool execution."

        assert cancelled.status == "cancelled"
        assert text.startswith(CANCELLED_PREFIX)
        assert cancelled.response.response_parts[0]["function_response"]["response"] == {
            "error": text
        }
        assert cancelled.response.content_length == len(text)
        assert cancelled.response.error is None
        assert cancelled.response.error_type is None
        assert cancelled.response.result_display is None
        assert cancelled.duration_ms is not None and cancelled.duration_ms >= 0


class TestSuccessResult:
    def test_payload(self) -> None:
        call = make_call(_tool())
        result = ToolResult(llm_content="raw", return_display="shown")
        success = create_success_result(
            call, result, "governed", "/tmp/out.txt", "gemini-2.5-pro"
        )

        assert success.status == "success"
        assert success.response.response_parts[0]["function_response"]["response"] == {
            "output": "governed"
        }
        assert success.response.result_display == "shown"
        assert success.response.output_file == "/tmp/out.txt"
        assert success.response.content_length == len("governed")

    def test_no_start_time(self) -> None:
        call = make_call(_tool(), timed=False)
        success = create_success_result(call, ToolResult(), "", None, "m")
        assert success.duration_ms is None

    def test_outcome_carried(self) -> None:
        base = make_call(_tool())
        call = PendingCall(
            request=base.request,
            tool=base.tool,
            invocation=base.invocation,
            start_time=base.start_time,
            outcome=ToolConfirmationOutcome.PROCEED_ALWAYS,
        )
        success = create_success_result(call, ToolResult(), "", None, "m")
        assert success.outcome == ToolConfirmationOutcome.PROCEED_ALWAYS


class TestErrorResult:
    def test_message_and_display_not_swapped(self) -> None:
        request = ToolCallRequest(call_id="c1", name="shell")
        classified = ClassifiedError(
            message="raw developer text",
            display="Friendly text",
            error_type=ToolErrorType.EXECUTION_FAILED,
        )

        response = create_error_response(request, classified)

        assert response.response_parts[0]["function_response"]["response"] == {
            "error": "raw developer text"
        }
        assert response.result_display == "Friendly text"
        assert response.error_type == ToolErrorType.EXECUTION_FAILED
        assert response.content_length == len("raw developer text")
        assert isinstance(response.error, ToolExecutionError)
        assert response.error.return_display == "Friendly text"

    def test_result_without_tool(self) -> None:
        call = PendingCall(request=ToolCallRequest(call_id="c2", name="missing"))
        classified = ClassifiedError("nope", "nope", ToolErrorType.TOOL_NOT_REGISTERED)

        errored = create_error_result(call, classified)

        assert errored.status == "error"
        assert errored.tool is None
        assert errored.duration_ms is None
        assert errored.response.call_id == "c2"
