"""Tool registry: register tools and turn requests into pending calls."""

from __future__ import annotations

import logging
from typing import Any

from toolexec.call.errors import ToolErrorType, ToolExecutionError, classify_error
from toolexec.call.response import create_error_result
from toolexec.call.types import (
    ErroredCall,
    PendingCall,
    ToolCallRequest,
    ToolConfirmationOutcome,
    now,
)
from toolexec.tool.base import BaseTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of available tools.

    Manages tool registration and lookup, and resolves a model's tool call
    request into a call the executor can run.
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance."""
        if tool.name in self._tools:
            logger.warning("Tool %s already registered, overwriting", tool.name)
        self._tools[tool.name] = tool

    def register_many(self, tools: list[BaseTool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_specs(self, names: list[str] | None = None) -> list[dict[str, Any]]:
        """Get OpenAI tool specs, optionally filtered by name."""
        tools = self._tools.values()
        if names is not None:
            tools = [t for t in tools if t.name in names]
        return [t.to_openai_spec() for t in tools]

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def build_call(
        self,
        request: ToolCallRequest,
        outcome: ToolConfirmationOutcome | None = None,
    ) -> PendingCall | ErroredCall:
        """Resolve a request into a pending call, stamping its start time.

        Unknown tools and invalid arguments produce an errored call right
        away; they never reach the executor.
        """
        tool = self._tools.get(request.name)
        if tool is None:
            placeholder = PendingCall(request=request, outcome=outcome)
            error = ToolExecutionError(
                f'Tool "{request.name}" not found in registry. '
                f"Available tools: {', '.join(self.names())}",
                return_display=f"Unknown tool: {request.name}",
                error_type=ToolErrorType.TOOL_NOT_REGISTERED,
            )
            return create_error_result(placeholder, classify_error(error))

        try:
            invocation = tool.build(request.args)
        except ToolExecutionError as e:
            return create_error_result(
                PendingCall(request=request, tool=tool, outcome=outcome),
                classify_error(e),
            )

        return PendingCall(
            request=request,
            tool=tool,
            invocation=invocation,
            start_time=now(),
            outcome=outcome,
        )

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
