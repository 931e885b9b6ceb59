"""Tool system: base classes, registry, hooks, and output governance."""

from toolexec.tool.base import BaseTool, ToolInvocation, ToolResult
from toolexec.tool.hooks import HookDecision, ToolHooks, execute_tool_with_hooks
from toolexec.tool.registry import ToolRegistry
from toolexec.tool.truncation import govern_output, save_truncated_output

__all__ = [
    "BaseTool",
    "HookDecision",
    "ToolHooks",
    "ToolInvocation",
    "ToolRegistry",
    "ToolResult",
    "execute_tool_with_hooks",
    "govern_output",
    "save_truncated_output",
]
