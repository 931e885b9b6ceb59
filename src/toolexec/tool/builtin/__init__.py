"""Built-in tools."""

from toolexec.tool.builtin.shell import SHELL_TOOL_NAME, ShellTool

__all__ = ["SHELL_TOOL_NAME", "ShellTool"]
