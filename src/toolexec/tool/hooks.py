"""Hook chain: cross-cutting behavior wrapped around every invocation.

Before hooks can veto a call; after hooks can append extra context to the
model-facing output. The executor only sees ``execute_tool_with_hooks``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from toolexec.call.errors import ToolErrorType
from toolexec.tool.base import ToolResult

if TYPE_CHECKING:
    from toolexec.abort import AbortSignal
    from toolexec.config import ShellExecutionConfig, ToolexecConfig
    from toolexec.tool.base import BaseTool, OutputCallback, PidCallback, ToolInvocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookDecision:
    """Verdict of a before hook. ``block=True`` stops the invocation."""

    block: bool = False
    reason: str = ""


BeforeToolHook = Callable[[str, dict[str, Any]], Awaitable[HookDecision | None]]
AfterToolHook = Callable[[str, dict[str, Any], ToolResult], Awaitable[str | None]]


@dataclass
class ToolHooks:
    """Registered before/after tool hooks, run in registration order."""

    before: list[BeforeToolHook] = field(default_factory=list)
    after: list[AfterToolHook] = field(default_factory=list)

    def on_before(self, hook: BeforeToolHook) -> BeforeToolHook:
        """Register a before hook. Usable as a decorator."""
        self.before.append(hook)
        return hook

    def on_after(self, hook: AfterToolHook) -> AfterToolHook:
        """Register an after hook. Usable as a decorator."""
        self.after.append(hook)
        return hook

    def __bool__(self) -> bool:
        return bool(self.before or self.after)


async def execute_tool_with_hooks(
    invocation: ToolInvocation,
    tool_name: str,
    signal: AbortSignal,
    tool: BaseTool,
    live_output_callback: OutputCallback | None,
    shell_config: ShellExecutionConfig,
    set_pid_callback: PidCallback | None,
    config: ToolexecConfig,
    hooks: ToolHooks | None = None,
) -> ToolResult:
    """Run ``invocation`` inside the before/after hook chain.

    Faults raised by the invocation or by a hook propagate to the caller.
    """
    if not config.enable_hooks or not hooks:
        return await invocation.execute(
            signal, live_output_callback, shell_config, set_pid_callback
        )

    args = invocation.params.model_dump()

    for hook in hooks.before:
        decision = await hook(tool_name, args)
        if decision is not None and decision.block:
            reason = decision.reason or "blocked by hook"
            logger.info("Tool %s blocked by before hook: %s", tool_name, reason)
            return ToolResult.failure(
                f"Tool execution blocked: {reason}",
                ToolErrorType.EXECUTION_DENIED,
                display=f"Blocked: {reason}",
            )

    result = await invocation.execute(
        signal, live_output_callback, shell_config, set_pid_callback
    )

    extra: list[str] = []
    for hook in hooks.after:
        context = await hook(tool_name, args, result)
        if context:
            extra.append(context)

    if extra:
        if isinstance(result.llm_content, str):
            result.llm_content = "\n\n".join([result.llm_content, *extra])
        else:
            result.llm_content = [*result.llm_content, *extra]

    return result
