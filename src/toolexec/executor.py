"""Tool executor: drives one call from pending to exactly one terminal state.

Resolution order, checked once right after the invocation settles:

1. the abort signal fired            -> cancelled (whatever the result was)
2. the invocation raised             -> error (classified)
3. the result carries an error       -> error (classified)
4. otherwise                         -> success (after output governance)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from toolexec.call.errors import (
    ToolCallPreconditionError,
    ToolExecutionError,
    classify_error,
)
from toolexec.call.response import (
    create_cancelled_result,
    create_error_result,
    create_success_result,
)
from toolexec.call.types import (
    ActiveCall,
    CompletedCall,
    ExecutingCall,
    PendingCall,
    ToolCall,
)
from toolexec.telemetry import ToolOutputTruncatedEvent, log_tool_output_truncated
from toolexec.tool.hooks import ToolHooks, execute_tool_with_hooks
from toolexec.tool.truncation import ArtifactStore, govern_output, save_truncated_output
from toolexec.tracing import Tracer

if TYPE_CHECKING:
    from toolexec.abort import AbortSignal
    from toolexec.config import ToolexecConfig
    from toolexec.session.wire import Wire
    from toolexec.tool.base import ToolResult

logger = logging.getLogger(__name__)

CANCELLED_REASON = "User cancelled tool execution."

OutputUpdateHandler = Callable[[str, str], None]  # (call_id, chunk)
ToolCallUpdateHandler = Callable[[ToolCall], None]


@dataclass
class ToolExecutionContext:
    """Everything one ``execute`` needs from its caller."""

    call: ActiveCall
    signal: AbortSignal
    on_update_tool_call: ToolCallUpdateHandler
    output_update_handler: OutputUpdateHandler | None = None


class ToolExecutor:
    """Runs a single tool call through the hook chain and resolves its outcome.

    The executor holds no per-call state; concurrent ``execute`` calls for
    different tool calls are independent.
    """

    def __init__(
        self,
        config: ToolexecConfig,
        *,
        hooks: ToolHooks | None = None,
        artifact_store: ArtifactStore = save_truncated_output,
        wire: Wire | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self.config = config
        self._hooks = hooks
        self._artifact_store = artifact_store
        self._wire = wire
        self.tracer = tracer or Tracer(enabled=config.dev_tracing, wire=wire)

    async def execute(self, context: ToolExecutionContext) -> CompletedCall:
        """Execute the call and return its terminal state.

        Raises:
            ToolCallPreconditionError: the call is not active or has no
                resolved tool/invocation. Every other failure is returned as
                an errored call.
        """
        call = context.call
        request = call.request
        call_id = request.call_id

        if not isinstance(call, (PendingCall, ExecutingCall)):
            raise ToolCallPreconditionError(
                f"Cannot execute tool call {call_id}: status is {call.status!r}."
            )
        if call.tool is None or call.invocation is None:
            raise ToolCallPreconditionError(
                f"Cannot execute tool call {call_id}: Tool or Invocation missing."
            )
        tool = call.tool
        invocation = call.invocation
        signal = context.signal

        live_output_callback = None
        if tool.can_update_output and context.output_update_handler is not None:
            handler = context.output_update_handler

            def live_output_callback(chunk: str) -> None:
                try:
                    handler(call_id, chunk)
                except Exception:
                    logger.warning(
                        "Live output handler failed for %s", call_id, exc_info=True
                    )

        set_pid_callback = None
        if invocation.exposes_process_id:
            set_pid_callback = self._pid_publisher(call, context.on_update_tool_call)

        logger.info("Executing tool %s (%s)", request.name, call_id)

        async with self.tracer.span(tool.name, {"type": "tool-call"}) as span:
            span.input = {"request": request}

            try:
                result = await execute_tool_with_hooks(
                    invocation,
                    request.name,
                    signal,
                    tool,
                    live_output_callback,
                    self.config.shell,
                    set_pid_callback,
                    self.config,
                    self._hooks,
                )
                span.output = result

                if signal.aborted:
                    return self._cancelled(call)
                if result.error is not None:
                    error = ToolExecutionError(
                        result.error.message, result.return_display, result.error.type
                    )
                    logger.info(
                        "Tool %s (%s) returned error: %s",
                        request.name,
                        call_id,
                        result.error.message,
                    )
                    return create_error_result(call, classify_error(error))
                return await self._create_success_result(call, result)

            except Exception as e:
                span.error = e
                if signal.aborted:
                    return self._cancelled(call)
                logger.warning(
                    "Tool %s (%s) raised: %s", request.name, call_id, e, exc_info=True
                )
                return create_error_result(call, classify_error(e))

    def _cancelled(self, call: ActiveCall) -> CompletedCall:
        logger.info("Tool %s (%s) cancelled", call.request.name, call.request.call_id)
        return create_cancelled_result(call, CANCELLED_REASON)

    @staticmethod
    def _pid_publisher(
        call: ActiveCall, on_update_tool_call: ToolCallUpdateHandler
    ) -> Callable[[int], None]:
        """Callback that moves the call to ``executing`` the first time a pid is reported."""
        published = isinstance(call, ExecutingCall)

        def set_pid(pid: int) -> None:
            nonlocal published
            if published:
                logger.debug(
                    "Ignoring repeated pid %d for %s", pid, call.request.call_id
                )
                return
            published = True
            on_update_tool_call(
                ExecutingCall(
                    request=call.request,
                    tool=call.tool,
                    invocation=call.invocation,
                    pid=pid,
                    start_time=call.start_time,
                    outcome=call.outcome,
                )
            )

        return set_pid

    async def _create_success_result(
        self, call: ActiveCall, result: ToolResult
    ) -> CompletedCall:
        content = result.llm_content
        output_file = None
        truncation = self.config.truncation

        if truncation.enabled:
            governed = await govern_output(
                content,
                call.request.name,
                call.request.call_id,
                truncation.threshold,
                truncation.lines,
                self._artifact_store,
                self.config.output_dir,
                prompt_id=call.request.prompt_id,
                telemetry=self._record_truncation,
            )
            content = governed.content
            output_file = governed.output_file

        return create_success_result(
            call, result, content, output_file, self.config.model
        )

    def _record_truncation(self, event: ToolOutputTruncatedEvent) -> None:
        log_tool_output_truncated(event, self._wire)
