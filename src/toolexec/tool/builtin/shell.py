"""Shell tool: run a command in its own process group and stream its output.

The invocation reports the child's pid as soon as the process exists, so
the executor can surface it while the command is still running. Aborting
the signal or hitting the timeout kills the whole process group.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal as signals
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, Field

from toolexec.call.errors import ToolErrorInfo, ToolErrorType
from toolexec.config import ShellExecutionConfig
from toolexec.tool.base import BaseTool, ToolInvocation, ToolResult
from toolexec.tool.truncation import sanitize_binary_output, strip_ansi

if TYPE_CHECKING:
    from toolexec.abort import AbortSignal
    from toolexec.tool.base import OutputCallback, PidCallback

logger = logging.getLogger(__name__)

SHELL_TOOL_NAME = "run_shell_command"
_READ_CHUNK = 4096


class ShellParams(BaseModel):
    command: str = Field(description="The shell command to execute.")
    timeout: int | None = Field(
        default=None,
        description="Timeout in seconds. Defaults to the configured shell timeout.",
    )
    workdir: str | None = Field(
        default=None, description="Working directory. Defaults to the tool's cwd."
    )
    stdin: str | None = Field(
        default=None,
        description="Optional input to feed to the command's stdin. "
        "The string is sent as-is. Include newlines (\\n) where the program expects Enter.",
    )


class ShellInvocation(ToolInvocation[ShellParams]):
    exposes_process_id: ClassVar[bool] = True

    def __init__(self, params: ShellParams, cwd: str) -> None:
        super().__init__(params)
        self._cwd = cwd

    def describe(self) -> str:
        return f"$ {self.params.command}"

    async def execute(
        self,
        signal: AbortSignal,
        update_output: OutputCallback | None = None,
        shell_config: ShellExecutionConfig | None = None,
        set_pid: PidCallback | None = None,
    ) -> ToolResult:
        config = shell_config or ShellExecutionConfig()
        params = self.params
        workdir = params.workdir or self._cwd
        timeout = params.timeout or config.timeout

        if not os.path.isdir(workdir):
            return ToolResult.failure(
                f"Directory does not exist: {workdir}",
                ToolErrorType.SHELL_EXECUTE_ERROR,
            )

        try:
            process = await asyncio.create_subprocess_shell(
                params.command,
                stdin=asyncio.subprocess.PIPE
                if params.stdin
                else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=workdir,
                start_new_session=True,  # New process group
                env={**os.environ, **config.env, "TERM": "dumb"},
            )
        except OSError as e:
            return ToolResult.failure(
                f"Failed to execute command: {e}", ToolErrorType.SHELL_EXECUTE_ERROR
            )

        logger.debug("Spawned pid=%d: %s", process.pid, params.command)
        if set_pid is not None:
            try:
                set_pid(process.pid)
            except BaseException:
                _kill_process_group(process)
                await process.wait()
                raise

        def _on_abort(reason: str) -> None:
            logger.info("Killing pid=%d: %s", process.pid, reason)
            _kill_process_group(process)

        signal.add_listener(_on_abort)
        chunks: list[str] = []
        try:
            await asyncio.wait_for(
                self._pump(process, chunks, config, update_output), timeout=timeout
            )
        except asyncio.TimeoutError:
            _kill_process_group(process)
            await process.wait()
            return ToolResult.failure(
                f"Command timed out after {timeout}s: {params.command}",
                ToolErrorType.EXECUTION_FAILED,
                display=f"Timeout: {params.command[:50]}",
            )
        finally:
            signal.remove_listener(_on_abort)

        output = "".join(chunks)
        if config.sanitize_output:
            output = sanitize_binary_output(strip_ansi(output))
        output = output.rstrip("\n")

        exit_code = process.returncode or 0
        brief = f"exit={exit_code}: {params.command[:50]}"

        if exit_code != 0:
            message = f"[Exit code: {exit_code}]\n{output}"
            return ToolResult(
                llm_content=message,
                return_display=brief,
                error=ToolErrorInfo(message, ToolErrorType.SHELL_EXECUTE_ERROR),
            )

        return ToolResult(llm_content=output, return_display=brief)

    async def _pump(
        self,
        process: asyncio.subprocess.Process,
        chunks: list[str],
        config: ShellExecutionConfig,
        update_output: OutputCallback | None,
    ) -> int:
        """Feed stdin, forward stdout chunks as they arrive, and wait for exit."""
        if self.params.stdin and process.stdin is not None:
            process.stdin.write(self.params.stdin.encode("utf-8"))
            await process.stdin.drain()
            process.stdin.close()

        assert process.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await process.stdout.read(_READ_CHUNK)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                if update_output is not None:
                    update_output(
                        sanitize_binary_output(strip_ansi(text))
                        if config.sanitize_output
                        else text
                    )
            if not data:
                break

        return await process.wait()


class ShellTool(BaseTool[ShellParams]):
    """Execute shell commands as one-shot subprocesses.

    Output is streamed live while the command runs; the full (sanitized)
    output becomes the tool result.
    """

    name: ClassVar[str] = SHELL_TOOL_NAME
    description: ClassVar[str] = (
        "Execute a shell command. Output is captured and returned. "
        "Each call runs in a fresh process group; long-running commands can be "
        "cancelled. Use the `stdin` parameter to feed input to interactive programs."
    )
    param_model: ClassVar[type[BaseModel]] = ShellParams
    can_update_output: ClassVar[bool] = True

    def __init__(self, cwd: str | None = None) -> None:
        self._cwd = cwd or os.getcwd()

    def create_invocation(self, params: ShellParams) -> ShellInvocation:
        return ShellInvocation(params, cwd=self._cwd)


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """SIGKILL the process group of ``process``, ignoring already-dead processes."""
    if process.returncode is not None:
        return
    try:
        os.killpg(os.getpgid(process.pid), signals.SIGKILL)
    except ProcessLookupError:
        pass
