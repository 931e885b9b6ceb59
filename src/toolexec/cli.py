"""CLI entry point for toolexec."""

from __future__ import annotations

import asyncio
import json
import logging
import signal as signals
import uuid

import typer

from toolexec.abort import AbortController
from toolexec.call.errors import ToolCallPreconditionError
from toolexec.call.types import ExecutingCall, ToolCall, ToolCallRequest
from toolexec.config import ToolexecConfig
from toolexec.executor import ToolExecutionContext, ToolExecutor
from toolexec.session.wire import EventType, Wire
from toolexec.tool.builtin.shell import SHELL_TOOL_NAME, ShellTool
from toolexec.tool.registry import ToolRegistry

app = typer.Typer(
    name="toolexec",
    help="Run a single tool call to exactly one terminal outcome.",
    no_args_is_help=True,
)

EXIT_CODES = {"success": 0, "error": 1, "cancelled": 130}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def run(
    command: str = typer.Argument(help="Shell command to run as a tool call."),
    timeout: int | None = typer.Option(
        None, "--timeout", "-t", help="Command timeout in seconds."
    ),
    threshold: int | None = typer.Option(
        None,
        "--threshold",
        help="Truncate output longer than this many characters (<= 0 disables).",
    ),
    lines: int | None = typer.Option(
        None, "--lines", help="Lines kept in the truncated preview (<= 0 disables)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Run COMMAND through the shell tool and print its terminal state."""
    setup_logging(verbose)

    config = ToolexecConfig.load(config_file)
    truncation: dict[str, int] = {}
    if threshold is not None:
        truncation["threshold"] = threshold
    if lines is not None:
        truncation["lines"] = lines
    if truncation:
        config = config.model_copy(
            update={"truncation": config.truncation.model_copy(update=truncation)}
        )

    args: dict[str, object] = {"command": command}
    if timeout is not None:
        args["timeout"] = timeout

    status = asyncio.run(_run_call(args, config))
    raise typer.Exit(EXIT_CODES.get(status, 1))


@app.command("config")
def show_config(
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Print the effective configuration as JSON."""
    config = ToolexecConfig.load(config_file)
    typer.echo(json.dumps(config.model_dump(), indent=2))


async def _run_call(args: dict[str, object], config: ToolexecConfig) -> str:
    """Execute one shell tool call with plain CLI output. Returns the terminal status."""
    wire = Wire()
    consumer = asyncio.create_task(_render(wire))
    await asyncio.sleep(0)  # let the consumer subscribe before events flow

    try:
        return await _execute_call(args, config, wire)
    finally:
        wire.close()
        await consumer


async def _render(wire: Wire) -> None:
    """Print wire events: live output to stdout, everything else to stderr."""
    queue = wire.subscribe()
    while True:
        event = await queue.get()
        if event is None:
            break
        d = event.data
        if event.type == EventType.TOOL_OUTPUT:
            print(d.get("chunk", ""), end="", flush=True)
        elif event.type == EventType.TOOL_CALL_UPDATE:
            typer.echo(f"[{d.get('status')}] pid={d.get('pid')}", err=True)
        elif event.type == EventType.TOOL_OUTPUT_TRUNCATED:
            typer.echo(
                f"[truncated] {d['original_content_length']} -> "
                f"{d['truncated_content_length']} chars",
                err=True,
            )
        elif event.type == EventType.STATUS:
            typer.echo(d.get("message", ""), err=True)
        elif event.type == EventType.ERROR:
            typer.echo(f"error: {d.get('error')}", err=True)


async def _execute_call(
    args: dict[str, object], config: ToolexecConfig, wire: Wire
) -> str:
    registry = ToolRegistry()
    registry.register(ShellTool())

    request = ToolCallRequest(
        call_id=f"cli-{uuid.uuid4().hex[:8]}",
        name=SHELL_TOOL_NAME,
        args=args,
        prompt_id="cli",
    )
    call = registry.build_call(request)
    if call.status == "error":
        wire.send_error(call.response.result_display or "invalid tool call")
        return call.status

    controller = AbortController()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(
        signals.SIGINT, controller.abort, "User cancelled tool execution."
    )

    def _on_update(updated: ToolCall) -> None:
        pid = updated.pid if isinstance(updated, ExecutingCall) else None
        wire.send_tool_call_update(updated.request.call_id, updated.status, pid)

    executor = ToolExecutor(config, wire=wire)
    try:
        completed = await executor.execute(
            ToolExecutionContext(
                call=call,
                signal=controller.signal,
                on_update_tool_call=_on_update,
                output_update_handler=wire.send_tool_output,
            )
        )
    except ToolCallPreconditionError as e:
        wire.send_error(str(e))
        return "error"
    finally:
        loop.remove_signal_handler(signals.SIGINT)

    response = completed.response
    wire.send_status("")
    wire.send_status(f"status: {completed.status}")
    if completed.duration_ms is not None:
        wire.send_status(f"duration: {completed.duration_ms:.0f}ms")
    if response.output_file:
        wire.send_status(f"full output: {response.output_file}")
    if completed.status == "error":
        wire.send_error(response.result_display or "tool call failed")
    elif completed.status == "cancelled":
        wire.send_status(
            response.response_parts[0]["function_response"]["response"]["error"]
        )
    return completed.status


def main() -> None:
    app()


if __name__ == "__main__":
    main()
