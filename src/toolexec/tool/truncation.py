"""Output governance: keep oversized tool output out of the model's context.

When successful textual output exceeds the threshold, the full text is saved
to a file and the in-context content becomes a short stub that points at the
file and previews a few lines.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Callable

import aiofiles

from toolexec.telemetry import ToolOutputTruncatedEvent

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(frozen=True)
class SavedOutput:
    output_file: str


ArtifactStore = Callable[[str, str, str, str], Awaitable[SavedOutput]]
TelemetrySink = Callable[[ToolOutputTruncatedEvent], None]


@dataclass(frozen=True)
class TruncationResult:
    """What governance did to one piece of content."""

    content: Any
    output_file: str | None = None
    original_length: int | None = None
    truncated_length: int | None = None

    @property
    def was_truncated(self) -> bool:
        return self.output_file is not None


async def govern_output(
    content: Any,
    tool_name: str,
    call_id: str,
    threshold: int,
    max_lines: int,
    store: ArtifactStore,
    directory: str,
    *,
    prompt_id: str = "",
    telemetry: TelemetrySink | None = None,
) -> TruncationResult:
    """Apply the truncation policy to a successful tool output.

    Only textual content is governed, and only when both ``threshold`` and
    ``max_lines`` are positive. Content of at most ``threshold`` characters
    passes through unchanged.

    Args:
        content: The tool's ``llm_content``.
        tool_name: Name of the tool, used to key the saved artifact.
        call_id: Call identifier, used to key the saved artifact.
        threshold: Maximum characters kept in context.
        max_lines: Maximum lines previewed in the stub.
        store: Persists the full content and returns where it went.
        directory: Directory handed to ``store``.
        prompt_id: Originating prompt, for the telemetry record.
        telemetry: Receives a ToolOutputTruncatedEvent when truncation happens.
    """
    if not isinstance(content, str) or threshold <= 0 or max_lines <= 0:
        return TruncationResult(content=content)

    original_length = len(content)
    if original_length <= threshold:
        return TruncationResult(content=content)

    saved = await store(content, tool_name, call_id, directory)
    truncated = format_truncated_output(content, saved.output_file, max_lines, threshold)
    if len(truncated) >= original_length:
        truncated = _compact_stub(content, saved.output_file, original_length - 1)

    if telemetry is not None:
        telemetry(
            ToolOutputTruncatedEvent(
                prompt_id=prompt_id,
                tool_name=tool_name,
                original_content_length=original_length,
                truncated_content_length=len(truncated),
                threshold=threshold,
                lines=max_lines,
            )
        )

    return TruncationResult(
        content=truncated,
        output_file=saved.output_file,
        original_length=original_length,
        truncated_length=len(truncated),
    )


def format_truncated_output(
    content: str, output_file: str, max_lines: int, threshold: int | None = None
) -> str:
    """Build the in-context stub for truncated output.

    The preview keeps the first fifth of ``max_lines`` and fills the rest
    from the tail. When ``threshold`` is given the preview is clipped so
    the stub stays within it.
    """
    lines = content.split("\n")
    header = (
        f"Tool output was too large ({len(content)} characters, {len(lines)} lines) "
        f"and has been truncated.\n"
        f"The full output has been saved to: {output_file}\n"
        f"Preview:\n"
    )

    if len(lines) > max_lines:
        head_count = max_lines // 5
        tail_count = max_lines - head_count
        kept = lines[:head_count]
        kept.append(f"... [{len(lines) - max_lines} lines omitted] ...")
        kept.extend(lines[len(lines) - tail_count :])
        preview = "\n".join(kept)
    else:
        preview = content

    if threshold is not None:
        preview = _clip(preview, threshold - len(header))

    return header + preview


def _clip(text: str, budget: int) -> str:
    """Shorten text to at most ``budget`` characters, keeping head and tail."""
    if budget <= 0:
        return ""
    if len(text) <= budget:
        return text

    marker = f"\n... [{len(text) - budget} characters omitted] ...\n"
    keep = budget - len(marker)
    if keep <= 0:
        return text[:budget]
    head = keep // 5
    return text[:head] + marker + text[len(text) - (keep - head) :]


def _compact_stub(content: str, output_file: str, limit: int) -> str:
    """Short stub for content barely over the threshold; at most ``limit`` characters."""
    header = f"[Truncated; full output in {output_file}]\n"
    return (header + _clip(content, limit - len(header)))[:limit]


async def save_truncated_output(
    content: str, tool_name: str, call_id: str, directory: str
) -> SavedOutput:
    """Default artifact store: write the full output to ``<directory>/<tool>_<call>.txt``."""
    os.makedirs(directory, exist_ok=True)
    safe_tool = _UNSAFE_FILENAME_RE.sub("_", tool_name) or "tool"
    safe_call = _UNSAFE_FILENAME_RE.sub("_", call_id) or "call"
    path = os.path.join(directory, f"{safe_tool}_{safe_call}.txt")

    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)

    logger.debug("Saved %d chars of %s output to %s", len(content), tool_name, path)
    return SavedOutput(output_file=path)


def strip_ansi(text: str) -> str:
    """Strip ANSI escape sequences from text."""
    return re.sub(r"\x1b\[[0-9;]*[a-zA-Z]", "", text)


def sanitize_binary_output(text: str) -> str:
    """Remove binary garbage from output.

    Keeps printable chars, tabs, newlines, and carriage returns.
    Strips everything else (control chars, undefined code points, format chars).
    """
    cleaned = []
    for ch in text:
        cp = ord(ch)
        if ch in ("\t", "\n", "\r"):
            cleaned.append(ch)
        elif cp >= 32 and cp not in range(0x7F, 0xA0):
            # Skip C0 controls (except above), C1 controls, and format chars
            if cp not in range(0xFFF9, 0xFFFC):
                cleaned.append(ch)
    return "".join(cleaned)
