"""Configuration: Pydantic models for toolexec settings.

All models are frozen: the executor receives one immutable settings value
instead of reading ambient state.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TRUNCATE_THRESHOLD = 4_000_000
DEFAULT_TRUNCATE_LINES = 1000


class TruncationConfig(BaseModel):
    """Governance of oversized textual tool output."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True)
    threshold: int = Field(
        default=DEFAULT_TRUNCATE_THRESHOLD,
        description="Characters of output kept in context before truncating. <= 0 disables.",
    )
    lines: int = Field(
        default=DEFAULT_TRUNCATE_LINES,
        description="Lines previewed in the truncated stub. <= 0 disables.",
    )


class ShellExecutionConfig(BaseModel):
    """Settings handed to process-spawning invocations."""

    model_config = ConfigDict(frozen=True)

    timeout: int = Field(default=120, description="Default command timeout in seconds")
    sanitize_output: bool = Field(
        default=True, description="Strip ANSI escapes and binary garbage from output"
    )
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )


class ToolexecConfig(BaseModel):
    """Top-level toolexec configuration."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(
        default="gemini-2.5-pro",
        description="Active model; decides how binary parts are placed in function responses",
    )
    truncation: TruncationConfig = Field(default_factory=TruncationConfig)
    shell: ShellExecutionConfig = Field(default_factory=ShellExecutionConfig)
    temp_dir: str = Field(
        default="~/.toolexec/tmp", description="Directory for temporary artifacts"
    )
    enable_hooks: bool = Field(default=True, description="Run before/after tool hooks")
    dev_tracing: bool = Field(
        default=False, description="Log every tool-call span at INFO"
    )

    @property
    def output_dir(self) -> str:
        """Where truncated tool output is saved."""
        return str(Path(os.path.expanduser(self.temp_dir)) / "tool-outputs")

    @classmethod
    def load(cls, config_path: str | None = None) -> ToolexecConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            TOOLEXEC_MODEL               - Active model identifier
            TOOLEXEC_TRUNCATE_THRESHOLD  - Truncation threshold in characters
            TOOLEXEC_TRUNCATE_LINES      - Lines kept in the truncated preview
            TOOLEXEC_TEMP_DIR            - Temp directory (truncated output lives below it)
            TOOLEXEC_DEV_TRACING         - "1"/"true" to log spans at INFO
        """
        load_dotenv(find_dotenv(usecwd=True), override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_model = os.environ.get("TOOLEXEC_MODEL")
        if env_model:
            config_data["model"] = env_model

        truncation = dict(config_data.get("truncation", {}))

        env_threshold = os.environ.get("TOOLEXEC_TRUNCATE_THRESHOLD")
        if env_threshold:
            truncation["threshold"] = int(env_threshold)

        env_lines = os.environ.get("TOOLEXEC_TRUNCATE_LINES")
        if env_lines:
            truncation["lines"] = int(env_lines)

        if truncation:
            config_data["truncation"] = truncation

        env_temp_dir = os.environ.get("TOOLEXEC_TEMP_DIR")
        if env_temp_dir:
            config_data["temp_dir"] = env_temp_dir

        env_tracing = os.environ.get("TOOLEXEC_DEV_TRACING")
        if env_tracing:
            config_data["dev_tracing"] = env_tracing.lower() in ("1", "true", "yes")

        return cls.model_validate(config_data)
