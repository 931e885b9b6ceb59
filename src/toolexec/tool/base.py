"""Base tool classes with Pydantic parameter validation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from toolexec.call.errors import ToolErrorInfo, ToolErrorType, ToolExecutionError

if TYPE_CHECKING:
    from toolexec.abort import AbortSignal
    from toolexec.config import ShellExecutionConfig

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# A content part is plain text or a transcript part dict such as
# {"text": ...}, {"inline_data": {...}} or {"file_data": {...}}.
ContentPart = str | dict[str, Any]
LLMContent = str | list[ContentPart]

OutputCallback = Callable[[str], None]
PidCallback = Callable[[int], None]


@dataclass
class ToolResult:
    """Raw outcome of an invocation.

    ``error`` being set, not an exception, is what marks a failed result.
    """

    llm_content: LLMContent = ""
    return_display: str | None = None
    error: ToolErrorInfo | None = None

    @classmethod
    def failure(
        cls,
        message: str,
        error_type: ToolErrorType = ToolErrorType.EXECUTION_FAILED,
        display: str | None = None,
    ) -> ToolResult:
        return cls(
            llm_content=message,
            return_display=display,
            error=ToolErrorInfo(message=message, type=error_type),
        )


class ToolInvocation(ABC, Generic[T]):
    """A validated, ready-to-run tool call.

    Invocations that spawn an external process set ``exposes_process_id``
    and report the pid through the ``set_pid`` callback as soon as it is
    known.
    """

    exposes_process_id: ClassVar[bool] = False

    def __init__(self, params: T) -> None:
        self.params = params

    def describe(self) -> str:
        """Short human-readable description of what this invocation does."""
        return type(self).__name__

    @abstractmethod
    async def execute(
        self,
        signal: AbortSignal,
        update_output: OutputCallback | None = None,
        shell_config: ShellExecutionConfig | None = None,
        set_pid: PidCallback | None = None,
    ) -> ToolResult:
        """Run the invocation. Observing ``signal`` is the invocation's job."""
        ...


class BaseTool(ABC, Generic[T]):
    """Base class for all tools.

    A tool is a factory for invocations. Each tool declares its parameters as
    a Pydantic model (the type parameter T).

    Usage:
        class EchoParams(BaseModel):
            text: str

        class EchoInvocation(ToolInvocation[EchoParams]):
            async def execute(self, signal, update_output=None,
                              shell_config=None, set_pid=None) -> ToolResult:
                return ToolResult(llm_content=self.params.text)

        class EchoTool(BaseTool[EchoParams]):
            name = "echo"
            description = "Echo text back"
            param_model = EchoParams

            def create_invocation(self, params: EchoParams) -> ToolInvocation:
                return EchoInvocation(params)
    """

    name: ClassVar[str]
    description: ClassVar[str]
    param_model: ClassVar[type[BaseModel]]
    can_update_output: ClassVar[bool] = False

    def build(self, arguments: dict[str, Any]) -> ToolInvocation:
        """Validate arguments and create an invocation.

        Raises:
            ToolExecutionError: arguments do not match ``param_model``.
        """
        try:
            params = self.param_model.model_validate(arguments)
        except ValidationError as e:
            logger.debug("Invalid parameters for %s: %s", self.name, e)
            raise ToolExecutionError(
                f"Invalid parameters for {self.name}: {e}",
                return_display=f"Invalid parameters for {self.name}",
                error_type=ToolErrorType.INVALID_TOOL_PARAMS,
            ) from e
        return self.create_invocation(params)  # type: ignore[arg-type]

    @abstractmethod
    def create_invocation(self, params: T) -> ToolInvocation:
        """Create an invocation from validated parameters."""
        ...

    def to_openai_spec(self) -> dict[str, Any]:
        """Convert to OpenAI function tool specification."""
        schema = self.param_model.model_json_schema()
        # Strip the title and $defs that Pydantic adds; LLMs don't need them
        schema.pop("title", None)
        schema.pop("$defs", None)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }
