"""
Tool Registry

Declares the fixed tool catalogue and dispatches named calls to handlers.
The set of tools is closed: it is fixed when the registry is built and
cannot change afterwards.
"""

import asyncio
import functools
import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel
from pydantic import ValidationError as ArgumentsError

from ..errors import EmergentError, ExecutionError, UnknownToolError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """
    Result from tool execution.

    Attributes:
        success: Whether the tool executed successfully
        data: Tool output (structured data)
        error: Error message if execution failed
    """
    success: bool
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire payload, omitting empty fields."""
        payload: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolResult":
        return cls(
            success=bool(data.get("success", False)),
            data=data.get("data"),
            error=data.get("error"),
        )

    @classmethod
    def failure(cls, error: EmergentError | str) -> "ToolResult":
        """Build a failed result, keeping partial command output if present."""
        if isinstance(error, ExecutionError):
            return cls(
                success=False,
                error=str(error),
                data={"stdout": error.stdout, "stderr": error.stderr},
            )
        return cls(success=False, error=str(error))


@dataclass(frozen=True)
class Tool:
    """
    Tool definition.

    Attributes:
        name: Unique tool name
        description: Human-readable description
        input_schema: JSON Schema advertised to clients
        arguments_model: pydantic model the arguments are validated against
        handler: Callable taking the validated model and returning a ToolResult
    """
    name: str
    description: str
    input_schema: dict[str, Any]
    arguments_model: type[BaseModel]
    handler: Callable[[Any], ToolResult]

    def get_definition(self) -> dict[str, Any]:
        """Get the catalogue entry for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """
    Immutable registry of tools.

    Handlers report expected failures as ToolResult(success=False). Only an
    unknown tool name (UnknownToolError) or an unexpected exception escapes
    dispatch().

    Example:
        registry = ToolRegistry([READ_TOOL, WRITE_TOOL])
        result = await registry.dispatch("write_code", {"filePath": "a.py", "content": ""})
    """

    def __init__(self, tools: Iterable[Tool]):
        """
        Build the registry.

        Raises:
            ValueError: If a tool has no name or two tools share a name
        """
        catalogue: dict[str, Tool] = {}
        for tool in tools:
            if not tool.name:
                raise ValueError("Tool name cannot be empty")
            if tool.name in catalogue:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            catalogue[tool.name] = tool
        self._tools: Mapping[str, Tool] = MappingProxyType(catalogue)

    @property
    def tools(self) -> Mapping[str, Tool]:
        return self._tools

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get the static tool catalogue with schemas."""
        return [tool.get_definition() for tool in self._tools.values()]

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Execute a tool by name.

        The handler runs in the default executor so blocking file and
        subprocess work does not stall the event loop.

        Raises:
            UnknownToolError: If no tool has that name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        try:
            parsed = tool.arguments_model.model_validate(arguments or {})
        except ArgumentsError as e:
            logger.info(f"Rejected arguments for {name}: {e.error_count()} error(s)")
            return ToolResult(success=False, error=f"Invalid arguments for {name}: {_format_errors(e)}")

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, functools.partial(tool.handler, parsed))
        except EmergentError as e:
            return ToolResult.failure(e)

        if not isinstance(result, ToolResult):
            result = ToolResult(success=True, data=result)

        logger.debug(f"Tool {name} finished (success={result.success})")
        return result


def _format_errors(error: ArgumentsError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)
