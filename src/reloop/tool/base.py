"""Base tool classes — declared parameter schema plus an async entry point."""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from reloop.tool.value import Arguments


class ToolParameter(BaseModel):
    """One declared parameter of a tool.

    ``type`` is a JSON-Schema type tag ("string", "number", "boolean", ...).
    When ``enum_values`` is set, string arguments must be one of them.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    enum_values: tuple[str, ...] | None = Field(default=None)

    def to_schema(self) -> dict[str, Any]:
        """Convert to a JSON-Schema property entry."""
        schema: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.enum_values is not None:
            schema["enum"] = list(self.enum_values)
        return schema


class BaseTool(ABC):
    """Base class for all tools.

    A tool declares its parameters up front; the executor validates
    arguments against that declaration before calling :meth:`execute`,
    so implementations can assume required parameters are present.

    Usage:
        class EchoTool(BaseTool):
            name = "echo"
            description = "Echo the given text"
            parameters = (ToolParameter(name="text", description="Text to echo"),)

            async def execute(self, arguments: Arguments) -> str:
                return f"Echo: {arguments['text']}"
    """

    name: ClassVar[str]
    description: ClassVar[str]
    parameters: ClassVar[tuple[ToolParameter, ...]] = ()

    @abstractmethod
    async def execute(self, arguments: Arguments) -> str:
        """Execute the tool with validated arguments."""
        ...

    def to_schema(self) -> dict[str, Any]:
        """Describe the tool as ``{name, description, parameters}``.

        ``required`` follows declaration order and is always present.
        """
        properties: dict[str, Any] = {}
        required: list[str] = []
        for param in self.parameters:
            properties[param.name] = param.to_schema()
            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


ToolFunction = Callable[[Arguments], "str | Awaitable[str]"]


class FunctionTool(BaseTool):
    """Adapt a plain callable into a tool.

    Coroutine functions are awaited directly; regular functions run in a
    worker thread so a blocking backend does not stall the event loop.
    """

    # Instance-level attributes shadow the ClassVar declarations on BaseTool.
    name: str  # type: ignore[misc]
    description: str  # type: ignore[misc]
    parameters: tuple[ToolParameter, ...]  # type: ignore[misc]

    def __init__(
        self,
        name: str,
        description: str,
        fn: ToolFunction,
        parameters: Sequence[ToolParameter] = (),
    ) -> None:
        self.name = name
        self.description = description
        self.parameters = tuple(parameters)
        self._fn = fn

    async def execute(self, arguments: Arguments) -> str:
        if inspect.iscoroutinefunction(self._fn):
            result = await self._fn(arguments)
        else:
            result = await asyncio.to_thread(self._fn, arguments)
            if inspect.isawaitable(result):
                result = await result
        return str(result)
