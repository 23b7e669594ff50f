"""Tool-layer exceptions raised by the registry/executor pipeline."""

from __future__ import annotations


class ToolError(Exception):
    """Base class for all tool invocation failures."""


class ToolNotFoundError(ToolError):
    """The requested tool is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class InvalidArgumentsError(ToolError):
    """The argument payload is malformed or violates the tool's schema."""


class MissingRequiredParameterError(ToolError):
    """A parameter declared as required was absent from the payload."""

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(f"Missing required parameter: {parameter}")


class ExecutionFailedError(ToolError):
    """The tool raised while executing.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        self.message = message
        super().__init__(f"Tool '{tool_name}' failed: {message}")
