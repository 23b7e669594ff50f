"""Tool system — base classes, registry, executor, and errors."""

from reloop.tool.base import BaseTool, FunctionTool, ToolParameter
from reloop.tool.errors import (
    ExecutionFailedError,
    InvalidArgumentsError,
    MissingRequiredParameterError,
    ToolError,
    ToolNotFoundError,
)
from reloop.tool.executor import ToolCall, ToolExecutor, validate_arguments
from reloop.tool.registry import ToolRegistry
from reloop.tool.value import ArgumentValue, Arguments, parse_arguments

__all__ = [
    "BaseTool",
    "FunctionTool",
    "ToolParameter",
    "ToolError",
    "ToolNotFoundError",
    "InvalidArgumentsError",
    "MissingRequiredParameterError",
    "ExecutionFailedError",
    "ToolCall",
    "ToolExecutor",
    "validate_arguments",
    "ToolRegistry",
    "ArgumentValue",
    "Arguments",
    "parse_arguments",
]
