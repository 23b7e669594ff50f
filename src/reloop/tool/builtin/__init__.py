"""Built-in general-purpose tools."""

from __future__ import annotations

import os

from reloop.tool.builtin.calculator import CalculatorTool
from reloop.tool.builtin.datetime_tool import DateTimeTool
from reloop.tool.builtin.filesystem import FileSystemTool, SandboxViolationError
from reloop.tool.registry import ToolRegistry

__all__ = [
    "CalculatorTool",
    "DateTimeTool",
    "FileSystemTool",
    "SandboxViolationError",
    "register_basic_tools",
    "register_filesystem_tool",
]


def register_basic_tools(registry: ToolRegistry) -> None:
    """Register the dependency-free tools (calculator + datetime)."""
    registry.register_many([CalculatorTool(), DateTimeTool()])


def register_filesystem_tool(
    registry: ToolRegistry, sandbox_root: str | os.PathLike[str] | None = None
) -> FileSystemTool:
    """Register a filesystem tool confined to ``sandbox_root`` (default: cwd)."""
    tool = FileSystemTool(sandbox_root)
    registry.register(tool)
    return tool
