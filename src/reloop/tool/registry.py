"""Tool registry — thread-safe name → tool mapping and schema export."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any

from reloop.tool.base import BaseTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of available tools.

    Every operation holds the registry lock for its whole duration, so
    concurrent registration and lookup never observe a half-updated map.
    Tools keep their registration order for enumeration and export.
    """

    def __init__(self, tools: Iterable[BaseTool] = ()) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._lock = threading.Lock()
        self.register_many(tools)

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance. A tool with the same name is replaced."""
        with self._lock:
            if tool.name in self._tools:
                logger.warning("Tool %s already registered, overwriting", tool.name)
            self._tools[tool.name] = tool

    def register_many(self, tools: Iterable[BaseTool]) -> None:
        """Register multiple tools."""
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name, or None if absent."""
        with self._lock:
            return self._tools.get(name)

    def get_all(self) -> list[BaseTool]:
        """Get all registered tools."""
        with self._lock:
            return list(self._tools.values())

    def names(self) -> list[str]:
        """Get all registered tool names."""
        with self._lock:
            return list(self._tools.keys())

    def remove(self, name: str) -> None:
        """Remove a tool. Removing an unknown name is a no-op."""
        with self._lock:
            self._tools.pop(name, None)

    def clear(self) -> None:
        """Remove all tools."""
        with self._lock:
            self._tools.clear()

    def export_schema(self) -> list[dict[str, Any]]:
        """Export ``{name, description, parameters}`` for every tool.

        This is the descriptor handed to the reasoning model so it can pick
        a tool and shape its arguments.
        """
        with self._lock:
            tools = list(self._tools.values())
        return [t.to_schema() for t in tools]

    def to_openai_tools(self) -> list[dict[str, Any]]:
        """Wrap the exported schema in OpenAI function-tool format."""
        return [
            {"type": "function", "function": entry} for entry in self.export_schema()
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools
