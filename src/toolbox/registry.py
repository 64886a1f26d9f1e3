"""Tool Registry.

Maps tool names to tool capabilities. The registry is shared between the
conversation loop and whoever registers tools, possibly from another
thread while a model query is in flight.
"""

import threading
from typing import Iterable, Optional

from shared.logging import get_logger
from shared.models import ToolDefinition
from toolbox.base import Tool

logger = get_logger(__name__)


class ToolRegistry:
    """
    Concurrent name -> Tool mapping.

    Responsibilities:
    - Register tools (last registration for a name wins)
    - Lookup tools by name at dispatch time
    - List tool descriptors for the backend

    Every access goes through one lock, so registrations are never lost
    and a lookup never sees a half-written entry.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._lock = threading.RLock()

    def register(self, tool: Tool) -> None:
        """
        Register a tool, replacing any tool with the same name.

        Args:
            tool: Tool to register

        Raises:
            TypeError: If ``tool`` is not a Tool
        """
        if not isinstance(tool, Tool):
            raise TypeError(f"Expected Tool, got {type(tool).__name__}")

        with self._lock:
            replaced = self._tools.get(tool.name)
            self._tools[tool.name] = tool

        if replaced is not None and replaced is not tool:
            logger.info("Tool replaced", tool=tool.name)
        else:
            logger.info("Tool registered", tool=tool.name)

    def register_many(self, tools: Iterable[Tool]) -> None:
        """Register multiple tools at once."""
        for tool in tools:
            self.register(tool)

    def lookup(self, name: str) -> Optional[Tool]:
        """
        Get a tool by name.

        Args:
            name: Tool name as sent by the model

        Returns:
            Tool if registered, None otherwise
        """
        with self._lock:
            return self._tools.get(name)

    def list_definitions(self) -> list[ToolDefinition]:
        """List descriptors of all registered tools, sorted by name."""
        with self._lock:
            tools = list(self._tools.values())
        return [tool.definition for tool in sorted(tools, key=lambda t: t.name)]

    def names(self) -> list[str]:
        """List registered tool names."""
        with self._lock:
            return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)
