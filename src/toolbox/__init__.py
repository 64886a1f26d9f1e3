"""Tools the model may invoke.

Tools form an open set: anything implementing ``Tool`` can be registered.
The file-system tools below ship with the agent.
"""

from toolbox.base import FunctionTool, Tool, ToolError
from toolbox.filesystem import ListFilesTool, ReadFileTool
from toolbox.registry import ToolRegistry


def default_tools() -> list[Tool]:
    """Tools registered when built-in tools are enabled."""
    return [ReadFileTool(), ListFilesTool()]


__all__ = [
    "FunctionTool",
    "Tool",
    "ToolError",
    "ListFilesTool",
    "ReadFileTool",
    "ToolRegistry",
    "default_tools",
]
