"""File-system tools.

Read-only helpers that let the model look at the local working tree.
"""

import os
from typing import Any

import aiofiles
import aiofiles.os

from shared.logging import get_logger
from shared.schema import create_tool_schema
from toolbox.base import Tool, ToolError

logger = get_logger(__name__)


class ReadFileTool(Tool):
    """Return the text content of a file."""

    name = "read_file"
    description = (
        "Read the contents of a given relative file path. Use this when you "
        "want to see what's inside a file. Do not use this with directory names."
    )
    parameters = create_tool_schema([
        {
            "name": "path",
            "type": "string",
            "description": "The path to read the file from",
        },
    ])

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def execute(self, args: Any) -> str:
        path = self.validate(args)["path"]

        try:
            async with aiofiles.open(path, mode="r", encoding=self.encoding) as f:
                content = await f.read()
        except FileNotFoundError:
            raise ToolError(f"File not found: {path}")
        except IsADirectoryError:
            raise ToolError(f"{path} is a directory")
        except (OSError, UnicodeDecodeError) as e:
            raise ToolError(f"{path}: {e}")

        logger.debug("File read", path=path, size=len(content))
        return content


class ListFilesTool(Tool):
    """List the entries of a directory."""

    name = "list_files"
    description = (
        "List files and directories at a given path. If no path is provided, "
        "lists files in the current directory. Directories end with '/'."
    )
    parameters = create_tool_schema([
        {
            "name": "path",
            "type": "string",
            "description": "The path to list files from",
            "default": ".",
        },
    ])

    async def execute(self, args: Any) -> str:
        path = self.validate(args).get("path") or "."

        try:
            entries = await aiofiles.os.scandir(path)
            with entries:
                listing = sorted(
                    os.path.join(path, entry.name) + ("/" if entry.is_dir() else "")
                    for entry in entries
                )
        except FileNotFoundError:
            raise ToolError(f"Directory not found: {path}")
        except NotADirectoryError:
            raise ToolError(f"{path} is not a directory")
        except OSError as e:
            raise ToolError(f"{path}: {e}")

        logger.debug("Directory listed", path=path, entries=len(listing))
        return ", ".join(listing)
