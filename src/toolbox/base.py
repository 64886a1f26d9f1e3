"""Base classes for tools.

A tool is a named capability the model may invoke. Tools:
- Declare a name, a description and a JSON schema for their arguments
- Validate their own arguments; the orchestrator passes them through
- Return a string result, or raise ToolError
- Never talk to the language model
"""

import copy
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union

from shared.logging import get_logger
from shared.models import ToolDefinition
from shared.schema import validate_schema

logger = get_logger(__name__)


class ToolError(Exception):
    """Raised by a tool when it cannot complete a call."""
    pass


class Tool(ABC):
    """
    Base class for tools.

    Identity is by ``name``: registering another tool under the same
    name replaces this one.
    """

    name: str = ""
    description: str = ""
    # Shared by subclasses that do not override it; never mutate in place
    parameters: dict[str, Any] = {"type": "object", "properties": {}}

    @property
    def definition(self) -> ToolDefinition:
        """Descriptor handed to the language-model client."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=copy.deepcopy(self.parameters),
        )

    def validate(self, args: Any) -> dict[str, Any]:
        """
        Check arguments against the parameter schema.

        Args:
            args: Arguments as sent by the model

        Returns:
            The arguments, as a dict

        Raises:
            ToolError: If the arguments do not match the schema
        """
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ToolError(f"Invalid input: expected an object, got {type(args).__name__}")

        is_valid, errors = validate_schema(args, self.parameters)
        if not is_valid:
            raise ToolError(f"Invalid input: {'; '.join(errors)}")
        return args

    @abstractmethod
    async def execute(self, args: Any) -> str:
        """
        Run the tool.

        Args:
            args: Arguments from the model's function call

        Returns:
            Result text fed back into the conversation

        Raises:
            ToolError: If the call fails
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


ToolFunction = Callable[..., Union[str, Awaitable[str]]]


class FunctionTool(Tool):
    """
    Tool backed by a plain function.

    The function receives the validated arguments as keyword arguments
    and may be sync or async. Any exception it raises becomes a ToolError.
    """

    def __init__(
        self,
        name: str,
        description: str,
        func: ToolFunction,
        parameters: Optional[dict[str, Any]] = None
    ) -> None:
        self.name = name
        self.description = description
        self.parameters = parameters or {"type": "object", "properties": {}}
        self._func = func

    async def execute(self, args: Any) -> str:
        args = self.validate(args)
        try:
            result = self._func(**args)
            if inspect.isawaitable(result):
                result = await result
        except ToolError:
            raise
        except Exception as e:
            logger.warning("Function tool raised", tool=self.name, error=str(e))
            raise ToolError(str(e)) from e
        return result if isinstance(result, str) else str(result)
