"""Core data models for VOO.

This module defines the turn/payload data model exchanged with the
language-model backend, plus the descriptors used for tool declaration
and backend error reporting.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    MODEL = "model"


class WireModel(BaseModel):
    """Base for models serialized with camelCase keys on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class FunctionCall(WireModel):
    """
    A structured tool invocation requested by the model.

    ``args`` is opaque to the orchestrator and interpreted only by the
    tool registered under ``name``.
    """
    name: str
    args: Any = Field(default_factory=dict)


class Part(WireModel):
    """One payload inside a turn: either text or a single function call."""
    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None


class Content(WireModel):
    """A single conversation turn."""
    role: Role
    parts: tuple[Part, ...] = Field(default_factory=tuple)

    @classmethod
    def from_text(cls, role: Role, text: str) -> "Content":
        """Build a single-part text turn."""
        return cls(role=role, parts=(Part(text=text),))

    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function calls in this turn, in order of appearance."""
        return [p.function_call for p in self.parts if p.function_call is not None]

    @property
    def texts(self) -> list[str]:
        """Non-empty text parts in this turn."""
        return [p.text for p in self.parts if p.text]

    def to_wire(self) -> dict[str, Any]:
        """Serialize for a backend request."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolDefinition(BaseModel):
    """
    Declarative description of a tool.

    This is what the language-model client sees: it never receives the
    tool object itself.
    """
    name: str = Field(..., description="Unique tool name")
    description: str = Field(..., description="Clear description for LLM usage")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON Schema describing the expected arguments"
    )

    def to_function_declaration(self) -> dict[str, Any]:
        """Format as a backend function declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters or {
                "type": "object",
                "properties": {},
            },
        }


class ErrorEnvelope(BaseModel):
    """Error body returned by the backend instead of candidates."""
    code: Optional[int] = None
    message: str = ""
    status: Optional[str] = None
