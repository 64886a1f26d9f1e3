"""Shared models, configuration and logging for VOO."""

from shared.models import (
    Content,
    ErrorEnvelope,
    FunctionCall,
    Part,
    Role,
    ToolDefinition,
)
from shared.config import AgentSettings, LLMSettings, Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "Content",
    "ErrorEnvelope",
    "FunctionCall",
    "Part",
    "Role",
    "ToolDefinition",
    "AgentSettings",
    "LLMSettings",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
