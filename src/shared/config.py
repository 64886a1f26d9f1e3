"""Configuration management for VOO.

Supports a YAML configuration file, a ``.env`` file and environment
variable overrides. Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = """You are an expert LLM agent named VOO, with access to a variety of tools.
When you are asked a normal question, answer normally. When you need information
you do not have, call one of the declared functions instead of guessing.

When showing the output of a tool, show the output and then show the user what
they asked for in a list format, for example:
- Item 1
- Item 2
- Item 3
"""


class LLMSettings(BaseSettings):
    """Language-model backend configuration."""
    provider: str = Field(default="gemini", description="LLM provider: gemini, mock")
    model: str = Field(default="gemini-2.0-flash", description="Model name")
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "LLM_API_KEY"),
        description="API key",
    )
    api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="API base URL"
    )
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


class AgentSettings(BaseSettings):
    """Conversation loop configuration."""
    exit_command: str = Field(default="exit", min_length=1)
    max_retries: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)
    max_tool_rounds: int = Field(default=10, ge=1)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    enable_builtin_tools: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="AGENT_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="WARNING")

    # Component settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    model_config = SettingsConfigDict(
        env_prefix="VOO_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # File values take precedence; fields the file omits still come from the environment
        llm = LLMSettings(**(data.pop("llm", None) or {}))
        agent = AgentSettings(**(data.pop("agent", None) or {}))

        return cls(llm=llm, agent=agent, **data)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("VOO_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
