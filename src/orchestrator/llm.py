"""Language-model integration layer.

The orchestrator only depends on ``LanguageModelClient``:
- ``ask`` sends the full history plus declared tools, returns new turns
- ``register_tool`` declares a tool to the backend
- ``append_feedback`` keeps the client's view in sync with local feedback

Backend failures surface as classified ``AgentError``s. The model has no
direct access to tools; it can only request them through function calls.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Union

import httpx
from pydantic import ValidationError

from shared.config import LLMSettings
from shared.logging import get_logger
from shared.models import Content, ErrorEnvelope, Role, ToolDefinition
from orchestrator.errors import (
    AgentError,
    BackendError,
    ExpiredCredential,
    MissingCredentialError,
)

logger = get_logger(__name__)

EXPIRED_KEY_MESSAGE = "API key expired."


def classify_error(envelope: Union[ErrorEnvelope, dict[str, Any], str]) -> AgentError:
    """
    Map a backend error envelope onto the agent error taxonomy.

    Args:
        envelope: Error body, as a model or raw dict

    Returns:
        ExpiredCredential for an expired key, BackendError otherwise
    """
    if isinstance(envelope, str):
        envelope = {"message": envelope}

    if not isinstance(envelope, ErrorEnvelope):
        try:
            envelope = ErrorEnvelope.model_validate(envelope)
        except ValidationError:
            return BackendError(f"Malformed error: {envelope}")

    if EXPIRED_KEY_MESSAGE in envelope.message:
        return ExpiredCredential(envelope.message)

    message = envelope.message or f"{envelope.status or 'UNKNOWN'} ({envelope.code})"
    return BackendError(message, code=envelope.code, status=envelope.status)


class LanguageModelClient(ABC):
    """
    Abstract base class for language-model backends.

    Integration rules:
    - The client receives only the history snapshot and tool descriptors
    - The client returns either text turns or structured function calls
    - The client never executes tools
    """

    @abstractmethod
    async def ask(self, history: list[Content]) -> list[Content]:
        """
        Query the model with the full conversation so far.

        Args:
            history: Snapshot of the conversation history

        Returns:
            New turns produced by the model

        Raises:
            AgentError: Classified backend failure
        """
        pass

    @abstractmethod
    async def register_tool(self, definition: ToolDefinition) -> None:
        """Declare a tool so that later queries may call it."""
        pass

    @abstractmethod
    async def append_feedback(self, text: str, role: Role = Role.USER) -> None:
        """
        Record feedback produced locally, without querying the model.

        Args:
            text: Feedback text (tool output, error summary, shown reply)
            role: Role the feedback was recorded under
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None

    async def __aenter__(self) -> "LanguageModelClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class GeminiClient(LanguageModelClient):
    """
    Google Gemini ``generateContent`` client.

    Stateless toward the backend: every request carries the whole
    history, the tool declarations and the system instruction.
    """

    def __init__(
        self,
        settings: LLMSettings,
        system_prompt: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: LLM configuration settings
            system_prompt: Optional system instruction sent with every request
            transport: Optional httpx transport (used by tests)
        """
        if not settings.api_key:
            raise MissingCredentialError()

        self.settings = settings
        self.system_prompt = system_prompt
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._tools: dict[str, ToolDefinition] = {}
        self.feedback_count = 0

    @property
    def endpoint(self) -> str:
        return f"/models/{self.settings.model}:generateContent"

    @property
    def tools(self) -> list[ToolDefinition]:
        """Declared tools, in declaration order."""
        return list(self._tools.values())

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base.rstrip("/"),
                timeout=self.settings.timeout_seconds,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.settings.api_key or "",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_request(self, history: list[Content]) -> dict[str, Any]:
        """Build a generateContent request body."""
        body: dict[str, Any] = {
            "contents": [content.to_wire() for content in history],
        }

        if self._tools:
            body["tools"] = [{
                "functionDeclarations": [
                    tool.to_function_declaration() for tool in self._tools.values()
                ]
            }]

        if self.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": self.system_prompt}]}

        generation_config: dict[str, Any] = {}
        if self.settings.temperature is not None:
            generation_config["temperature"] = self.settings.temperature
        if self.settings.max_tokens is not None:
            generation_config["maxOutputTokens"] = self.settings.max_tokens
        if generation_config:
            body["generationConfig"] = generation_config

        return body

    def parse_response(self, data: Any) -> list[Content]:
        """
        Turn a response body into model turns.

        Raises:
            AgentError: If the body is an error envelope or malformed
        """
        if not isinstance(data, dict):
            raise BackendError("Malformed response: expected a JSON object")

        if data.get("error"):
            raise classify_error(data["error"])

        contents = []
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise BackendError("Malformed response: candidates is not a list")

        for candidate in candidates:
            if not isinstance(candidate, dict):
                raise BackendError(f"Malformed candidate: {candidate!r}")
            raw = candidate.get("content") or {}
            if not isinstance(raw, dict):
                raise BackendError(f"Malformed candidate content: {raw!r}")
            try:
                contents.append(Content.model_validate({"role": Role.MODEL, **raw}))
            except ValidationError as e:
                raise BackendError(f"Malformed candidate: {e}")

        return contents

    async def ask(self, history: list[Content]) -> list[Content]:
        """Query Gemini with the conversation history."""
        client = self._get_client()

        logger.debug(
            "Querying model",
            model=self.settings.model,
            turns=len(history),
            tools=len(self._tools)
        )

        try:
            response = await client.post(self.endpoint, json=self.build_request(history))
        except httpx.HTTPError as e:
            logger.error("Model request failed", error=str(e))
            raise BackendError(f"Request failed: {e}")

        try:
            data = response.json()
        except ValueError:
            raise BackendError(
                f"Invalid response (HTTP {response.status_code})",
                code=response.status_code
            )

        contents = self.parse_response(data)

        logger.debug("Model responded", candidates=len(contents))
        return contents

    async def register_tool(self, definition: ToolDefinition) -> None:
        """Declare a tool; re-declaring a name replaces the old declaration."""
        self._tools[definition.name] = definition
        logger.debug("Tool declared to model", tool=definition.name)

    async def append_feedback(self, text: str, role: Role = Role.USER) -> None:
        """Count feedback; the history snapshot already carries it."""
        self.feedback_count += 1
        logger.debug("Feedback recorded", role=role.value, size=len(text))


Scripted = Union[list[Content], AgentError]


class MockLanguageModelClient(LanguageModelClient):
    """Mock client for testing without API calls."""

    def __init__(
        self,
        responses: Optional[Iterable[Scripted]] = None,
        settings: Optional[LLMSettings] = None
    ) -> None:
        """
        Initialize the mock.

        Args:
            responses: Scripted replies, consumed in order. An AgentError
                entry is raised instead of returned.
            settings: Ignored, accepted for factory compatibility
        """
        self.settings = settings
        self._responses: list[Scripted] = list(responses or [])
        self.call_history: list[list[Content]] = []
        self.tools: list[ToolDefinition] = []
        self.feedback: list[tuple[str, Role]] = []

    def queue(self, *responses: Scripted) -> None:
        """Add scripted replies."""
        self._responses.extend(responses)

    async def ask(self, history: list[Content]) -> list[Content]:
        """Return the next scripted reply."""
        self.call_history.append(history)

        if self._responses:
            response = self._responses.pop(0)
            if isinstance(response, AgentError):
                raise response
            return response

        return [Content.from_text(Role.MODEL, "This is a mock response.")]

    async def register_tool(self, definition: ToolDefinition) -> None:
        self.tools.append(definition)

    async def append_feedback(self, text: str, role: Role = Role.USER) -> None:
        self.feedback.append((text, role))


def create_llm_client(
    settings: LLMSettings,
    system_prompt: Optional[str] = None
) -> LanguageModelClient:
    """
    Factory function to create the configured language-model client.

    Supports:
    - gemini: Google Gemini generateContent API
    - mock: Mock client for testing

    Args:
        settings: LLM configuration settings
        system_prompt: Optional system instruction

    Returns:
        Configured client

    Raises:
        ValueError: If provider is not supported
        MissingCredentialError: If the provider needs an API key and none is set
    """
    if settings.provider == "gemini":
        client: LanguageModelClient = GeminiClient(settings, system_prompt=system_prompt)
    elif settings.provider == "mock":
        client = MockLanguageModelClient(settings=settings)
    else:
        raise ValueError(
            f"Unsupported LLM provider: {settings.provider}. "
            f"Supported: ['gemini', 'mock']"
        )

    logger.info("Creating LLM client", provider=settings.provider, model=settings.model)
    return client
