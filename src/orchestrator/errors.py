"""Error taxonomy for the conversation loop.

Every failure the orchestrator reacts to is an ``AgentError``. The
``fatal`` flag decides the policy: fatal errors end the session,
recoverable ones are turned into conversation feedback.
"""

from typing import Optional


class AgentError(Exception):
    """Base exception for agent errors."""

    fatal: bool = False

    def summary(self) -> str:
        """Text fed back into the conversation for recoverable errors."""
        return str(self)


class UserInputError(AgentError):
    """Reading external input failed."""

    fatal = True

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(f"Error reading input: {reason}" if reason else "Error reading input")


class ExpiredCredential(AgentError):
    """The configured API key is no longer valid."""

    fatal = True

    def __init__(self, message: str = "API key expired.") -> None:
        self.message = message
        super().__init__(f"Expired credential: {message}")


class MissingCredentialError(AgentError):
    """No API key was configured at startup."""

    fatal = True

    def __init__(self, variable: str = "GEMINI_API_KEY") -> None:
        self.variable = variable
        super().__init__(f"{variable} must be set")


class BackendError(AgentError):
    """The backend reported a failure, or could not be reached."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        status: Optional[str] = None
    ) -> None:
        self.message = message
        self.code = code
        self.status = status
        super().__init__(f"Backend error: {message}")


class ToolNotFound(AgentError):
    """The model called a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")

    def summary(self) -> str:
        return (
            f"Tool '{self.name}' is not available. "
            "Use one of the declared tools or answer directly."
        )


class ToolExecutionError(AgentError):
    """A tool failed while executing."""

    def __init__(self, tool: str, reason: str) -> None:
        self.tool = tool
        self.reason = reason
        super().__init__(f"Tool '{tool}' failed: {reason}")


class RetryExhausted(AgentError):
    """A recoverable operation kept failing until the attempt budget ran out."""

    def __init__(self, context: str, attempts: int, last_error: AgentError) -> None:
        self.context = context
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{context} failed after {attempts} attempt(s): {last_error}")


class ToolRoundLimitExceeded(AgentError):
    """The model kept requesting tools past the per-turn round limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Stopped after {limit} consecutive tool rounds without an answer")
