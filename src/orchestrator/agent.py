"""Orchestrator - the conversation state machine.

The orchestrator coordinates:
- Reading user input
- Querying the language model with the conversation history
- Dispatching structured function calls to registered tools
- Feeding tool output and failures back into the conversation
- Deciding when to show text to the user and when to loop internally
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from functools import partial
from typing import Callable, Optional

from shared.logging import bind_context, clear_context, get_logger
from shared.models import Content, FunctionCall, Role
from orchestrator.conversation import ConversationHistory
from orchestrator.errors import (
    AgentError,
    ToolExecutionError,
    ToolNotFound,
    ToolRoundLimitExceeded,
    UserInputError,
)
from orchestrator.llm import LanguageModelClient
from orchestrator.retry import RetryPolicy
from toolbox.base import Tool, ToolError
from toolbox.registry import ToolRegistry

logger = get_logger(__name__)


class AgentState(str, Enum):
    """States of the conversation loop."""
    AWAITING_INPUT = "awaiting_input"
    QUERY_MODEL = "query_model"
    DISPATCH_TOOLS = "dispatch_tools"
    RECOVERING = "recovering"
    TERMINATED = "terminated"


class InputReader(ABC):
    """Source of user input lines."""

    @abstractmethod
    async def read(self) -> str:
        """
        Read one line of input.

        Raises:
            UserInputError: If no input can be read
        """
        pass


class TerminalInputReader(InputReader):
    """Reads lines from the terminal without blocking the event loop."""

    PROMPT = "\x1b[38;5;5mYOU: \x1b[0m"

    def __init__(self, prompt: Optional[str] = None) -> None:
        self.prompt = self.PROMPT if prompt is None else prompt

    async def read(self) -> str:
        try:
            return await asyncio.to_thread(input, self.prompt)
        except EOFError:
            raise UserInputError("end of input")
        except (OSError, UnicodeDecodeError) as e:
            raise UserInputError(str(e))


class AgentObserver:
    """Receives state transitions and errors. The default does nothing."""

    def on_transition(self, previous: AgentState, current: AgentState) -> None:
        pass

    def on_error(self, error: AgentError) -> None:
        pass


class LoggingObserver(AgentObserver):
    """Logs state transitions and errors through structlog."""

    def on_transition(self, previous: AgentState, current: AgentState) -> None:
        logger.debug("State transition", previous=previous.value, current=current.value)

    def on_error(self, error: AgentError) -> None:
        log = logger.error if error.fatal else logger.warning
        log("Agent error", kind=type(error).__name__, fatal=error.fatal, error=str(error))


def print_output(text: str) -> None:
    """Write a line of model output to the terminal."""
    from orchestrator import __version__

    print(f"\x1b[34mVOO:{__version__}> \x1b[0m{text}", flush=True)


class Orchestrator:
    """
    Conversation loop between a user, a language model and tools.

    One step of ``step()`` runs exactly one state. Exactly one model query
    is in flight at a time and tool calls of a batch run sequentially, in
    the order the model sent them, so tool output lands in the history in
    a deterministic order.
    """

    def __init__(
        self,
        client: LanguageModelClient,
        reader: Optional[InputReader] = None,
        registry: Optional[ToolRegistry] = None,
        history: Optional[ConversationHistory] = None,
        retry_policy: Optional[RetryPolicy] = None,
        observer: Optional[AgentObserver] = None,
        output: Optional[Callable[[str], None]] = None,
        exit_command: str = "exit",
        max_tool_rounds: int = 10
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            client: Language-model client
            reader: Source of user input, the terminal by default
            registry: Tool registry, shared with tool registration
            history: Conversation history, created empty by default
            retry_policy: Retry policy for backend and tool failures
            observer: Receives state transitions and errors
            output: Callable showing text to the user
            exit_command: Input prefix that ends the session
            max_tool_rounds: Maximum dispatch rounds per user turn
        """
        self.client = client
        self.reader = reader or TerminalInputReader()
        self.registry = registry or ToolRegistry()
        self.history = history or ConversationHistory()
        self.retry_policy = retry_policy or RetryPolicy()
        self.observer = observer or LoggingObserver()
        self.output = output or print_output
        self.exit_command = exit_command
        self.max_tool_rounds = max_tool_rounds

        self.session_id = str(uuid.uuid4())
        self.state = AgentState.AWAITING_INPUT
        self.exit_code: Optional[int] = None
        self.last_error: Optional[AgentError] = None

        self._pending_calls: list[FunctionCall] = []
        self._tool_rounds = 0
        self._handlers = {
            AgentState.AWAITING_INPUT: self._await_input,
            AgentState.QUERY_MODEL: self._query_model,
            AgentState.DISPATCH_TOOLS: self._dispatch_tools,
            AgentState.RECOVERING: self._recover,
        }

    async def register_tool(self, tool: Tool) -> None:
        """
        Make a tool available to the model.

        The tool is usable for dispatch as soon as it is in the registry;
        it is then declared to the client for later queries.
        """
        self.registry.register(tool)
        await self.client.register_tool(tool.definition)

    async def run(self) -> int:
        """
        Run the loop until the session terminates.

        Returns:
            Exit code: 0 after the exit command, 1 after a fatal error
        """
        bind_context(session_id=self.session_id)
        logger.info("Session started", tools=self.registry.names())

        try:
            while self.state is not AgentState.TERMINATED:
                await self.step()
        finally:
            logger.info(
                "Session ended",
                exit_code=self.exit_code,
                **self.history.get_stats()
            )
            clear_context()

        return self.exit_code if self.exit_code is not None else 0

    async def step(self) -> AgentState:
        """
        Run the current state once.

        Returns:
            The state after this step
        """
        handler = self._handlers.get(self.state)
        if handler is None:
            return self.state

        try:
            await handler()
        except AgentError as e:
            self._fail(e)

        return self.state

    def _transition(self, state: AgentState) -> None:
        previous, self.state = self.state, state
        self.observer.on_transition(previous, state)

    def _fail(self, error: AgentError) -> None:
        """Route an error to the recovery state."""
        self.last_error = error
        self.observer.on_error(error)
        self._transition(AgentState.RECOVERING)

    async def _feedback(self, text: str) -> None:
        """Append locally produced text to the history and the client's view."""
        await self.history.append(Content.from_text(Role.USER, text))
        await self.client.append_feedback(text, Role.USER)

    async def _await_input(self) -> None:
        line = await self.reader.read()

        if line.startswith(self.exit_command):
            self.output("Bye!")
            self.exit_code = 0
            self._transition(AgentState.TERMINATED)
            return

        text = line.rstrip("\r\n")
        if not text.strip():
            # The backend rejects empty text parts; ask again
            logger.debug("Ignoring blank input")
            return

        await self.history.append(Content.from_text(Role.USER, text))
        self._tool_rounds = 0
        self._transition(AgentState.QUERY_MODEL)

    async def _query_model(self) -> None:
        snapshot = await self.history.snapshot()
        response = await self.retry_policy.attempt(
            partial(self.client.ask, snapshot),
            context="model query"
        )

        calls = [call for content in response for call in content.function_calls]

        if calls:
            for content in response:
                if content.function_calls:
                    await self.history.append(content)
            self._pending_calls = calls
            self._transition(AgentState.DISPATCH_TOOLS)
            return

        for content in response:
            for text in content.texts:
                self.output(text)
                await self._feedback(text)

        self._transition(AgentState.AWAITING_INPUT)

    async def _dispatch_tools(self) -> None:
        calls, self._pending_calls = self._pending_calls, []

        self._tool_rounds += 1
        if self._tool_rounds > self.max_tool_rounds:
            raise ToolRoundLimitExceeded(self.max_tool_rounds)

        for call in calls:
            tool = self.registry.lookup(call.name)

            if tool is None:
                error = ToolNotFound(call.name)
                self.observer.on_error(error)
                await self._feedback(error.summary())
                continue

            logger.info("Executing tool", tool=call.name, round=self._tool_rounds)
            result = await self.retry_policy.attempt(
                partial(self._execute, tool, call),
                context=f"tool '{call.name}'"
            )
            await self._feedback(result)

        self._transition(AgentState.QUERY_MODEL)

    async def _execute(self, tool: Tool, call: FunctionCall) -> str:
        """Run one tool call, mapping tool failures onto ToolExecutionError."""
        try:
            result = await tool.execute(call.args)
        except ToolError as e:
            raise ToolExecutionError(call.name, str(e)) from e
        except AgentError:
            raise
        except Exception as e:
            logger.exception("Tool raised unexpectedly", tool=call.name)
            raise ToolExecutionError(call.name, f"{type(e).__name__}: {e}") from e

        return result if isinstance(result, str) else str(result)

    async def _recover(self) -> None:
        error = self.last_error
        if error is None:
            self._transition(AgentState.AWAITING_INPUT)
            return

        if error.fatal:
            self.output(f"Error: {error}")
            self.exit_code = 1
            self._transition(AgentState.TERMINATED)
            return

        summary = error.summary()
        self.output(summary)
        self._pending_calls = []

        try:
            await self._feedback(summary)
        except AgentError as e:
            self.observer.on_error(e)
            if e.fatal:
                self.output(f"Error: {e}")
                self.exit_code = 1
                self._transition(AgentState.TERMINATED)
                return

        self._transition(AgentState.AWAITING_INPUT)
