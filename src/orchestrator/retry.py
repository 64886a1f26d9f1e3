"""Bounded retry for recoverable failures.

Wraps tenacity with the agent's error policy: only recoverable
``AgentError``s are retried, with a fixed delay between attempts.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from shared.logging import get_logger
from orchestrator.errors import AgentError, RetryExhausted

logger = get_logger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[Any]]


def is_recoverable(exc: BaseException) -> bool:
    """Whether an exception should be retried."""
    return isinstance(exc, AgentError) and not exc.fatal


class RetryPolicy:
    """
    Bounded-attempt, fixed-delay retry.

    Each ``attempt()`` call is its own failure context with a fresh
    budget. Fatal errors and non-agent exceptions are not retried.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 1.0,
        sleep: Optional[Sleeper] = None
    ) -> None:
        """
        Initialize the policy.

        Args:
            max_attempts: Attempts per context, including the first one
            delay_seconds: Fixed delay observed between attempts
            sleep: Awaitable sleep function, ``asyncio.sleep`` by default
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep or asyncio.sleep
        self.last_attempts = 0

    def _before_sleep(self, context: str) -> Callable[[RetryCallState], None]:
        def log_retry(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            logger.warning(
                "Retrying after recoverable error",
                context=context,
                attempt=state.attempt_number,
                max_attempts=self.max_attempts,
                error=str(exc)
            )
        return log_retry

    async def attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        context: str = "operation"
    ) -> T:
        """
        Run an operation under the policy.

        Args:
            operation: Zero-argument coroutine function to run
            context: Label for the failure context, used in logs and errors

        Returns:
            The operation's result

        Raises:
            RetryExhausted: If every attempt failed with a recoverable error
            AgentError: Fatal errors, raised on first occurrence
        """
        self.last_attempts = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception(is_recoverable),
            before_sleep=self._before_sleep(context),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    self.last_attempts = attempt.retry_state.attempt_number
                    result = await operation()
        except AgentError as exc:
            if exc.fatal:
                raise
            logger.error(
                "Retry budget exhausted",
                context=context,
                attempts=self.last_attempts,
                error=str(exc)
            )
            raise RetryExhausted(context, self.last_attempts, exc) from exc

        return result
