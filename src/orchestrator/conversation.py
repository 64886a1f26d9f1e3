"""Conversation history for the Orchestrator.

An append-only log of dialogue turns. It is the sole source of context
sent to the language-model backend.
"""

import asyncio
from collections import Counter
from typing import Any, Iterable, Optional

from shared.logging import get_logger
from shared.models import Content

logger = get_logger(__name__)


class ConversationHistory:
    """
    Append-only, ordered log of conversation turns.

    Responsibilities:
    - Append turns atomically with respect to snapshot reads
    - Hand out independent point-in-time copies for backend requests

    Turns are never removed or reordered once appended.
    """

    def __init__(self, contents: Optional[Iterable[Content]] = None) -> None:
        """
        Initialize the history.

        Args:
            contents: Optional turns to seed the log with
        """
        self._contents: list[Content] = list(contents or [])
        self._lock = asyncio.Lock()

    async def append(self, content: Content) -> None:
        """
        Append one turn to the log.

        Args:
            content: Turn to append

        Raises:
            TypeError: If ``content`` is not a Content
        """
        if not isinstance(content, Content):
            raise TypeError(f"Expected Content, got {type(content).__name__}")

        async with self._lock:
            self._contents.append(content)
            length = len(self._contents)

        logger.debug(
            "Turn appended",
            role=content.role.value,
            parts=len(content.parts),
            length=length
        )

    async def snapshot(self) -> list[Content]:
        """
        Get an independent copy of every turn so far.

        The copy is taken under the lock, so it never observes a
        partially-appended turn. Callers hold no lock while using it.
        """
        async with self._lock:
            return [c.model_copy(deep=True) for c in self._contents]

    def __len__(self) -> int:
        return len(self._contents)

    def get_stats(self) -> dict[str, Any]:
        """Get history statistics."""
        roles = Counter(c.role.value for c in self._contents)
        return {
            "total_turns": len(self._contents),
            "by_role": dict(roles),
        }
