"""Orchestrator.

Manages conversation state, queries the language model, dispatches the
function calls it requests to registered tools and recovers from failures.
"""

__version__ = "0.1.0"

from orchestrator.agent import AgentState, InputReader, Orchestrator
from orchestrator.conversation import ConversationHistory
from orchestrator.llm import LanguageModelClient, classify_error, create_llm_client
from orchestrator.retry import RetryPolicy

__all__ = [
    "AgentState",
    "InputReader",
    "Orchestrator",
    "ConversationHistory",
    "LanguageModelClient",
    "classify_error",
    "create_llm_client",
    "RetryPolicy",
]
