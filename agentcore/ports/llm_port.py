"""
LLM Port Interface
Abstract interface for the language model collaborator.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..agents.types import ModelRequest, ModelResponse


class LLMPort(ABC):
    """
    Abstract interface for Language Model operations.

    The agent core performs exactly one ``generate`` round-trip per turn.
    Implementations raise ``ModelError`` for provider failures or responses
    that cannot be turned into a ``ModelResponse``.
    """

    @abstractmethod
    async def generate(self, request: "ModelRequest") -> "ModelResponse":
        """
        Produce the assistant message and any requested tool calls.

        Args:
            request: System prompt, history, retrieved documents, query
                and available tool descriptors

        Returns:
            ModelResponse with message text and zero or more tool calls
        """
        pass
