"""
Conversation Repository Interface

Abstract persistence for conversations and their append-only messages.
"""
from abc import ABC, abstractmethod
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from ..agents.types import Conversation, ConversationStatus, Message


class ConversationRepository(ABC):
    """
    Abstract repository for conversation persistence.

    Implementations raise PersistenceError for backend failures.
    """

    @abstractmethod
    async def create(self, conversation: "Conversation") -> "Conversation":
        """Persist a new conversation; an existing id is left untouched"""
        pass

    @abstractmethod
    async def get(self, conversation_id: str, include_messages: bool = False) -> Optional["Conversation"]:
        """Get a conversation or None; messages are loaded only when asked"""
        pass

    @abstractmethod
    async def append_message(self, conversation_id: str, message: "Message") -> None:
        """Append one message at the end of the conversation"""
        pass

    @abstractmethod
    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> List["Message"]:
        """Most recent ``limit`` messages (all when None), oldest first"""
        pass

    @abstractmethod
    async def update_status(self, conversation_id: str, status: "ConversationStatus") -> bool:
        """Change conversation status; False when the id is unknown"""
        pass
