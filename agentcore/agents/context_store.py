"""
Context Store
Append-only conversation history over a ConversationRepository.
"""
import logging
import uuid
from typing import List, Optional

from .types import Conversation, ConversationStatus, Message
from ..core.config import get_settings
from ..core.errors import ConversationArchivedError, ConversationNotFoundError
from ..core.retry import retry_once
from ..repositories.conversation_repository import ConversationRepository

logger = logging.getLogger(__name__)


class ContextStore:
    """
    Conversation history for agent turns.

    Past messages are never mutated; insertion order is causal order.
    Repository failures are retried once and then raised as
    PersistenceError.
    """

    def __init__(self, repository: Optional[ConversationRepository] = None):
        if repository is None:
            from ..infrastructure.memory import MemoryConversationRepository
            repository = MemoryConversationRepository()
        self.repository = repository

    async def create_conversation(
        self,
        conversation_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> Conversation:
        """
        Create a conversation.

        Creating an id that already exists returns the stored conversation.
        """
        conversation = Conversation(
            id=conversation_id or str(uuid.uuid4()),
            agent_id=agent_id,
            user_id=user_id
        )
        created = await retry_once(
            lambda: self.repository.create(conversation),
            "create_conversation"
        )
        logger.debug(f"[ContextStore] Conversation ready: {created.id}")
        return created

    async def get_conversation(self, conversation_id: str, include_messages: bool = False) -> Optional[Conversation]:
        """Get a conversation or None"""
        return await retry_once(
            lambda: self.repository.get(conversation_id, include_messages),
            "get_conversation"
        )

    async def append(self, conversation_id: str, message: Message, create: bool = False) -> None:
        """
        Append a message to a conversation.

        Args:
            conversation_id: Target conversation
            message: Message to append
            create: Create the conversation when it does not exist

        Raises:
            ConversationNotFoundError: unknown id and ``create`` is False
            ConversationArchivedError: the conversation is archived
            PersistenceError: the repository failed twice
        """
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            if not create:
                raise ConversationNotFoundError(conversation_id)
            conversation = await self.create_conversation(conversation_id)

        if conversation.status == ConversationStatus.ARCHIVED:
            raise ConversationArchivedError(conversation_id)

        await retry_once(
            lambda: self.repository.append_message(conversation_id, message),
            "append_message"
        )

    async def history(self, conversation_id: str, limit: Optional[int] = None) -> List[Message]:
        """
        Most recent ``limit`` messages, oldest first.

        Unknown conversations have an empty history.
        """
        limit = get_settings().HISTORY_LIMIT if limit is None else limit
        if limit <= 0:
            return []
        return await retry_once(
            lambda: self.repository.list_messages(conversation_id, limit),
            "list_messages"
        )

    async def archive(self, conversation_id: str) -> None:
        """Archive a conversation; it accepts no further messages"""
        updated = await retry_once(
            lambda: self.repository.update_status(conversation_id, ConversationStatus.ARCHIVED),
            "archive_conversation"
        )
        if not updated:
            raise ConversationNotFoundError(conversation_id)
        logger.info(f"[ContextStore] Archived conversation {conversation_id}")
