"""
In-Memory Conversation Repository Implementation

Implementation for development and testing. Appends are guarded by an
asyncio lock so each append is atomic.
"""
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
import asyncio

from ...agents.types import Conversation, ConversationStatus, Message
from ...core.errors import ConversationNotFoundError
from ...repositories.conversation_repository import ConversationRepository


class MemoryConversationRepository(ConversationRepository):
    """
    In-memory implementation of ConversationRepository.

    Suitable for development and testing. Not recommended for production.
    """

    def __init__(self):
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._lock = asyncio.Lock()

    async def create(self, conversation: Conversation) -> Conversation:
        """Create a conversation; an existing id is returned unchanged"""
        async with self._lock:
            existing = self._conversations.get(conversation.id)
            if existing is not None:
                return replace(existing, messages=[])
            stored = replace(conversation, messages=[])
            self._conversations[conversation.id] = stored
            self._messages[conversation.id] = list(conversation.messages)
            return replace(stored)

    async def get(self, conversation_id: str, include_messages: bool = False) -> Optional[Conversation]:
        """Get conversation copy"""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        messages = list(self._messages.get(conversation_id, [])) if include_messages else []
        return replace(conversation, messages=messages)

    async def append_message(self, conversation_id: str, message: Message) -> None:
        """Append one message"""
        async with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            self._messages[conversation_id].append(message)
            conversation.updated_at = datetime.now(timezone.utc)

    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> List[Message]:
        """Most recent messages, oldest first"""
        messages = self._messages.get(conversation_id, [])
        if limit is None:
            return list(messages)
        if limit <= 0:
            return []
        return list(messages[-limit:])

    async def update_status(self, conversation_id: str, status: ConversationStatus) -> bool:
        """Change conversation status"""
        async with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                return False
            conversation.status = status
            conversation.updated_at = datetime.now(timezone.utc)
            return True
