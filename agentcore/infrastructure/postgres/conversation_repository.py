"""
PostgreSQL Conversation Repository Implementation

Tables:
- conversations (id, status, agent_id, user_id, created_at, updated_at)
- conversation_messages (id BIGSERIAL, conversation_id, role, content,
  tool_call_ids JSONB, created_at); ``id`` order is insertion order
"""
import logging
from typing import List, Optional

import asyncpg

from .base import PostgresRepository
from ...agents.types import Conversation, ConversationStatus, Message, MessageRole
from ...core.errors import ConversationNotFoundError
from ...repositories.conversation_repository import ConversationRepository

logger = logging.getLogger(__name__)


class PostgresConversationRepository(PostgresRepository, ConversationRepository):
    """
    PostgreSQL implementation of ConversationRepository.

    Each append is a single INSERT guarded by the conversation's existence,
    so concurrent appends never interleave partially.
    """

    def _row_to_conversation(self, row: asyncpg.Record, messages: Optional[List[Message]] = None) -> Conversation:
        """Convert database row to Conversation."""
        return Conversation(
            id=row["id"],
            status=ConversationStatus(row["status"]),
            agent_id=row["agent_id"],
            user_id=row["user_id"],
            messages=messages or [],
            created_at=row["created_at"],
            updated_at=row["updated_at"]
        )

    def _row_to_message(self, row: asyncpg.Record) -> Message:
        """Convert database row to Message."""
        return Message(
            role=MessageRole(row["role"]),
            content=row["content"],
            tool_call_ids=tuple(self._load(row["tool_call_ids"], [])),
            timestamp=row["created_at"]
        )

    async def create(self, conversation: Conversation) -> Conversation:
        async with self._connection("create_conversation") as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO conversations (id, status, agent_id, user_id, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                ON CONFLICT (id) DO UPDATE SET id = conversations.id
                RETURNING id, status, agent_id, user_id, created_at, updated_at
                """,
                conversation.id,
                conversation.status.value,
                conversation.agent_id,
                conversation.user_id,
                conversation.created_at,
                conversation.updated_at
            )
            return self._row_to_conversation(row)

    async def get(self, conversation_id: str, include_messages: bool = False) -> Optional[Conversation]:
        async with self._connection("get_conversation") as conn:
            row = await conn.fetchrow(
                """
                SELECT id, status, agent_id, user_id, created_at, updated_at
                FROM conversations WHERE id = $1
                """,
                conversation_id
            )
            if row is None:
                return None
            messages = None
            if include_messages:
                rows = await conn.fetch(
                    """
                    SELECT role, content, tool_call_ids, created_at
                    FROM conversation_messages
                    WHERE conversation_id = $1
                    ORDER BY id ASC
                    """,
                    conversation_id
                )
                messages = [self._row_to_message(r) for r in rows]
            return self._row_to_conversation(row, messages)

    async def append_message(self, conversation_id: str, message: Message) -> None:
        async with self._connection("append_message") as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """
                    INSERT INTO conversation_messages (conversation_id, role, content, tool_call_ids, created_at)
                    SELECT $1, $2, $3, $4, $5
                    WHERE EXISTS (SELECT 1 FROM conversations WHERE id = $1)
                    RETURNING id
                    """,
                    conversation_id,
                    message.role.value,
                    message.content,
                    self._dump(list(message.tool_call_ids)),
                    message.timestamp
                )
                if row is None:
                    raise ConversationNotFoundError(conversation_id)
                await conn.execute(
                    "UPDATE conversations SET updated_at = NOW() WHERE id = $1",
                    conversation_id
                )

    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> List[Message]:
        if limit is not None and limit <= 0:
            return []
        async with self._connection("list_messages") as conn:
            if limit is None:
                rows = await conn.fetch(
                    """
                    SELECT role, content, tool_call_ids, created_at
                    FROM conversation_messages
                    WHERE conversation_id = $1
                    ORDER BY id ASC
                    """,
                    conversation_id
                )
            else:
                rows = await conn.fetch(
                    """
                    SELECT role, content, tool_call_ids, created_at FROM (
                        SELECT id, role, content, tool_call_ids, created_at
                        FROM conversation_messages
                        WHERE conversation_id = $1
                        ORDER BY id DESC
                        LIMIT $2
                    ) recent
                    ORDER BY id ASC
                    """,
                    conversation_id,
                    limit
                )
            return [self._row_to_message(row) for row in rows]

    async def update_status(self, conversation_id: str, status: ConversationStatus) -> bool:
        async with self._connection("update_conversation_status") as conn:
            result = await conn.execute(
                "UPDATE conversations SET status = $2, updated_at = NOW() WHERE id = $1",
                conversation_id,
                status.value
            )
            return result.endswith(" 1")
