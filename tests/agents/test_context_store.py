"""
Unit Tests for the Context Store

Tests:
- Conversation creation and lookup
- Append ordering and history windows
- Archived and unknown conversations
- Bounded retry on repository failures
"""
import asyncio

import pytest
from pydantic import ValidationError

from agentcore.agents.context_store import ContextStore
from agentcore.agents.types import ConversationStatus, Message, MessageRole
from agentcore.core.errors import (
    ConversationArchivedError,
    ConversationNotFoundError,
    PersistenceError,
)
from tests.mocks import FlakyConversationRepository


def user(content: str) -> Message:
    return Message(role=MessageRole.USER, content=content)


def assistant(content: str) -> Message:
    return Message(role=MessageRole.ASSISTANT, content=content)


# =============================================================================
# Conversation Lifecycle Tests
# =============================================================================

class TestConversationLifecycle:
    """Tests for create, get and archive"""

    @pytest.mark.asyncio
    async def test_create_and_get(self, context_store):
        created = await context_store.create_conversation("conv-1", agent_id="assistant", user_id="u1")
        fetched = await context_store.get_conversation("conv-1")

        assert created.id == "conv-1"
        assert fetched.agent_id == "assistant"
        assert fetched.status == ConversationStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_create_generates_id(self, context_store):
        conversation = await context_store.create_conversation()
        assert conversation.id

    @pytest.mark.asyncio
    async def test_create_existing_id_keeps_history(self, context_store):
        await context_store.create_conversation("conv-1")
        await context_store.append("conv-1", user("hello"))

        await context_store.create_conversation("conv-1")

        assert len(await context_store.history("conv-1", limit=10)) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, context_store):
        assert await context_store.get_conversation("missing") is None

    @pytest.mark.asyncio
    async def test_archive_blocks_appends(self, context_store):
        await context_store.create_conversation("conv-1")
        await context_store.archive("conv-1")

        conversation = await context_store.get_conversation("conv-1")
        assert conversation.is_archived

        with pytest.raises(ConversationArchivedError):
            await context_store.append("conv-1", user("too late"))

    @pytest.mark.asyncio
    async def test_archive_unknown(self, context_store):
        with pytest.raises(ConversationNotFoundError):
            await context_store.archive("missing")


# =============================================================================
# Append and History Tests
# =============================================================================

class TestAppendAndHistory:
    """Tests for message ordering"""

    @pytest.mark.asyncio
    async def test_history_returns_most_recent_oldest_first(self, context_store):
        await context_store.create_conversation("conv-1")
        for i in range(5):
            await context_store.append("conv-1", user(f"m{i}"))

        history = await context_store.history("conv-1", limit=3)

        assert [m.content for m in history] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_history_default_limit_from_settings(self, context_store, monkeypatch):
        monkeypatch.setenv("AGENTCORE_HISTORY_LIMIT", "2")
        await context_store.create_conversation("conv-1")
        for i in range(4):
            await context_store.append("conv-1", assistant(f"m{i}"))

        history = await context_store.history("conv-1")

        assert [m.content for m in history] == ["m2", "m3"]

    @pytest.mark.asyncio
    async def test_zero_limit_is_empty(self, context_store):
        await context_store.create_conversation("conv-1")
        await context_store.append("conv-1", user("hello"))

        assert await context_store.history("conv-1", limit=0) == []

    @pytest.mark.asyncio
    async def test_unknown_conversation_has_empty_history(self, context_store):
        assert await context_store.history("missing", limit=5) == []

    @pytest.mark.asyncio
    async def test_append_unknown_without_create(self, context_store):
        with pytest.raises(ConversationNotFoundError):
            await context_store.append("missing", user("hello"))

    @pytest.mark.asyncio
    async def test_append_with_create(self, context_store):
        await context_store.append("new-conv", assistant("hi"), create=True)

        conversation = await context_store.get_conversation("new-conv", include_messages=True)
        assert conversation.message_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_appends_all_kept(self, context_store):
        await context_store.create_conversation("conv-1")

        await asyncio.gather(*[
            context_store.append("conv-1", user(f"m{i}")) for i in range(20)
        ])

        history = await context_store.history("conv-1", limit=100)
        assert sorted(m.content for m in history) == sorted(f"m{i}" for i in range(20))

    def test_messages_are_immutable(self):
        message = user("fixed")
        with pytest.raises(ValidationError):
            message.content = "changed"


# =============================================================================
# Retry Tests
# =============================================================================

class TestRepositoryFailures:
    """Tests for bounded retry"""

    @pytest.mark.asyncio
    async def test_single_failure_is_retried(self):
        repository = FlakyConversationRepository(append_failures=1)
        store = ContextStore(repository)
        await store.create_conversation("conv-1")

        await store.append("conv-1", user("hello"))

        assert repository.append_calls == 2
        assert len(await store.history("conv-1", limit=5)) == 1

    @pytest.mark.asyncio
    async def test_repeated_failure_raises_persistence_error(self):
        repository = FlakyConversationRepository(list_failures=5)
        store = ContextStore(repository)

        with pytest.raises(PersistenceError):
            await store.history("conv-1", limit=5)
        assert repository.list_calls == 2

    @pytest.mark.asyncio
    async def test_default_repository_is_memory(self):
        from agentcore.infrastructure.memory import MemoryConversationRepository

        assert isinstance(ContextStore().repository, MemoryConversationRepository)
