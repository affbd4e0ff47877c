"""
Tests for PostgreSQL Repositories

Runs the asyncpg repositories against a mocked pool; no database needed.
Tests:
- Row mapping for conversations, messages, actions and workflow state
- Guarded message append
- Driver and network errors surfaced as PersistenceError
"""
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from agentcore.agents.types import (
    ActionKind,
    ActionRecord,
    ActionStatus,
    AgentAssignment,
    AssignmentStatus,
    Conversation,
    ConversationStatus,
    ExecutionStatus,
    Message,
    MessageRole,
    WorkflowExecution,
    WorkflowStrategy,
)
from agentcore.core.errors import ConversationNotFoundError, PersistenceError
from agentcore.infrastructure.postgres import (
    PostgresActionRepository,
    PostgresConversationRepository,
    PostgresWorkflowRepository,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def conn():
    """Mocked asyncpg connection"""
    connection = AsyncMock()
    connection.transaction = MagicMock()
    return connection


@pytest.fixture
def pool(conn):
    """Mocked asyncpg pool whose acquire() yields ``conn``"""
    mock_pool = MagicMock()
    mock_pool.acquire.return_value.__aenter__.return_value = conn
    mock_pool.close = AsyncMock()
    return mock_pool


def conversation_row(**overrides):
    row = {
        "id": "c1",
        "status": "active",
        "agent_id": "assistant",
        "user_id": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


# =============================================================================
# Conversation Repository Tests
# =============================================================================

class TestPostgresConversationRepository:
    """Tests for conversation SQL mapping"""

    @pytest.mark.asyncio
    async def test_create(self, pool, conn):
        conn.fetchrow.return_value = conversation_row()
        repository = PostgresConversationRepository(pool)

        created = await repository.create(Conversation(id="c1", agent_id="assistant"))

        assert created.id == "c1"
        assert created.status == ConversationStatus.ACTIVE
        assert conn.fetchrow.await_args.args[1:4] == ("c1", "active", "assistant")

    @pytest.mark.asyncio
    async def test_get_missing(self, pool, conn):
        conn.fetchrow.return_value = None

        assert await PostgresConversationRepository(pool).get("missing") is None

    @pytest.mark.asyncio
    async def test_get_with_messages(self, pool, conn):
        conn.fetchrow.return_value = conversation_row(status="archived")
        conn.fetch.return_value = [
            {"role": "user", "content": "hi", "tool_call_ids": "[]", "created_at": NOW},
            {"role": "assistant", "content": "hello", "tool_call_ids": '["call-1"]', "created_at": NOW},
        ]

        conversation = await PostgresConversationRepository(pool).get("c1", include_messages=True)

        assert conversation.is_archived
        assert [m.role for m in conversation.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert conversation.messages[1].tool_call_ids == ("call-1",)

    @pytest.mark.asyncio
    async def test_append_message(self, pool, conn):
        conn.fetchrow.return_value = {"id": 42}
        message = Message(role=MessageRole.ASSISTANT, content="done", tool_call_ids=("call-1",))

        await PostgresConversationRepository(pool).append_message("c1", message)

        args = conn.fetchrow.await_args.args
        assert args[1:4] == ("c1", "assistant", "done")
        assert json.loads(args[4]) == ["call-1"]
        conn.execute.assert_awaited_once()
        conn.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_append_to_unknown_conversation(self, pool, conn):
        conn.fetchrow.return_value = None

        with pytest.raises(ConversationNotFoundError):
            await PostgresConversationRepository(pool).append_message(
                "missing", Message(role=MessageRole.USER, content="hi")
            )

    @pytest.mark.asyncio
    async def test_list_messages_with_limit(self, pool, conn):
        conn.fetch.return_value = [{"role": "user", "content": "hi", "tool_call_ids": None, "created_at": NOW}]

        messages = await PostgresConversationRepository(pool).list_messages("c1", limit=3)

        assert len(messages) == 1
        assert conn.fetch.await_args.args[1:] == ("c1", 3)

    @pytest.mark.asyncio
    async def test_list_messages_zero_limit_skips_query(self, pool, conn):
        assert await PostgresConversationRepository(pool).list_messages("c1", limit=0) == []
        conn.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_status(self, pool, conn):
        repository = PostgresConversationRepository(pool)

        conn.execute.return_value = "UPDATE 1"
        assert await repository.update_status("c1", ConversationStatus.ARCHIVED)

        conn.execute.return_value = "UPDATE 0"
        assert not await repository.update_status("missing", ConversationStatus.ARCHIVED)

    @pytest.mark.asyncio
    async def test_driver_error_wrapped(self, pool, conn):
        conn.fetchrow.side_effect = asyncpg.PostgresError("relation does not exist")

        with pytest.raises(PersistenceError) as exc_info:
            await PostgresConversationRepository(pool).get("c1")
        assert exc_info.value.operation == "get_conversation"

    @pytest.mark.asyncio
    async def test_network_error_wrapped(self, pool):
        pool.acquire.return_value.__aenter__.side_effect = ConnectionRefusedError("connection refused")

        with pytest.raises(PersistenceError):
            await PostgresConversationRepository(pool).list_messages("c1")

    @pytest.mark.asyncio
    async def test_close(self, pool):
        await PostgresConversationRepository(pool).close()
        pool.close.assert_awaited_once()


# =============================================================================
# Action Repository Tests
# =============================================================================

class TestPostgresActionRepository:
    """Tests for action log SQL mapping"""

    @pytest.mark.asyncio
    async def test_append(self, pool, conn):
        record = ActionRecord(
            "c1",
            ActionKind.TOOL_CALL,
            ActionStatus.FAILED,
            tool_name="search",
            input_snapshot={"arguments": {"query": "x"}},
            duration=0.25,
            error="timeout"
        )

        await PostgresActionRepository(pool).append(record)

        args = conn.execute.await_args.args
        assert args[1:5] == (record.action_id, "c1", "TOOL_CALL", "search")
        assert json.loads(args[5]) == {"arguments": {"query": "x"}}
        assert args[7] == 250.0
        assert args[8:10] == ("FAILED", "timeout")

    @pytest.mark.asyncio
    async def test_list_by_conversation(self, pool, conn):
        conn.fetch.return_value = [{
            "action_id": "a1",
            "conversation_id": "c1",
            "action_type": "QUERY",
            "tool_name": "process_query",
            "input_params": '{"query": "ping"}',
            "output_result": {"message": "pong"},
            "execution_time_ms": 12.5,
            "status": "COMPLETED",
            "error_message": None,
            "created_at": NOW,
        }]

        records = await PostgresActionRepository(pool).list_by_conversation("c1", ActionKind.QUERY, limit=10)

        assert conn.fetch.await_args.args[1:] == ("c1", "QUERY", 10)
        record = records[0]
        assert record.kind == ActionKind.QUERY
        assert record.status == ActionStatus.COMPLETED
        assert record.input_snapshot == {"query": "ping"}
        assert record.output_snapshot == {"message": "pong"}
        assert record.duration == pytest.approx(0.0125)

    @pytest.mark.asyncio
    async def test_get_missing(self, pool, conn):
        conn.fetchrow.return_value = None
        assert await PostgresActionRepository(pool).get("missing") is None


# =============================================================================
# Workflow Repository Tests
# =============================================================================

class TestPostgresWorkflowRepository:
    """Tests for workflow state SQL mapping"""

    @pytest.mark.asyncio
    async def test_save_execution_upserts(self, pool, conn):
        execution = WorkflowExecution("report", WorkflowStrategy.PARALLEL, "task", conversation_id="c1")
        execution.mark_failed("synth broke", "synthesizer_failed")

        await PostgresWorkflowRepository(pool).save_execution(execution)

        sql, *values = conn.execute.await_args.args
        assert "ON CONFLICT (execution_id)" in sql
        assert values[:6] == [execution.execution_id, "report", "parallel", "task", "c1", "failed"]
        assert values[8] == "synthesizer_failed"

    @pytest.mark.asyncio
    async def test_get_execution(self, pool, conn):
        conn.fetchrow.return_value = {
            "execution_id": "e1",
            "definition_name": "report",
            "strategy": "hierarchical",
            "task": "task",
            "conversation_id": "c1",
            "status": "completed",
            "final_result": "done",
            "error": None,
            "failure_cause": None,
            "started_at": NOW,
            "ended_at": NOW,
        }

        execution = await PostgresWorkflowRepository(pool).get_execution("e1")

        assert execution.strategy == WorkflowStrategy.HIERARCHICAL
        assert execution.status == ExecutionStatus.COMPLETED
        assert execution.final_result == "done"

    @pytest.mark.asyncio
    async def test_assignments_round_trip_columns(self, pool, conn):
        assignment = AgentAssignment(execution_id="e1", agent_id="writer", task="Draft", position=2)
        repository = PostgresWorkflowRepository(pool)

        await repository.save_assignment(assignment)
        values = conn.execute.await_args.args[1:]
        assert values[:6] == (assignment.assignment_id, "e1", "writer", "Draft", 2, "pending")

        conn.fetch.return_value = [{
            "assignment_id": assignment.assignment_id,
            "execution_id": "e1",
            "agent_id": "writer",
            "task": "Draft",
            "position": 2,
            "status": "failed",
            "result": None,
            "error": "timeout",
            "created_at": NOW,
            "completed_at": NOW,
        }]
        listed = await repository.list_assignments("e1")

        assert listed[0].status == AssignmentStatus.FAILED
        assert listed[0].error == "timeout"
