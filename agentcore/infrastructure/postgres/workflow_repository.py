"""
PostgreSQL Workflow Repository Implementation

Tables:
- workflow_executions (execution_id, definition_name, strategy, task,
  conversation_id, status, final_result, error, failure_cause,
  started_at, ended_at)
- agent_assignments (assignment_id, execution_id, agent_id, task,
  position, status, result, error, created_at, completed_at)
"""
import logging
from typing import List, Optional

import asyncpg

from .base import PostgresRepository
from ...agents.types import (
    AgentAssignment,
    AssignmentStatus,
    ExecutionStatus,
    WorkflowExecution,
    WorkflowStrategy,
)
from ...repositories.workflow_repository import WorkflowRepository

logger = logging.getLogger(__name__)


class PostgresWorkflowRepository(PostgresRepository, WorkflowRepository):
    """PostgreSQL repository for workflow executions and assignments"""

    def _row_to_execution(self, row: asyncpg.Record) -> WorkflowExecution:
        """Convert database row to WorkflowExecution."""
        return WorkflowExecution(
            execution_id=str(row["execution_id"]),
            definition_name=row["definition_name"],
            strategy=WorkflowStrategy(row["strategy"]),
            task=row["task"],
            conversation_id=row["conversation_id"],
            status=ExecutionStatus(row["status"]),
            final_result=row["final_result"],
            error=row["error"],
            failure_cause=row["failure_cause"],
            started_at=row["started_at"],
            ended_at=row["ended_at"]
        )

    def _row_to_assignment(self, row: asyncpg.Record) -> AgentAssignment:
        """Convert database row to AgentAssignment."""
        return AgentAssignment(
            assignment_id=str(row["assignment_id"]),
            execution_id=str(row["execution_id"]),
            agent_id=row["agent_id"],
            task=row["task"],
            position=row["position"],
            status=AssignmentStatus(row["status"]),
            result=row["result"],
            error=row["error"],
            created_at=row["created_at"],
            completed_at=row["completed_at"]
        )

    async def save_execution(self, execution: WorkflowExecution) -> None:
        async with self._connection("save_execution") as conn:
            await conn.execute(
                """
                INSERT INTO workflow_executions (
                    execution_id, definition_name, strategy, task, conversation_id,
                    status, final_result, error, failure_cause, started_at, ended_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                ON CONFLICT (execution_id) DO UPDATE SET
                    status = EXCLUDED.status,
                    final_result = EXCLUDED.final_result,
                    error = EXCLUDED.error,
                    failure_cause = EXCLUDED.failure_cause,
                    ended_at = EXCLUDED.ended_at
                """,
                execution.execution_id,
                execution.definition_name,
                execution.strategy.value,
                execution.task,
                execution.conversation_id,
                execution.status.value,
                execution.final_result,
                execution.error,
                execution.failure_cause,
                execution.started_at,
                execution.ended_at
            )

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        async with self._connection("get_execution") as conn:
            row = await conn.fetchrow(
                "SELECT * FROM workflow_executions WHERE execution_id = $1",
                execution_id
            )
            return self._row_to_execution(row) if row else None

    async def save_assignment(self, assignment: AgentAssignment) -> None:
        async with self._connection("save_assignment") as conn:
            await conn.execute(
                """
                INSERT INTO agent_assignments (
                    assignment_id, execution_id, agent_id, task, position,
                    status, result, error, created_at, completed_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                ON CONFLICT (assignment_id) DO UPDATE SET
                    status = EXCLUDED.status,
                    result = EXCLUDED.result,
                    error = EXCLUDED.error,
                    completed_at = EXCLUDED.completed_at
                """,
                assignment.assignment_id,
                assignment.execution_id,
                assignment.agent_id,
                assignment.task,
                assignment.position,
                assignment.status.value,
                assignment.result,
                assignment.error,
                assignment.created_at,
                assignment.completed_at
            )

    async def list_assignments(self, execution_id: str) -> List[AgentAssignment]:
        async with self._connection("list_assignments") as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM agent_assignments
                WHERE execution_id = $1
                ORDER BY created_at ASC, position ASC
                """,
                execution_id
            )
            return [self._row_to_assignment(row) for row in rows]
