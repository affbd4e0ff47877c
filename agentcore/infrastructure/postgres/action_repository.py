"""
PostgreSQL Action Repository Implementation

Table agent_actions (action_id, conversation_id, action_type, tool_name,
input_params JSONB, output_result JSONB, execution_time_ms, status,
error_message, created_at). Insert-only.
"""
import logging
from typing import List, Optional

import asyncpg

from .base import PostgresRepository
from ...agents.types import ActionKind, ActionRecord, ActionStatus
from ...core.logging_framework import AppLogger, LogCategory
from ...repositories.action_repository import ActionRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    action_id, conversation_id, action_type, tool_name, input_params,
    output_result, execution_time_ms, status, error_message, created_at
"""


class PostgresActionRepository(PostgresRepository, ActionRepository):
    """PostgreSQL repository for action log records"""

    def __init__(self, pool):
        super().__init__(pool)
        self.logger = AppLogger("action_repository")

    def _row_to_record(self, row: asyncpg.Record) -> ActionRecord:
        """Convert database row to ActionRecord."""
        return ActionRecord(
            action_id=str(row["action_id"]),
            conversation_id=row["conversation_id"],
            kind=ActionKind(row["action_type"].lower()),
            status=ActionStatus(row["status"].lower()),
            tool_name=row["tool_name"],
            input_snapshot=self._load(row["input_params"], {}),
            output_snapshot=self._load(row["output_result"], {}),
            duration=(row["execution_time_ms"] or 0) / 1000,
            error=row["error_message"],
            created_at=row["created_at"]
        )

    async def append(self, record: ActionRecord) -> ActionRecord:
        async with self._connection("append_action") as conn:
            await conn.execute(
                f"""
                INSERT INTO agent_actions ({_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                """,
                record.action_id,
                record.conversation_id,
                record.kind.name,
                record.tool_name,
                self._dump(record.input_snapshot),
                self._dump(record.output_snapshot),
                round(record.duration * 1000, 3),
                record.status.name,
                record.error,
                record.created_at
            )
        self.logger.debug(
            f"Inserted {record.kind.name} action",
            category=LogCategory.PERSISTENCE,
            extra_data={"action_id": record.action_id}
        )
        return record

    async def get(self, action_id: str) -> Optional[ActionRecord]:
        async with self._connection("get_action") as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM agent_actions WHERE action_id = $1",
                action_id
            )
            return self._row_to_record(row) if row else None

    async def list_by_conversation(
        self,
        conversation_id: str,
        kind: Optional[ActionKind] = None,
        limit: int = 100
    ) -> List[ActionRecord]:
        async with self._connection("list_actions") as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS} FROM agent_actions
                WHERE conversation_id = $1 AND ($2::text IS NULL OR action_type = $2)
                ORDER BY created_at ASC, action_id ASC
                LIMIT $3
                """,
                conversation_id,
                kind.name if kind else None,
                limit
            )
            return [self._row_to_record(row) for row in rows]
