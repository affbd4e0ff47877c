"""
Action Log
Durable, append-only record of queries, tool calls and task steps.
"""
import logging
from typing import Any, Dict, List, Optional

from .types import ActionKind, ActionRecord, ActionStatus, LogWriteResult
from ..core.errors import PersistenceError
from ..core.logging_framework import AppLogger, LogCategory
from ..core.retry import retry_once
from ..repositories.action_repository import ActionRepository

logger = logging.getLogger(__name__)
app_logger = AppLogger(__name__)


class ActionLog:
    """
    Writes ActionRecords through an ActionRepository.

    A failed write is retried once, logged and returned as a
    LogWriteResult; it never raises into the caller.
    """

    def __init__(self, repository: Optional[ActionRepository] = None):
        if repository is None:
            from ..infrastructure.memory import MemoryActionRepository
            repository = MemoryActionRepository()
        self.repository = repository

    async def record(self, record: ActionRecord) -> LogWriteResult:
        """Persist one record; failures are values"""
        attempts = 0

        async def write() -> ActionRecord:
            nonlocal attempts
            attempts += 1
            return await self.repository.append(record)

        try:
            await retry_once(write, f"action_log.{record.kind.value}")
        except PersistenceError as e:
            app_logger.error(
                f"Action log write failed: {e.message}",
                category=LogCategory.PERSISTENCE,
                extra_data={
                    "action_id": record.action_id,
                    "conversation_id": record.conversation_id,
                    "kind": record.kind.value,
                    "tool_name": record.tool_name
                }
            )
            return LogWriteResult(success=False, action_id=record.action_id, attempts=attempts, error=e.message)

        app_logger.debug(
            f"Recorded {record.kind.value} action",
            category=LogCategory.AUDIT,
            extra_data={"action_id": record.action_id, "status": record.status.value}
        )
        return LogWriteResult(success=True, action_id=record.action_id, attempts=attempts)

    async def record_action(
        self,
        conversation_id: str,
        kind: ActionKind,
        status: ActionStatus,
        tool_name: Optional[str] = None,
        input_snapshot: Optional[Dict[str, Any]] = None,
        output_snapshot: Optional[Dict[str, Any]] = None,
        duration: float = 0.0,
        error: Optional[str] = None
    ) -> LogWriteResult:
        """Build and persist a record"""
        return await self.record(ActionRecord(
            conversation_id=conversation_id,
            kind=kind,
            status=status,
            tool_name=tool_name,
            input_snapshot=input_snapshot or {},
            output_snapshot=output_snapshot or {},
            duration=duration,
            error=error
        ))

    async def list_actions(
        self,
        conversation_id: str,
        kind: Optional[ActionKind] = None,
        limit: int = 100
    ) -> List[ActionRecord]:
        """Read back records for a conversation in write order"""
        return await retry_once(
            lambda: self.repository.list_by_conversation(conversation_id, kind, limit),
            "list_actions"
        )
