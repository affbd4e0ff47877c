"""
In-Memory Action Repository Implementation
"""
from typing import Dict, List, Optional
import asyncio

from ...agents.types import ActionKind, ActionRecord
from ...repositories.action_repository import ActionRepository


class MemoryActionRepository(ActionRepository):
    """
    In-memory, append-only action store.

    Records are frozen dataclasses, so returned objects are safe to share.
    """

    def __init__(self):
        self._records: List[ActionRecord] = []
        self._by_id: Dict[str, ActionRecord] = {}
        self._lock = asyncio.Lock()

    async def append(self, record: ActionRecord) -> ActionRecord:
        """Append one record"""
        async with self._lock:
            self._records.append(record)
            self._by_id[record.action_id] = record
            return record

    async def get(self, action_id: str) -> Optional[ActionRecord]:
        """Get a record by id"""
        return self._by_id.get(action_id)

    async def list_by_conversation(
        self,
        conversation_id: str,
        kind: Optional[ActionKind] = None,
        limit: int = 100
    ) -> List[ActionRecord]:
        """Records for a conversation in write order"""
        records = [
            r for r in self._records
            if r.conversation_id == conversation_id and (kind is None or r.kind == kind)
        ]
        return records[:limit]

    def all(self) -> List[ActionRecord]:
        """Every record in write order"""
        return list(self._records)
