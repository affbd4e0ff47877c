"""
Action Repository Interface

Append-only persistence for action log records.
"""
from abc import ABC, abstractmethod
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from ..agents.types import ActionRecord, ActionKind


class ActionRepository(ABC):
    """
    Abstract repository for action records.

    Records are never updated or deleted through this interface.
    """

    @abstractmethod
    async def append(self, record: "ActionRecord") -> "ActionRecord":
        """Persist one record"""
        pass

    @abstractmethod
    async def get(self, action_id: str) -> Optional["ActionRecord"]:
        """Get a record by id"""
        pass

    @abstractmethod
    async def list_by_conversation(
        self,
        conversation_id: str,
        kind: Optional["ActionKind"] = None,
        limit: int = 100
    ) -> List["ActionRecord"]:
        """Records for a conversation in write order, optionally by kind"""
        pass
