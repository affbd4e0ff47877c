"""
Workflow Repository Interface

Persistence for workflow executions and their agent assignments.
"""
from abc import ABC, abstractmethod
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from ..agents.types import WorkflowExecution, AgentAssignment


class WorkflowRepository(ABC):
    """
    Abstract repository for workflow state.

    ``save_*`` methods insert or overwrite by id; callers only ever move
    status forward, so the stored row always reflects the latest state.
    """

    @abstractmethod
    async def save_execution(self, execution: "WorkflowExecution") -> None:
        """Insert or update an execution"""
        pass

    @abstractmethod
    async def get_execution(self, execution_id: str) -> Optional["WorkflowExecution"]:
        """Get an execution by id"""
        pass

    @abstractmethod
    async def save_assignment(self, assignment: "AgentAssignment") -> None:
        """Insert or update an assignment"""
        pass

    @abstractmethod
    async def list_assignments(self, execution_id: str) -> List["AgentAssignment"]:
        """Assignments of an execution in creation order"""
        pass
