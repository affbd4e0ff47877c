"""
In-Memory Workflow Repository Implementation
"""
from dataclasses import replace
from typing import Dict, List, Optional
import asyncio

from ...agents.types import AgentAssignment, WorkflowExecution
from ...repositories.workflow_repository import WorkflowRepository


class MemoryWorkflowRepository(WorkflowRepository):
    """
    In-memory workflow state.

    Stores snapshots so later in-place changes by the orchestrator are
    only visible after the next save.
    """

    def __init__(self):
        self._executions: Dict[str, WorkflowExecution] = {}
        self._assignments: Dict[str, AgentAssignment] = {}
        self._execution_assignments: Dict[str, List[str]] = {}
        self._lock = asyncio.Lock()

    async def save_execution(self, execution: WorkflowExecution) -> None:
        """Insert or update an execution"""
        async with self._lock:
            self._executions[execution.execution_id] = replace(execution)

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Get an execution by id"""
        execution = self._executions.get(execution_id)
        return replace(execution) if execution is not None else None

    async def save_assignment(self, assignment: AgentAssignment) -> None:
        """Insert or update an assignment"""
        async with self._lock:
            if assignment.assignment_id not in self._assignments:
                self._execution_assignments.setdefault(assignment.execution_id, []).append(
                    assignment.assignment_id
                )
            self._assignments[assignment.assignment_id] = replace(assignment)

    async def list_assignments(self, execution_id: str) -> List[AgentAssignment]:
        """Assignments in creation order"""
        return [
            replace(self._assignments[assignment_id])
            for assignment_id in self._execution_assignments.get(execution_id, [])
        ]
