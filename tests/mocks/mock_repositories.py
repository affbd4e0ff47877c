"""
Mock Repositories

Memory repositories with injectable failures for persistence error paths.
"""
import asyncio
from typing import List, Optional

from agentcore.agents.types import ActionRecord, AgentAssignment, Message, WorkflowExecution
from agentcore.infrastructure.memory import (
    MemoryActionRepository,
    MemoryConversationRepository,
    MemoryWorkflowRepository,
)


class FlakyActionRepository(MemoryActionRepository):
    """Fails the first ``failures`` appends with ConnectionError"""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures
        self.append_calls = 0

    async def append(self, record: ActionRecord) -> ActionRecord:
        self.append_calls += 1
        if self.append_calls <= self.failures:
            raise ConnectionError("action store unavailable")
        return await super().append(record)


class FlakyConversationRepository(MemoryConversationRepository):
    """Selectively failing conversation store"""

    def __init__(self, append_failures: int = 0, list_failures: int = 0):
        super().__init__()
        self.append_failures = append_failures
        self.list_failures = list_failures
        self.append_calls = 0
        self.list_calls = 0

    async def append_message(self, conversation_id: str, message: Message) -> None:
        self.append_calls += 1
        if self.append_calls <= self.append_failures:
            raise ConnectionError("conversation store unavailable")
        await super().append_message(conversation_id, message)

    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> List[Message]:
        self.list_calls += 1
        if self.list_calls <= self.list_failures:
            raise ConnectionError("conversation store unavailable")
        return await super().list_messages(conversation_id, limit)


class BrokenWorkflowRepository(MemoryWorkflowRepository):
    """Every write fails"""

    async def save_execution(self, execution: WorkflowExecution) -> None:
        raise ConnectionError("workflow store unavailable")

    async def save_assignment(self, assignment: AgentAssignment) -> None:
        raise ConnectionError("workflow store unavailable")


class SlowAssignmentRepository(MemoryWorkflowRepository):
    """Terminal assignment saves take ``delay`` seconds"""

    def __init__(self, delay: float = 0.3):
        super().__init__()
        self.delay = delay

    async def save_assignment(self, assignment: AgentAssignment) -> None:
        if assignment.is_terminal:
            await asyncio.sleep(self.delay)
        await super().save_assignment(assignment)
