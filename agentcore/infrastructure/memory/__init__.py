"""
In-Memory Repository Implementations
For development and testing.
"""
from .conversation_repository import MemoryConversationRepository
from .action_repository import MemoryActionRepository
from .workflow_repository import MemoryWorkflowRepository

__all__ = [
    "MemoryConversationRepository",
    "MemoryActionRepository",
    "MemoryWorkflowRepository",
]
