"""
Repository Interfaces
Abstract persistence contracts implemented by the infrastructure layer.
"""
from .conversation_repository import ConversationRepository
from .action_repository import ActionRepository
from .workflow_repository import WorkflowRepository

__all__ = [
    "ConversationRepository",
    "ActionRepository",
    "WorkflowRepository",
]
