"""
PostgreSQL Infrastructure Implementations

Async repositories using asyncpg connection pools. Driver and network
errors surface as PersistenceError.
"""
from .base import PostgresRepository
from .conversation_repository import PostgresConversationRepository
from .action_repository import PostgresActionRepository
from .workflow_repository import PostgresWorkflowRepository

__all__ = [
    "PostgresRepository",
    "PostgresConversationRepository",
    "PostgresActionRepository",
    "PostgresWorkflowRepository",
]
