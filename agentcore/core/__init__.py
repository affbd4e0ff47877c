"""
Core Package
Configuration, error hierarchy and logging framework.
"""
from .config import AgentCoreSettings, get_settings
from .errors import (
    ErrorCode,
    AgentCoreError,
    SchemaError,
    ToolNotFoundError,
    ToolExecutionError,
    RegistryLockedError,
    RetrievalError,
    ModelError,
    PersistenceError,
    ConversationNotFoundError,
    ConversationArchivedError,
    WorkflowTimeoutError,
    WorkflowDefinitionError,
    AgentNotFoundError,
    StateTransitionError,
)
from .logging_framework import AppLogger, LogCategory, get_logger, setup_logging

__all__ = [
    "AgentCoreSettings",
    "get_settings",
    "ErrorCode",
    "AgentCoreError",
    "SchemaError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "RegistryLockedError",
    "RetrievalError",
    "ModelError",
    "PersistenceError",
    "ConversationNotFoundError",
    "ConversationArchivedError",
    "WorkflowTimeoutError",
    "WorkflowDefinitionError",
    "AgentNotFoundError",
    "StateTransitionError",
    "AppLogger",
    "LogCategory",
    "get_logger",
    "setup_logging",
]
