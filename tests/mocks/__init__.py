"""
Mock Components for Testing

Provides lightweight agents and repositories that don't require
external services (language models, databases).
"""
from .mock_agents import ScriptedAgent
from .mock_repositories import (
    BrokenWorkflowRepository,
    FlakyActionRepository,
    FlakyConversationRepository,
    SlowAssignmentRepository,
)

__all__ = [
    "ScriptedAgent",
    "BrokenWorkflowRepository",
    "FlakyActionRepository",
    "FlakyConversationRepository",
    "SlowAssignmentRepository",
]
