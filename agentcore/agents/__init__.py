"""
Agent Framework Package

Agents, tool registry, retrieval gateway, conversation context,
action log and multi-agent workflow orchestration.
"""
from .types import (
    ActionKind,
    ActionRecord,
    ActionStatus,
    AgentAssignment,
    AgentResult,
    AssignmentStatus,
    Conversation,
    ConversationStatus,
    ExecutionStatus,
    LogWriteResult,
    Message,
    MessageRole,
    ModelRequest,
    ModelResponse,
    ParallelBranch,
    ParameterSpec,
    PlanStep,
    RetrievedDocument,
    SequentialStep,
    ToolCall,
    ToolDescriptor,
    ToolResult,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowResult,
    WorkflowStrategy,
)
from .tools import BaseTool, FunctionTool, SemanticSearchTool, ToolContext
from .registry import (
    AgentRegistry,
    ToolRegistry,
    ValidationResult,
    get_agent_registry,
    get_tool_registry,
)
from .retrieval import RetrievalGateway, distance_to_similarity, rank_documents
from .context_store import ContextStore
from .action_log import ActionLog
from .base import Agent, BaseAgent
from .executor import AgentExecutor
from .parallel_executor import BranchOutcome, ParallelExecutor
from .planner import build_planning_prompt, compute_waves, parse_plan
from .orchestrator import WorkflowOrchestrator

__all__ = [
    # Types
    "ActionKind",
    "ActionRecord",
    "ActionStatus",
    "AgentAssignment",
    "AgentResult",
    "AssignmentStatus",
    "Conversation",
    "ConversationStatus",
    "ExecutionStatus",
    "LogWriteResult",
    "Message",
    "MessageRole",
    "ModelRequest",
    "ModelResponse",
    "ParallelBranch",
    "ParameterSpec",
    "PlanStep",
    "RetrievedDocument",
    "SequentialStep",
    "ToolCall",
    "ToolDescriptor",
    "ToolResult",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowResult",
    "WorkflowStrategy",
    # Tools
    "BaseTool",
    "FunctionTool",
    "SemanticSearchTool",
    "ToolContext",
    # Registries
    "AgentRegistry",
    "ToolRegistry",
    "ValidationResult",
    "get_agent_registry",
    "get_tool_registry",
    # Services
    "RetrievalGateway",
    "distance_to_similarity",
    "rank_documents",
    "ContextStore",
    "ActionLog",
    "Agent",
    "BaseAgent",
    "AgentExecutor",
    "BranchOutcome",
    "ParallelExecutor",
    "build_planning_prompt",
    "compute_waves",
    "parse_plan",
    "WorkflowOrchestrator",
]
