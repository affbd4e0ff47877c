"""
Agent Core Types and Models
Defines enums, Pydantic payload models and dataclasses for agent turns,
the action log and workflow executions.
"""
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple, Literal
from dataclasses import dataclass, field
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
import uuid

from ..core.errors import StateTransitionError, WorkflowDefinitionError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class MessageRole(str, Enum):
    """Message roles in a conversation"""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationStatus(str, Enum):
    """Conversation lifecycle"""
    ACTIVE = "active"
    ARCHIVED = "archived"


class ActionKind(str, Enum):
    """Kinds of action log records"""
    QUERY = "query"
    TOOL_CALL = "tool_call"
    TASK_STEP = "task_step"


class ActionStatus(str, Enum):
    """Outcome of a logged action"""
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStrategy(str, Enum):
    """Multi-agent composition strategies"""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"


class ExecutionStatus(str, Enum):
    """Workflow execution status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AssignmentStatus(str, Enum):
    """Status of one agent assignment inside an execution"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# Forward-only ordering; both terminal states share the last rank
_ASSIGNMENT_RANK = {
    AssignmentStatus.PENDING: 0,
    AssignmentStatus.ASSIGNED: 1,
    AssignmentStatus.RUNNING: 2,
    AssignmentStatus.COMPLETED: 3,
    AssignmentStatus.FAILED: 3,
}

ParameterType = Literal["string", "integer", "number", "boolean", "array", "object"]


# ============================================================================
# Conversation Types
# ============================================================================

class Message(BaseModel):
    """Conversation message; immutable once built"""
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    tool_call_ids: Tuple[str, ...] = Field(default_factory=tuple, description="Referenced tool call IDs")
    timestamp: datetime = Field(default_factory=utc_now)


@dataclass
class Conversation:
    """Ordered, append-only message history"""
    id: str
    status: ConversationStatus = ConversationStatus.ACTIVE
    agent_id: Optional[str] = None
    user_id: Optional[str] = None
    messages: List[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_archived(self) -> bool:
        return self.status == ConversationStatus.ARCHIVED

    @property
    def message_count(self) -> int:
        return len(self.messages)


# ============================================================================
# Tool Types
# ============================================================================

class ParameterSpec(BaseModel):
    """Declared type of one tool parameter"""
    model_config = ConfigDict(frozen=True)

    type: ParameterType
    required: bool = False
    description: str = ""


class ToolDescriptor(BaseModel):
    """Tool name, description and input schema"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    input_schema: Dict[str, ParameterSpec] = Field(default_factory=dict)

    @property
    def required_fields(self) -> List[str]:
        return [name for name, spec in self.input_schema.items() if spec.required]

    def to_function_schema(self) -> Dict[str, Any]:
        """Convert to the JSON-schema function format most providers accept"""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    name: {"type": spec.type, "description": spec.description}
                    for name, spec in self.input_schema.items()
                },
                "required": self.required_fields,
            },
        }


class ToolCall(BaseModel):
    """Tool call requested by the model"""
    tool_name: str = Field(..., description="Name of the tool to call")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")
    call_id: str = Field(default_factory=new_id, description="Unique call ID")
    message_ref: Optional[str] = Field(None, description="Originating message reference")


class ToolResult(BaseModel):
    """Outcome of one tool call, paired 1:1 by call_id"""
    call_id: str
    tool_name: str
    success: bool
    output: Any = None
    error: Optional[str] = None
    duration: float = 0.0

    @classmethod
    def ok(cls, call: ToolCall, output: Any, duration: float = 0.0) -> "ToolResult":
        return cls(call_id=call.call_id, tool_name=call.tool_name, success=True, output=output, duration=duration)

    @classmethod
    def fail(cls, call: ToolCall, error: str, duration: float = 0.0) -> "ToolResult":
        return cls(call_id=call.call_id, tool_name=call.tool_name, success=False, error=error, duration=duration)


# ============================================================================
# Retrieval Types
# ============================================================================

@dataclass(frozen=True)
class RetrievedDocument:
    """Document returned by the retrieval gateway; similarity in [0, 1]"""
    document_id: str
    text: str
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Model Boundary
# ============================================================================

class ModelRequest(BaseModel):
    """Everything the language model sees in one turn"""
    system_prompt: str
    history: List[Message] = Field(default_factory=list)
    documents: List[RetrievedDocument] = Field(default_factory=list)
    query: str
    tools: List[ToolDescriptor] = Field(default_factory=list)


class ModelResponse(BaseModel):
    """Assistant message and zero or more requested tool calls"""
    message: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# ============================================================================
# Action Log Types
# ============================================================================

@dataclass(frozen=True)
class ActionRecord:
    """Append-only audit record of one query, tool call or task step"""
    conversation_id: str
    kind: ActionKind
    status: ActionStatus
    tool_name: Optional[str] = None
    input_snapshot: Dict[str, Any] = field(default_factory=dict)
    output_snapshot: Dict[str, Any] = field(default_factory=dict)
    duration: float = 0.0
    error: Optional[str] = None
    action_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class LogWriteResult:
    """Outcome of an action log write; failures are values"""
    success: bool
    action_id: str
    attempts: int = 1
    error: Optional[str] = None


# ============================================================================
# Agent Result
# ============================================================================

@dataclass
class AgentResult:
    """Result of one agent turn"""
    agent_id: str
    conversation_id: str
    query: str
    message: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_results: List[ToolResult] = field(default_factory=list)
    documents: List[RetrievedDocument] = field(default_factory=list)
    total_elapsed_time: float = 0.0
    success: bool = True
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(
        cls,
        agent_id: str,
        conversation_id: str,
        query: str,
        error: str,
        total_elapsed_time: float = 0.0,
        **kwargs
    ) -> "AgentResult":
        """Failure variant: original query plus error description, no message"""
        return cls(
            agent_id=agent_id,
            conversation_id=conversation_id,
            query=query,
            message=None,
            success=False,
            error=error,
            total_elapsed_time=total_elapsed_time,
            **kwargs
        )


# ============================================================================
# Workflow Types
# ============================================================================

@dataclass(frozen=True)
class SequentialStep:
    """One (agent, step task) pair of a sequential workflow"""
    agent_id: str
    task: str = ""


@dataclass(frozen=True)
class ParallelBranch:
    """One (agent, specialty) branch of a parallel workflow"""
    agent_id: str
    specialty: str


@dataclass(frozen=True)
class PlanStep:
    """Subtask produced by a hierarchical supervisor"""
    index: int
    type: str
    description: str
    dependencies: Tuple[int, ...] = ()


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Immutable workflow description.

    Strategy-specific configuration must agree with ``strategy``; the
    factory classmethods are the usual way to build one.
    """
    name: str
    strategy: WorkflowStrategy
    steps: Tuple[SequentialStep, ...] = ()
    branches: Tuple[ParallelBranch, ...] = ()
    synthesizer_id: Optional[str] = None
    supervisor_id: Optional[str] = None
    routing: Tuple[Tuple[str, str], ...] = ()
    default_worker_id: Optional[str] = None
    concurrent_workers: bool = False
    timeout: Optional[float] = None

    def __post_init__(self):
        if not self.name:
            raise WorkflowDefinitionError("Workflow name is required")
        if self.timeout is not None and self.timeout <= 0:
            raise WorkflowDefinitionError(f"Workflow '{self.name}': timeout must be positive")

        if self.strategy == WorkflowStrategy.SEQUENTIAL:
            if not self.steps:
                raise WorkflowDefinitionError(f"Sequential workflow '{self.name}' needs at least one step")
            self._reject("branches", "synthesizer_id", "supervisor_id", "routing", "default_worker_id")
        elif self.strategy == WorkflowStrategy.PARALLEL:
            if not self.branches:
                raise WorkflowDefinitionError(f"Parallel workflow '{self.name}' needs at least one branch")
            if not self.synthesizer_id:
                raise WorkflowDefinitionError(f"Parallel workflow '{self.name}' needs a synthesizer")
            self._reject("steps", "supervisor_id", "routing", "default_worker_id")
        elif self.strategy == WorkflowStrategy.HIERARCHICAL:
            if not self.supervisor_id:
                raise WorkflowDefinitionError(f"Hierarchical workflow '{self.name}' needs a supervisor")
            if not self.routing and not self.default_worker_id:
                raise WorkflowDefinitionError(
                    f"Hierarchical workflow '{self.name}' needs a routing table or a default worker"
                )
            self._reject("steps", "branches", "synthesizer_id")

    def _reject(self, *names: str) -> None:
        for name in names:
            if getattr(self, name):
                raise WorkflowDefinitionError(
                    f"Workflow '{self.name}': '{name}' is not valid for the {self.strategy.value} strategy"
                )

    @property
    def routing_table(self) -> Dict[str, str]:
        return dict(self.routing)

    def route(self, step_type: str) -> Optional[str]:
        """Worker agent id for a plan step type tag"""
        return self.routing_table.get(step_type.lower(), self.default_worker_id)

    @classmethod
    def sequential(
        cls,
        name: str,
        steps: List[Tuple[str, str]],
        timeout: Optional[float] = None
    ) -> "WorkflowDefinition":
        """Build a sequential definition from (agent_id, step task) pairs"""
        return cls(
            name=name,
            strategy=WorkflowStrategy.SEQUENTIAL,
            steps=tuple(SequentialStep(agent_id, task) for agent_id, task in steps),
            timeout=timeout,
        )

    @classmethod
    def parallel(
        cls,
        name: str,
        branches: List[Tuple[str, str]],
        synthesizer_id: str,
        timeout: Optional[float] = None
    ) -> "WorkflowDefinition":
        """Build a parallel definition from (agent_id, specialty) pairs"""
        return cls(
            name=name,
            strategy=WorkflowStrategy.PARALLEL,
            branches=tuple(ParallelBranch(agent_id, specialty) for agent_id, specialty in branches),
            synthesizer_id=synthesizer_id,
            timeout=timeout,
        )

    @classmethod
    def hierarchical(
        cls,
        name: str,
        supervisor_id: str,
        routing: Dict[str, str],
        default_worker_id: Optional[str] = None,
        concurrent_workers: bool = False,
        timeout: Optional[float] = None
    ) -> "WorkflowDefinition":
        """Build a hierarchical definition from a type tag -> worker routing table"""
        return cls(
            name=name,
            strategy=WorkflowStrategy.HIERARCHICAL,
            supervisor_id=supervisor_id,
            routing=tuple(sorted((step_type.lower(), agent_id) for step_type, agent_id in routing.items())),
            default_worker_id=default_worker_id,
            concurrent_workers=concurrent_workers,
            timeout=timeout,
        )


@dataclass
class AgentAssignment:
    """One agent invocation owned by a workflow execution"""
    execution_id: str
    agent_id: str
    task: str
    position: int = 0
    status: AssignmentStatus = AssignmentStatus.PENDING
    result: Optional[str] = None
    error: Optional[str] = None
    assignment_id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (AssignmentStatus.COMPLETED, AssignmentStatus.FAILED)

    def transition(self, status: AssignmentStatus) -> None:
        """Move forward; terminal states and backwards moves are rejected"""
        if self.is_terminal or _ASSIGNMENT_RANK[status] <= _ASSIGNMENT_RANK[self.status]:
            raise StateTransitionError("assignment", self.status.value, status.value)
        self.status = status

    def mark_assigned(self) -> None:
        self.transition(AssignmentStatus.ASSIGNED)

    def mark_running(self) -> None:
        self.transition(AssignmentStatus.RUNNING)

    def mark_completed(self, result: str) -> None:
        self.transition(AssignmentStatus.COMPLETED)
        self.result = result
        self.completed_at = utc_now()

    def mark_failed(self, error: str) -> None:
        self.transition(AssignmentStatus.FAILED)
        self.error = error
        self.completed_at = utc_now()


@dataclass
class WorkflowExecution:
    """Runtime state of one workflow run; RUNNING -> COMPLETED | FAILED"""
    definition_name: str
    strategy: WorkflowStrategy
    task: str
    conversation_id: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.RUNNING
    final_result: Optional[str] = None
    error: Optional[str] = None
    failure_cause: Optional[str] = None
    execution_id: str = field(default_factory=new_id)
    started_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != ExecutionStatus.RUNNING

    def _finish(self, status: ExecutionStatus) -> None:
        if self.is_terminal:
            raise StateTransitionError("execution", self.status.value, status.value)
        self.status = status
        self.ended_at = utc_now()

    def mark_completed(self, final_result: str) -> None:
        self._finish(ExecutionStatus.COMPLETED)
        self.final_result = final_result

    def mark_failed(self, error: str, failure_cause: str) -> None:
        self._finish(ExecutionStatus.FAILED)
        self.error = error
        self.failure_cause = failure_cause


@dataclass
class WorkflowResult:
    """Result of one workflow execution"""
    execution_id: str
    workflow_name: str
    strategy: WorkflowStrategy
    task: str
    status: ExecutionStatus
    final_result: Optional[str] = None
    error: Optional[str] = None
    failure_cause: Optional[str] = None
    assignments: List[AgentAssignment] = field(default_factory=list)
    elapsed_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED

    @classmethod
    def from_execution(
        cls,
        execution: WorkflowExecution,
        assignments: List[AgentAssignment],
        elapsed_time: float
    ) -> "WorkflowResult":
        return cls(
            execution_id=execution.execution_id,
            workflow_name=execution.definition_name,
            strategy=execution.strategy,
            task=execution.task,
            status=execution.status,
            final_result=execution.final_result,
            error=execution.error,
            failure_cause=execution.failure_cause,
            assignments=list(assignments),
            elapsed_time=elapsed_time,
        )
