"""
Agent Core Exception Hierarchy
Consistent error taxonomy for tool dispatch, retrieval, model calls,
persistence and workflow execution.
"""
from typing import Optional, Dict, Any, List
from enum import Enum
from datetime import datetime, timezone


class ErrorCode(str, Enum):
    """Standardized error codes"""
    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    VALIDATION_ERROR = "ERR_1001"
    NOT_FOUND = "ERR_1002"
    CONFLICT = "ERR_1003"

    # Tool errors (2xxx)
    SCHEMA_ERROR = "ERR_2000"
    TOOL_NOT_FOUND = "ERR_2001"
    TOOL_EXECUTION_FAILED = "ERR_2002"
    REGISTRY_LOCKED = "ERR_2003"

    # External service errors (3xxx)
    RETRIEVAL_ERROR = "ERR_3000"
    MODEL_ERROR = "ERR_3001"

    # Persistence errors (4xxx)
    PERSISTENCE_ERROR = "ERR_4000"
    CONVERSATION_NOT_FOUND = "ERR_4001"
    CONVERSATION_ARCHIVED = "ERR_4002"

    # Workflow errors (5xxx)
    WORKFLOW_TIMEOUT = "ERR_5000"
    WORKFLOW_DEFINITION_INVALID = "ERR_5001"
    AGENT_NOT_FOUND = "ERR_5002"


class AgentCoreError(Exception):
    """
    Base agent core exception.

    All custom exceptions inherit from this class.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serializable dictionary"""
        result = {
            "code": self.code.value,
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


# ==================== Tool Errors ====================

class SchemaError(AgentCoreError):
    """Tool arguments do not match the declared input schema"""

    code = ErrorCode.SCHEMA_ERROR

    def __init__(
        self,
        tool_name: str,
        missing_fields: Optional[List[str]] = None,
        type_mismatches: Optional[Dict[str, str]] = None,
        **kwargs
    ):
        self.tool_name = tool_name
        self.missing_fields = list(missing_fields or [])
        self.type_mismatches = dict(type_mismatches or {})

        parts = []
        if self.missing_fields:
            parts.append(f"missing required parameter(s): {', '.join(self.missing_fields)}")
        for field_name, problem in self.type_mismatches.items():
            parts.append(f"parameter '{field_name}' {problem}")
        message = f"Invalid arguments for tool '{tool_name}': " + ("; ".join(parts) or "unknown schema error")

        super().__init__(
            message,
            details={
                "tool_name": tool_name,
                "missing_fields": self.missing_fields,
                "type_mismatches": self.type_mismatches
            },
            **kwargs
        )


class ToolNotFoundError(AgentCoreError):
    """No tool is registered under the requested name"""

    code = ErrorCode.TOOL_NOT_FOUND

    def __init__(self, tool_name: str, **kwargs):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}", details={"tool_name": tool_name}, **kwargs)


class ToolExecutionError(AgentCoreError):
    """A tool handler failed; isolated to its own tool call"""

    code = ErrorCode.TOOL_EXECUTION_FAILED

    def __init__(self, tool_name: str, reason: str, **kwargs):
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(
            f"Tool '{tool_name}' failed: {reason}",
            details={"tool_name": tool_name},
            **kwargs
        )


class RegistryLockedError(AgentCoreError):
    """Registration attempted while agent turns are dispatching tools"""

    code = ErrorCode.REGISTRY_LOCKED

    def __init__(self, tool_name: str, active_turns: int, **kwargs):
        super().__init__(
            f"Cannot register tool '{tool_name}' while {active_turns} turn(s) are in flight",
            details={"tool_name": tool_name, "active_turns": active_turns},
            **kwargs
        )


# ==================== External Service Errors ====================

class RetrievalError(AgentCoreError):
    """Embedding or similarity search failed"""

    code = ErrorCode.RETRIEVAL_ERROR


class ModelError(AgentCoreError):
    """The language model call failed or returned an unusable response"""

    code = ErrorCode.MODEL_ERROR


# ==================== Persistence Errors ====================

class PersistenceError(AgentCoreError):
    """A persistence backend operation failed"""

    code = ErrorCode.PERSISTENCE_ERROR

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        self.operation = operation
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)


class ConversationNotFoundError(AgentCoreError):
    """Conversation id is unknown and auto-creation was not requested"""

    code = ErrorCode.CONVERSATION_NOT_FOUND

    def __init__(self, conversation_id: str, **kwargs):
        self.conversation_id = conversation_id
        super().__init__(
            f"Conversation not found: {conversation_id}",
            details={"conversation_id": conversation_id},
            **kwargs
        )


class ConversationArchivedError(AgentCoreError):
    """Archived conversations accept no further messages"""

    code = ErrorCode.CONVERSATION_ARCHIVED

    def __init__(self, conversation_id: str, **kwargs):
        self.conversation_id = conversation_id
        super().__init__(
            f"Conversation is archived: {conversation_id}",
            details={"conversation_id": conversation_id},
            **kwargs
        )


# ==================== Workflow Errors ====================

class WorkflowTimeoutError(AgentCoreError):
    """Workflow deadline expired before the execution finished"""

    code = ErrorCode.WORKFLOW_TIMEOUT

    def __init__(self, timeout: float, **kwargs):
        self.timeout = timeout
        super().__init__(
            f"Workflow timed out after {timeout}s",
            details={"timeout": timeout},
            **kwargs
        )


class WorkflowDefinitionError(AgentCoreError):
    """Workflow definition is inconsistent with its strategy"""

    code = ErrorCode.WORKFLOW_DEFINITION_INVALID


class AgentNotFoundError(AgentCoreError):
    """No agent is registered under the requested id"""

    code = ErrorCode.AGENT_NOT_FOUND

    def __init__(self, agent_id: str, **kwargs):
        self.agent_id = agent_id
        super().__init__(f"No agent registered with id: {agent_id}", details={"agent_id": agent_id}, **kwargs)


class StateTransitionError(AgentCoreError):
    """Execution or assignment status moved backwards or out of a terminal state"""

    code = ErrorCode.CONFLICT

    def __init__(self, entity: str, current: str, requested: str, **kwargs):
        super().__init__(
            f"Invalid {entity} transition: {current} -> {requested}",
            details={"entity": entity, "current": current, "requested": requested},
            **kwargs
        )
