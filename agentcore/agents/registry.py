"""
Agent and Tool Registry
Name-keyed registries for tool handlers and workflow agents.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Callable, Iterator, Union, TYPE_CHECKING
import logging

from .types import ToolDescriptor
from .tools.base import BaseTool, FunctionTool
from ..core.errors import (
    SchemaError,
    ToolNotFoundError,
    RegistryLockedError,
    AgentNotFoundError,
)

if TYPE_CHECKING:
    from .base import BaseAgent

logger = logging.getLogger(__name__)


# JSON primitive type -> accepted Python types
_TYPE_MAP = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


def matches_type(value: Any, expected_type: str) -> bool:
    """Check a value against a schema primitive; booleans are not numbers"""
    expected = _TYPE_MAP.get(expected_type)
    if expected is None:
        return True
    if isinstance(value, bool) and expected_type != "boolean":
        return False
    return isinstance(value, expected)


@dataclass
class ValidationResult:
    """Outcome of checking tool arguments against a descriptor"""
    tool_name: str
    missing_fields: List[str] = field(default_factory=list)
    type_mismatches: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.missing_fields and not self.type_mismatches

    def to_error(self) -> SchemaError:
        return SchemaError(self.tool_name, self.missing_fields, self.type_mismatches)


@dataclass(frozen=True)
class _Registration:
    descriptor: ToolDescriptor
    tool: BaseTool


class ToolRegistry:
    """
    Registry for agent tools.

    Read-mostly: lookups are plain dict reads. Registration replaces the
    whole entry in one assignment (last write wins) and is refused while
    any agent turn holds ``in_use()``.
    """

    _instance: Optional['ToolRegistry'] = None

    def __init__(self):
        self._tools: Dict[str, _Registration] = {}
        self._active_turns = 0

    @classmethod
    def get_instance(cls) -> 'ToolRegistry':
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def active_turns(self) -> int:
        return self._active_turns

    @contextmanager
    def in_use(self) -> Iterator['ToolRegistry']:
        """Held by an agent for the duration of a turn's tool dispatch"""
        self._active_turns += 1
        try:
            yield self
        finally:
            self._active_turns -= 1

    def _ensure_unlocked(self, name: str) -> None:
        if self._active_turns > 0:
            raise RegistryLockedError(name, self._active_turns)

    def register(
        self,
        descriptor: ToolDescriptor,
        handler: Union[BaseTool, Callable[..., Any]]
    ) -> None:
        """
        Register a handler under ``descriptor.name``.

        Args:
            descriptor: Name, description and input schema
            handler: BaseTool instance, or a sync/async callable taking
                the arguments as keywords
        """
        self._ensure_unlocked(descriptor.name)

        if not isinstance(handler, BaseTool):
            if not callable(handler):
                raise TypeError(f"Handler for tool '{descriptor.name}' must be a BaseTool or callable")
            handler = FunctionTool(
                handler,
                name=descriptor.name,
                description=descriptor.description,
                input_schema=dict(descriptor.input_schema)
            )

        if descriptor.name in self._tools:
            logger.warning(f"Tool '{descriptor.name}' already registered, overwriting")
        self._tools[descriptor.name] = _Registration(descriptor, handler)
        logger.debug(f"Registered tool: {descriptor.name}")

    def register_tool(self, tool: BaseTool) -> None:
        """Register a tool using its own descriptor"""
        self.register(tool.descriptor, tool)

    def unregister(self, name: str) -> bool:
        """Unregister a tool"""
        self._ensure_unlocked(name)
        if name in self._tools:
            del self._tools[name]
            return True
        return False

    def resolve(self, name: str) -> BaseTool:
        """Get the handler for a tool; raises ToolNotFoundError"""
        registration = self._tools.get(name)
        if registration is None:
            raise ToolNotFoundError(name)
        return registration.tool

    def get_descriptor(self, name: str) -> ToolDescriptor:
        """Get the descriptor for a tool; raises ToolNotFoundError"""
        registration = self._tools.get(name)
        if registration is None:
            raise ToolNotFoundError(name)
        return registration.descriptor

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_names(self) -> List[str]:
        """Get all tool names"""
        return list(self._tools.keys())

    def descriptors(self, names: Optional[List[str]] = None) -> List[ToolDescriptor]:
        """Get descriptors for the model request, optionally restricted to ``names``"""
        if names is None:
            return [registration.descriptor for registration in self._tools.values()]
        return [self._tools[name].descriptor for name in names if name in self._tools]

    def validate(self, name: str, arguments: Dict[str, Any]) -> ValidationResult:
        """
        Check arguments against the tool's declared input schema.

        Missing required parameters and type mismatches are collected
        together. Unknown argument names are allowed.

        Raises:
            ToolNotFoundError: name is not registered
        """
        descriptor = self.get_descriptor(name)
        result = ValidationResult(tool_name=name)

        for param_name, spec in descriptor.input_schema.items():
            value = arguments.get(param_name)
            if value is None:
                if spec.required:
                    result.missing_fields.append(param_name)
                continue
            if not matches_type(value, spec.type):
                result.type_mismatches[param_name] = (
                    f"should be {spec.type}, got {type(value).__name__}"
                )

        return result


class AgentRegistry:
    """
    Registry for workflow agents, keyed by agent id.
    """

    _instance: Optional['AgentRegistry'] = None

    def __init__(self):
        self._agents: Dict[str, 'BaseAgent'] = {}

    @classmethod
    def get_instance(cls) -> 'AgentRegistry':
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, agent: 'BaseAgent') -> None:
        """Register an agent under its id"""
        if agent.agent_id in self._agents:
            logger.warning(f"Agent '{agent.agent_id}' already registered, overwriting")
        self._agents[agent.agent_id] = agent
        logger.debug(f"Registered agent: {agent.agent_id}")

    def unregister(self, agent_id: str) -> bool:
        """Unregister an agent"""
        return self._agents.pop(agent_id, None) is not None

    def get(self, agent_id: str) -> 'BaseAgent':
        """Get an agent by id; raises AgentNotFoundError"""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def has(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def get_ids(self) -> List[str]:
        """Get all agent ids"""
        return list(self._agents.keys())


def get_tool_registry() -> ToolRegistry:
    """Get tool registry instance"""
    return ToolRegistry.get_instance()


def get_agent_registry() -> AgentRegistry:
    """Get agent registry instance"""
    return AgentRegistry.get_instance()
