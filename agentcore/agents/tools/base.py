"""
Base Tool Abstract Class
Defines the capability interface for all agent tools.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, Callable, Union
import asyncio
import inspect
import json
import logging

from ..types import ToolDescriptor, ParameterSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolContext:
    """Who is calling a tool, passed to every handler"""
    agent_id: str
    conversation_id: str
    call_id: str


def build_schema(input_schema: Optional[Dict[str, Union[ParameterSpec, Dict[str, Any]]]]) -> Dict[str, ParameterSpec]:
    """Accept ParameterSpec objects or plain dicts like {"type": "string", "required": True}"""
    return {
        name: spec if isinstance(spec, ParameterSpec) else ParameterSpec(**spec)
        for name, spec in (input_schema or {}).items()
    }


class BaseTool(ABC):
    """
    Abstract base class for all agent tools.

    Each tool has:
    - A unique name
    - A description for the LLM
    - An input schema (parameter name -> type, required, description)
    - An execute method that performs the action

    ``execute`` returns the success payload. Raising marks the call failed;
    the agent captures the exception into that call's ToolResult.
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: Optional[Dict[str, Union[ParameterSpec, Dict[str, Any]]]] = None
    ):
        self.name = name
        self.description = description
        self._input_schema = build_schema(input_schema if input_schema is not None else self._get_default_schema())

    def _get_default_schema(self) -> Dict[str, Any]:
        """Get default input schema"""
        return {}

    @property
    def descriptor(self) -> ToolDescriptor:
        """Descriptor advertised to the model and used for validation"""
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self._input_schema
        )

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any], context: ToolContext) -> Any:
        """
        Execute the tool with validated arguments.

        Args:
            arguments: Tool arguments, already checked against the schema
            context: Calling agent and conversation

        Returns:
            Success payload (any JSON-serializable value)
        """
        pass

    @staticmethod
    def format_output(output: Any) -> str:
        """Format output for returning to the model"""
        if isinstance(output, str):
            return output
        if isinstance(output, (dict, list)):
            return json.dumps(output, ensure_ascii=False, indent=2, default=str)
        return str(output)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class FunctionTool(BaseTool):
    """
    Adapts a plain callable into a tool.

    Async callables are awaited; sync callables run in a worker thread so
    they do not block sibling tool calls. Arguments are passed as keywords.
    When the callable declares a ``context`` parameter it receives the
    ToolContext too.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        input_schema: Optional[Dict[str, Union[ParameterSpec, Dict[str, Any]]]] = None
    ):
        self._func = func
        self._wants_context = "context" in inspect.signature(func).parameters
        super().__init__(
            name=name or func.__name__,
            description=description if description is not None else (inspect.getdoc(func) or ""),
            input_schema=input_schema or {}
        )

    async def execute(self, arguments: Dict[str, Any], context: ToolContext) -> Any:
        kwargs = dict(arguments)
        if self._wants_context:
            kwargs["context"] = context

        if inspect.iscoroutinefunction(self._func):
            return await self._func(**kwargs)

        result = await asyncio.to_thread(self._func, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
