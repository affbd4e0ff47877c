"""
Base Agent Abstract Class
Defines the single-turn interface every workflow participant implements.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
import logging

from .types import AgentResult
from ..core.config import get_settings

if TYPE_CHECKING:
    from .executor import AgentExecutor

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """
    Abstract base class for all agents.

    Each agent has:
    - A unique id used by workflow definitions and routing tables
    - A system prompt defining its behavior
    - An optional allow-list of tool names (None means every registered tool)

    ``process_query`` performs at most one model round-trip and never
    raises for domain failures: they come back as the AgentResult failure
    variant.
    """

    def __init__(
        self,
        agent_id: str,
        name: Optional[str] = None,
        description: str = "",
        system_prompt: Optional[str] = None,
        tools: Optional[List[str]] = None,
        tool_timeout: Optional[float] = None
    ):
        self.agent_id = agent_id
        self.name = name or agent_id
        self.description = description
        self._system_prompt = system_prompt
        self.tools = tools
        self.tool_timeout = tool_timeout

    @property
    def system_prompt(self) -> str:
        """Get the system prompt for this agent"""
        if self._system_prompt:
            return self._system_prompt
        return self._get_default_prompt()

    def _get_default_prompt(self) -> str:
        """Get default system prompt"""
        prompt = get_settings().SYSTEM_PROMPT
        if self.description:
            return f"{prompt}\n\nYour role: {self.description}"
        return prompt

    @abstractmethod
    async def process_query(
        self,
        conversation_id: str,
        query_text: str,
        use_retrieval: bool = True
    ) -> AgentResult:
        """
        Run one reasoning turn.

        Args:
            conversation_id: Conversation whose history is threaded in
            query_text: The user's query or workflow step input
            use_retrieval: Consult the retrieval gateway first

        Returns:
            AgentResult with the assistant message and tool results
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(agent_id='{self.agent_id}')"


class Agent(BaseAgent):
    """
    Tool-augmented agent backed by an AgentExecutor.
    """

    def __init__(
        self,
        agent_id: str,
        executor: "AgentExecutor",
        **kwargs
    ):
        super().__init__(agent_id, **kwargs)
        self.executor = executor

    async def process_query(
        self,
        conversation_id: str,
        query_text: str,
        use_retrieval: bool = True
    ) -> AgentResult:
        return await self.executor.run(self, conversation_id, query_text, use_retrieval)
