"""
Mock Agents

Scripted workflow participants that need no language model.
"""
from typing import Callable, List, Optional, Tuple
import asyncio

from agentcore.agents.base import BaseAgent
from agentcore.agents.types import AgentResult


class ScriptedAgent(BaseAgent):
    """
    Agent whose reply is computed from the query text.

    Features:
    - ``reply`` callable (default: echo with the agent id)
    - ``fail_with`` returns the AgentResult failure variant
    - ``raise_with`` raises from process_query
    - ``delay`` sleeps before replying
    - Call tracking for assertions
    """

    def __init__(
        self,
        agent_id: str,
        reply: Optional[Callable[[str], str]] = None,
        fail_with: Optional[str] = None,
        raise_with: Optional[BaseException] = None,
        delay: float = 0.0
    ):
        super().__init__(agent_id, description=f"Scripted agent {agent_id}")
        self.reply = reply or (lambda query: f"{agent_id} handled: {query}")
        self.fail_with = fail_with
        self.raise_with = raise_with
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def queries(self) -> List[str]:
        return [query for _, query in self.calls]

    async def process_query(
        self,
        conversation_id: str,
        query_text: str,
        use_retrieval: bool = True
    ) -> AgentResult:
        self.calls.append((conversation_id, query_text))

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raise_with is not None:
            raise self.raise_with
        if self.fail_with is not None:
            return AgentResult.failure(self.agent_id, conversation_id, query_text, self.fail_with)

        return AgentResult(
            agent_id=self.agent_id,
            conversation_id=conversation_id,
            query=query_text,
            message=self.reply(query_text)
        )
