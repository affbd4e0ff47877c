"""
Mock LLM Adapter
Deterministic implementation for testing and development.
"""
from typing import Any, Callable, List, Optional, Union
import asyncio
import inspect

from ...agents.types import ModelRequest, ModelResponse
from ...ports.llm_port import LLMPort

ScriptedReply = Union[ModelResponse, dict, str, BaseException]


class MockLLMAdapter(LLMPort):
    """
    Mock LLM adapter for testing and development.

    Reply selection, first match wins:
    1. ``responder(request)`` when given (sync or async)
    2. the next scripted reply, consumed in order
    3. ``response_template`` formatted with the query

    A scripted reply may be a ModelResponse, a dict, a plain message string
    or an exception instance to raise.
    """

    def __init__(
        self,
        responses: Optional[List[ScriptedReply]] = None,
        responder: Optional[Callable[[ModelRequest], Any]] = None,
        response_template: Optional[str] = None,
        simulate_delay: bool = False,
        delay_ms: int = 100
    ):
        self._responses: List[ScriptedReply] = list(responses or [])
        self.responder = responder
        self.response_template = response_template or "This is a mock response to: {question}"
        self.simulate_delay = simulate_delay
        self.delay_ms = delay_ms
        self._call_count = 0
        self._call_history: List[ModelRequest] = []

    @property
    def call_count(self) -> int:
        return self._call_count

    @property
    def call_history(self) -> List[ModelRequest]:
        return list(self._call_history)

    def queue(self, *replies: ScriptedReply) -> None:
        """Append scripted replies"""
        self._responses.extend(replies)

    async def generate(self, request: ModelRequest) -> ModelResponse:
        """Generate mock response"""
        self._call_count += 1
        self._call_history.append(request)

        if self.simulate_delay:
            await asyncio.sleep(self.delay_ms / 1000)

        if self.responder is not None:
            reply = self.responder(request)
            if inspect.isawaitable(reply):
                reply = await reply
        elif self._responses:
            reply = self._responses.pop(0)
        else:
            reply = self.response_template.format(question=request.query)

        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, ModelResponse):
            return reply
        if isinstance(reply, str):
            return ModelResponse(message=reply)
        return ModelResponse.model_validate(reply)
