"""
Agent Executor
Runs one tool-augmented reasoning turn:
1. Read recent conversation history
2. Optionally retrieve related documents
3. Call the language model once
4. Dispatch requested tool calls concurrently, one action record each
5. Append the assistant message and return the AgentResult
"""
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging

from pydantic import ValidationError

from .action_log import ActionLog
from .base import BaseAgent
from .context_store import ContextStore
from .registry import ToolRegistry, get_tool_registry
from .retrieval import RetrievalGateway
from .tools.base import BaseTool, ToolContext
from .types import (
    ActionKind,
    ActionStatus,
    AgentResult,
    ConversationStatus,
    Message,
    MessageRole,
    ModelRequest,
    ModelResponse,
    RetrievedDocument,
    ToolCall,
    ToolResult,
)
from ..core.config import AgentCoreSettings, get_settings
from ..core.errors import (
    AgentCoreError,
    ConversationArchivedError,
    ModelError,
    PersistenceError,
    RetrievalError,
    ToolExecutionError,
)
from ..core.logging_framework import AppLogger, LogCategory, Stopwatch
from ..ports.llm_port import LLMPort

logger = logging.getLogger(__name__)
app_logger = AppLogger(__name__)

CANCELLED_ERROR = "cancelled"


class AgentExecutor:
    """
    Executes single agent turns.

    Exactly one model round-trip per turn; looping over turns is the
    caller's job. Every requested tool call yields one ToolResult and one
    TOOL_CALL action record, and every turn yields one QUERY record.
    """

    def __init__(
        self,
        llm: LLMPort,
        tool_registry: Optional[ToolRegistry] = None,
        context_store: Optional[ContextStore] = None,
        action_log: Optional[ActionLog] = None,
        retrieval: Optional[RetrievalGateway] = None,
        settings: Optional[AgentCoreSettings] = None
    ):
        self.llm = llm
        self.tool_registry = tool_registry or get_tool_registry()
        self.context_store = context_store or ContextStore()
        self.action_log = action_log or ActionLog()
        self.retrieval = retrieval
        self.settings = settings or get_settings()

    async def run(
        self,
        agent: BaseAgent,
        conversation_id: str,
        query_text: str,
        use_retrieval: bool = True
    ) -> AgentResult:
        """
        Execute one turn for ``agent``.

        Returns:
            AgentResult; the failure variant when the model call fails,
            the conversation is archived or an unexpected error occurs
        """
        timer = Stopwatch()
        try:
            return await self._run_turn(agent, conversation_id, query_text, use_retrieval, timer)
        except AgentCoreError as e:
            error = e.message
        except Exception as e:
            logger.exception(f"[AgentExecutor] Unexpected error in turn for {agent.agent_id}")
            error = f"Unexpected error: {e}"

        result = AgentResult.failure(
            agent_id=agent.agent_id,
            conversation_id=conversation_id,
            query=query_text,
            error=error,
            total_elapsed_time=timer.elapsed
        )
        await self._record_query(result)
        return result

    async def _run_turn(
        self,
        agent: BaseAgent,
        conversation_id: str,
        query_text: str,
        use_retrieval: bool,
        timer: Stopwatch
    ) -> AgentResult:
        warnings: List[str] = []

        # Archived conversations accept no further turns
        try:
            conversation = await self.context_store.get_conversation(conversation_id)
        except PersistenceError as e:
            conversation = None
            warnings.append(f"Conversation lookup failed: {e.message}")
        if conversation is not None and conversation.status == ConversationStatus.ARCHIVED:
            raise ConversationArchivedError(conversation_id)

        # 1. History
        try:
            history = await self.context_store.history(conversation_id, self.settings.HISTORY_LIMIT)
        except PersistenceError as e:
            history = []
            warnings.append(f"History unavailable: {e.message}")
            logger.warning(f"[AgentExecutor] Proceeding without history for {conversation_id}: {e}")

        # 2. Retrieval
        documents = await self._retrieve(query_text, use_retrieval, warnings)

        with self.tool_registry.in_use():
            # 3. Model round-trip
            request = ModelRequest(
                system_prompt=agent.system_prompt,
                history=history,
                documents=documents,
                query=query_text,
                tools=self.tool_registry.descriptors(agent.tools)
            )
            try:
                response = await self._call_llm(request)
            except ModelError as e:
                app_logger.error(
                    f"Model call failed for agent {agent.agent_id}: {e.message}",
                    category=LogCategory.MODEL,
                    extra_data={"conversation_id": conversation_id}
                )
                result = AgentResult.failure(
                    agent_id=agent.agent_id,
                    conversation_id=conversation_id,
                    query=query_text,
                    error=e.message,
                    total_elapsed_time=timer.elapsed,
                    documents=documents,
                    warnings=warnings
                )
                await self._record_query(result)
                return result

            # 4. Tool dispatch
            tool_results: List[ToolResult] = []
            if response.tool_calls:
                tool_results = await self._dispatch_all(agent, conversation_id, response.tool_calls, warnings)

        # 5. Assistant message
        message_text = response.message
        if not message_text.strip() and tool_results:
            message_text = self._summarize_tool_results(tool_results)

        await self._append_messages(conversation_id, query_text, message_text, response.tool_calls, warnings)

        result = AgentResult(
            agent_id=agent.agent_id,
            conversation_id=conversation_id,
            query=query_text,
            message=message_text,
            tool_calls=list(response.tool_calls),
            tool_results=tool_results,
            documents=documents,
            total_elapsed_time=timer.elapsed,
            warnings=warnings
        )
        await self._record_query(result)

        app_logger.info(
            f"Turn completed for agent {agent.agent_id}",
            category=LogCategory.AGENT,
            duration_ms=timer.elapsed_ms,
            extra_data={
                "conversation_id": conversation_id,
                "tool_calls": len(result.tool_calls),
                "documents": len(documents)
            }
        )
        return result

    async def _retrieve(
        self,
        query_text: str,
        use_retrieval: bool,
        warnings: List[str]
    ) -> List[RetrievedDocument]:
        if not use_retrieval:
            return []
        if self.retrieval is None:
            warnings.append("Retrieval requested but no gateway is configured")
            return []
        try:
            return await self.retrieval.retrieve(
                query_text,
                self.settings.RETRIEVAL_LIMIT,
                self.settings.RETRIEVAL_THRESHOLD
            )
        except RetrievalError as e:
            warnings.append(f"Retrieval failed: {e.message}")
            logger.warning(f"[AgentExecutor] Proceeding without documents: {e}")
            return []

    async def _call_llm(self, request: ModelRequest) -> ModelResponse:
        """Call the model once; anything unusable becomes ModelError"""
        try:
            response = await self.llm.generate(request)
        except ModelError:
            raise
        except Exception as e:
            raise ModelError(f"LLM call failed: {e}", cause=e) from e

        if isinstance(response, ModelResponse):
            return response
        try:
            return ModelResponse.model_validate(response)
        except ValidationError as e:
            raise ModelError(f"Malformed model response: {e}", cause=e) from e

    async def _dispatch_all(
        self,
        agent: BaseAgent,
        conversation_id: str,
        tool_calls: List[ToolCall],
        warnings: List[str]
    ) -> List[ToolResult]:
        """Dispatch every call concurrently; siblings never abort each other"""
        tasks = [
            asyncio.create_task(self._dispatch(agent, conversation_id, call))
            for call in tool_calls
        ]
        outcomes: List[Tuple[ToolResult, Optional[str]]] = await asyncio.gather(*tasks)

        results = []
        for result, log_error in outcomes:
            results.append(result)
            if log_error:
                warnings.append(f"Action log write failed for call {result.call_id}: {log_error}")
        return results

    async def _dispatch(
        self,
        agent: BaseAgent,
        conversation_id: str,
        call: ToolCall
    ) -> Tuple[ToolResult, Optional[str]]:
        timer = Stopwatch()
        timeout = agent.tool_timeout or self.settings.TOOL_TIMEOUT_SECONDS

        try:
            validation = self.tool_registry.validate(call.tool_name, call.arguments)
            if not validation.is_valid:
                raise validation.to_error()

            tool = self.tool_registry.resolve(call.tool_name)
            context = ToolContext(agent_id=agent.agent_id, conversation_id=conversation_id, call_id=call.call_id)
            output = await asyncio.wait_for(tool.execute(call.arguments, context), timeout=timeout)
            result = self._normalize_output(call, output, timer.elapsed)
        except asyncio.CancelledError:
            # A cancelled turn still owes this call its record
            result = ToolResult.fail(call, CANCELLED_ERROR, timer.elapsed)
            await asyncio.shield(self._record_tool_call(agent, conversation_id, call, result))
            raise
        except asyncio.TimeoutError:
            result = ToolResult.fail(call, f"Tool '{call.tool_name}' timed out after {timeout}s", timer.elapsed)
        except AgentCoreError as e:
            result = ToolResult.fail(call, e.message, timer.elapsed)
        except Exception as e:
            error = ToolExecutionError(call.tool_name, str(e), cause=e)
            logger.error(f"[AgentExecutor] {error.message}")
            result = ToolResult.fail(call, error.message, timer.elapsed)

        write_error = await self._record_tool_call(agent, conversation_id, call, result)

        app_logger.debug(
            f"Tool {call.tool_name} {'completed' if result.success else 'failed'}",
            category=LogCategory.TOOL,
            extra_data={"call_id": call.call_id, "error": result.error}
        )
        return result, write_error

    async def _record_tool_call(
        self,
        agent: BaseAgent,
        conversation_id: str,
        call: ToolCall,
        result: ToolResult
    ) -> Optional[str]:
        write = await self.action_log.record_action(
            conversation_id=conversation_id,
            kind=ActionKind.TOOL_CALL,
            status=ActionStatus.COMPLETED if result.success else ActionStatus.FAILED,
            tool_name=call.tool_name,
            input_snapshot={"call_id": call.call_id, "arguments": call.arguments, "agent_id": agent.agent_id},
            output_snapshot={"output": result.output} if result.success else {},
            duration=result.duration,
            error=result.error
        )
        return write.error

    @staticmethod
    def _normalize_output(call: ToolCall, output: Any, duration: float) -> ToolResult:
        """Tools may return a payload or a ToolResult; pair it with this call"""
        if isinstance(output, ToolResult):
            return output.model_copy(update={
                "call_id": call.call_id,
                "tool_name": call.tool_name,
                "duration": duration
            })
        return ToolResult.ok(call, output, duration)

    @staticmethod
    def _summarize_tool_results(tool_results: List[ToolResult]) -> str:
        lines = []
        for result in tool_results:
            if result.success:
                lines.append(f"[{result.tool_name}] {BaseTool.format_output(result.output)}")
            else:
                lines.append(f"[{result.tool_name}] Error: {result.error}")
        return "\n".join(lines)

    async def _append_messages(
        self,
        conversation_id: str,
        query_text: str,
        message_text: str,
        tool_calls: List[ToolCall],
        warnings: List[str]
    ) -> None:
        """Append the assistant reply (and the query when configured)"""
        messages = []
        if self.settings.RECORD_USER_MESSAGES:
            messages.append(Message(role=MessageRole.USER, content=query_text))
        messages.append(Message(
            role=MessageRole.ASSISTANT,
            content=message_text,
            tool_call_ids=tuple(call.call_id for call in tool_calls)
        ))

        for message in messages:
            try:
                await self.context_store.append(conversation_id, message, create=True)
            except PersistenceError as e:
                warnings.append(f"Message not persisted: {e.message}")
                logger.warning(f"[AgentExecutor] Failed to append {message.role.value} message: {e}")
                return

    async def _record_query(self, result: AgentResult) -> None:
        output: Dict[str, Any] = {
            "success": result.success,
            "tool_calls": len(result.tool_calls),
            "documents": [doc.document_id for doc in result.documents]
        }
        if result.message is not None:
            output["message"] = result.message

        write = await self.action_log.record_action(
            conversation_id=result.conversation_id,
            kind=ActionKind.QUERY,
            status=ActionStatus.COMPLETED if result.success else ActionStatus.FAILED,
            tool_name="process_query",
            input_snapshot={"query": result.query, "agent_id": result.agent_id},
            output_snapshot=output,
            duration=result.total_elapsed_time,
            error=result.error
        )
        if not write.success:
            result.warnings.append(f"Query record not persisted: {write.error}")
