"""
Integration Tests for Agents in Workflows

Wires real Agents (executor, tool registry, retrieval, context store,
action log) into the orchestrator using only the mock adapters.
"""
import pytest

from agentcore.adapters.mock import MockEmbeddingAdapter, MockLLMAdapter, MockVectorStoreAdapter
from agentcore.agents import (
    ActionKind,
    ActionLog,
    Agent,
    AgentExecutor,
    AgentRegistry,
    ContextStore,
    ModelResponse,
    RetrievalGateway,
    SemanticSearchTool,
    ToolCall,
    ToolRegistry,
    WorkflowDefinition,
    WorkflowOrchestrator,
)
from agentcore.core.config import AgentCoreSettings


@pytest.fixture
def stack():
    """Shared components for one integration scenario"""
    settings = AgentCoreSettings(RETRIEVAL_THRESHOLD=0.5)
    gateway = RetrievalGateway(MockEmbeddingAdapter(), MockVectorStoreAdapter(), collection="kb")
    tools = ToolRegistry()
    tools.register_tool(SemanticSearchTool(gateway, default_threshold=0.5))
    return {
        "settings": settings,
        "gateway": gateway,
        "tools": tools,
        "context": ContextStore(),
        "actions": ActionLog(),
    }


def make_agent(stack, agent_id, llm):
    executor = AgentExecutor(
        llm,
        stack["tools"],
        stack["context"],
        stack["actions"],
        stack["gateway"],
        stack["settings"]
    )
    return Agent(agent_id, executor, description=f"{agent_id} agent")


class TestAgentWorkflowIntegration:
    """Agents backed by mock models inside workflows"""

    @pytest.mark.asyncio
    async def test_tool_call_retrieves_stored_document(self, stack):
        await stack["gateway"].store_document("Agents dispatch tools concurrently", source="guide")
        llm = MockLLMAdapter(responses=[
            ModelResponse(
                message="Found it.",
                tool_calls=[ToolCall(tool_name="semantic_search", arguments={"query": "Agents dispatch tools concurrently"})]
            )
        ])
        agent = make_agent(stack, "researcher", llm)

        result = await agent.process_query("conv-1", "How do agents use tools?", use_retrieval=False)

        assert result.success
        hits = result.tool_results[0].output
        assert hits[0]["text"] == "Agents dispatch tools concurrently"
        assert hits[0]["metadata"] == {"source": "guide"}

        records = await stack["actions"].list_actions("conv-1")
        assert [r.kind for r in records] == [ActionKind.TOOL_CALL, ActionKind.QUERY]

    @pytest.mark.asyncio
    async def test_sequential_workflow_with_real_agents(self, stack):
        orchestrator = WorkflowOrchestrator(
            AgentRegistry(), stack["actions"], use_retrieval=False, settings=stack["settings"]
        )
        orchestrator.register_agent(make_agent(stack, "drafter", MockLLMAdapter(responses=["First draft"])))
        orchestrator.register_agent(make_agent(
            stack,
            "editor",
            MockLLMAdapter(responder=lambda request: "Edited: " + request.query.split("Previous result:\n")[-1])
        ))
        definition = WorkflowDefinition.sequential("write", [("drafter", "Draft"), ("editor", "Edit")])

        result = await orchestrator.execute(definition, "Release notes", conversation_id="notes")

        assert result.success
        assert result.final_result == "Edited: First draft"

        drafter_history = await stack["context"].history("notes:drafter", limit=5)
        assert [m.content for m in drafter_history] == ["First draft"]

        steps = await stack["actions"].list_actions("notes", kind=ActionKind.TASK_STEP)
        assert len(steps) == 2

    @pytest.mark.asyncio
    async def test_model_failure_fails_sequential_step(self, stack):
        orchestrator = WorkflowOrchestrator(
            AgentRegistry(), stack["actions"], use_retrieval=False, settings=stack["settings"]
        )
        orchestrator.register_agent(make_agent(
            stack, "flaky", MockLLMAdapter(responses=[RuntimeError("provider outage")])
        ))
        definition = WorkflowDefinition.sequential("fragile", [("flaky", "")])

        result = await orchestrator.execute(definition, "task")

        assert not result.success
        assert "provider outage" in result.assignments[0].error
