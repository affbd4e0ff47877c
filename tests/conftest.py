"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for agent core testing without
external dependencies (language models, vector stores, databases).
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing agentcore modules
os.environ["AGENTCORE_LOG_LEVEL"] = "DEBUG"
os.environ["AGENTCORE_LOG_JSON"] = "false"


# ==================== Settings ====================

@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Each test sees settings built from its own environment"""
    from agentcore.core.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Provide default settings"""
    from agentcore.core.config import AgentCoreSettings
    return AgentCoreSettings()


# ==================== Registry Fixtures ====================

@pytest.fixture
def tool_registry():
    """Provide a fresh tool registry (not the process singleton)"""
    from agentcore.agents.registry import ToolRegistry
    return ToolRegistry()


@pytest.fixture
def agent_registry():
    """Provide a fresh agent registry"""
    from agentcore.agents.registry import AgentRegistry
    return AgentRegistry()


# ==================== Repository Fixtures ====================

@pytest.fixture
def conversation_repository():
    """Provide in-memory conversation repository"""
    from agentcore.infrastructure.memory import MemoryConversationRepository
    return MemoryConversationRepository()


@pytest.fixture
def action_repository():
    """Provide in-memory action repository"""
    from agentcore.infrastructure.memory import MemoryActionRepository
    return MemoryActionRepository()


@pytest.fixture
def workflow_repository():
    """Provide in-memory workflow repository"""
    from agentcore.infrastructure.memory import MemoryWorkflowRepository
    return MemoryWorkflowRepository()


@pytest.fixture
def context_store(conversation_repository):
    """Provide context store over the memory repository"""
    from agentcore.agents.context_store import ContextStore
    return ContextStore(conversation_repository)


@pytest.fixture
def action_log(action_repository):
    """Provide action log over the memory repository"""
    from agentcore.agents.action_log import ActionLog
    return ActionLog(action_repository)


# ==================== Adapter Fixtures ====================

@pytest.fixture
def mock_llm_adapter():
    """Provide mock LLM adapter"""
    from agentcore.adapters.mock import MockLLMAdapter
    return MockLLMAdapter(simulate_delay=False)


@pytest.fixture
def mock_embedding_adapter():
    """Provide mock embedding adapter"""
    from agentcore.adapters.mock import MockEmbeddingAdapter
    return MockEmbeddingAdapter()


@pytest.fixture
def mock_vector_store_adapter():
    """Provide mock vector store adapter"""
    from agentcore.adapters.mock import MockVectorStoreAdapter
    return MockVectorStoreAdapter()


@pytest.fixture
def retrieval_gateway(mock_embedding_adapter, mock_vector_store_adapter):
    """Provide retrieval gateway over the mock adapters"""
    from agentcore.agents.retrieval import RetrievalGateway
    return RetrievalGateway(mock_embedding_adapter, mock_vector_store_adapter, collection="test")


# ==================== Agent Fixtures ====================

@pytest.fixture
def executor(mock_llm_adapter, tool_registry, context_store, action_log, settings):
    """Provide agent executor wired to mocks, without retrieval"""
    from agentcore.agents.executor import AgentExecutor
    return AgentExecutor(
        llm=mock_llm_adapter,
        tool_registry=tool_registry,
        context_store=context_store,
        action_log=action_log,
        settings=settings
    )


@pytest.fixture
def agent(executor):
    """Provide a tool-augmented agent"""
    from agentcore.agents.base import Agent
    return Agent("assistant", executor, description="General assistant")


@pytest.fixture
def orchestrator(agent_registry, action_log, workflow_repository, settings):
    """Provide workflow orchestrator over memory repositories"""
    from agentcore.agents.orchestrator import WorkflowOrchestrator
    return WorkflowOrchestrator(
        agent_registry=agent_registry,
        action_log=action_log,
        workflow_repository=workflow_repository,
        use_retrieval=False,
        settings=settings
    )
