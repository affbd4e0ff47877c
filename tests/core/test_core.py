"""
Tests for Core Configuration, Errors, Retry and Logging
"""
import json
import logging

import pytest

from agentcore.core.config import AgentCoreSettings, get_settings
from agentcore.core.errors import (
    ConversationNotFoundError,
    ErrorCode,
    PersistenceError,
    SchemaError,
    WorkflowTimeoutError,
)
from agentcore.core.logging_framework import (
    AppLogger,
    LogCategory,
    StructuredFormatter,
    setup_logging,
)
from agentcore.core.retry import retry_once


# =============================================================================
# Configuration Tests
# =============================================================================

class TestSettings:
    """Tests for AgentCoreSettings"""

    def test_defaults(self, settings):
        assert settings.HISTORY_LIMIT == 10
        assert settings.RETRIEVAL_LIMIT == 5
        assert settings.RETRIEVAL_THRESHOLD == 0.75
        assert settings.PERSISTENCE_ATTEMPTS == 2
        assert settings.WORKFLOW_TIMEOUT_SECONDS is None
        assert settings.RECORD_USER_MESSAGES is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("AGENTCORE_HISTORY_LIMIT", "3")
        monkeypatch.setenv("AGENTCORE_TOOL_TIMEOUT_SECONDS", "1.5")

        settings = get_settings()

        assert settings.HISTORY_LIMIT == 3
        assert settings.TOOL_TIMEOUT_SECONDS == 1.5
        assert get_settings() is settings

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            AgentCoreSettings(LOG_LEVEL="chatty")

    def test_retry_attempts_capped(self):
        with pytest.raises(ValueError):
            AgentCoreSettings(PERSISTENCE_ATTEMPTS=3)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "agentcore.yaml"
        path.write_text("history_limit: 4\nretrieval_threshold: 0.5\nlog_level: debug\n", encoding="utf-8")

        settings = AgentCoreSettings.from_yaml(path)

        assert settings.HISTORY_LIMIT == 4
        assert settings.RETRIEVAL_THRESHOLD == 0.5
        assert settings.LOG_LEVEL == "DEBUG"

    def test_from_yaml_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ValueError):
            AgentCoreSettings.from_yaml(path)


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Tests for the exception hierarchy"""

    def test_to_dict(self):
        error = ConversationNotFoundError("c1")
        data = error.to_dict()

        assert data["code"] == ErrorCode.CONVERSATION_NOT_FOUND.value
        assert data["type"] == "ConversationNotFoundError"
        assert data["details"] == {"conversation_id": "c1"}

    def test_str_includes_code(self):
        assert str(WorkflowTimeoutError(5)) == "[ERR_5000] Workflow timed out after 5s"

    def test_schema_error_message(self):
        error = SchemaError("search", ["query"], {"limit": "should be integer, got str"})

        assert error.message == (
            "Invalid arguments for tool 'search': missing required parameter(s): query; "
            "parameter 'limit' should be integer, got str"
        )

    def test_cause_serialized(self):
        error = PersistenceError("write failed", operation="append", cause=OSError("disk full"))

        data = error.to_dict()
        assert data["cause"] == "OSError: disk full"
        assert data["details"]["operation"] == "append"


# =============================================================================
# Retry Tests
# =============================================================================

class TestRetryOnce:
    """Tests for bounded persistence retry"""

    @pytest.mark.asyncio
    async def test_success_after_one_failure(self):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError("reset")
            return "ok"

        assert await retry_once(operation, "write") == "ok"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_two_attempts(self):
        calls = []

        async def operation():
            calls.append(1)
            raise ConnectionError("down")

        with pytest.raises(PersistenceError) as exc_info:
            await retry_once(operation, "write")

        assert len(calls) == 2
        assert exc_info.value.operation == "write"
        assert isinstance(exc_info.value.cause, ConnectionError)

    @pytest.mark.asyncio
    async def test_domain_errors_not_retried(self):
        calls = []

        async def operation():
            calls.append(1)
            raise ConversationNotFoundError("c1")

        with pytest.raises(ConversationNotFoundError):
            await retry_once(operation, "append")
        assert len(calls) == 1


# =============================================================================
# Logging Tests
# =============================================================================

class TestLogging:
    """Tests for the logging framework"""

    def test_app_logger_namespaced(self):
        assert AppLogger("executor").name == "agentcore.executor"
        assert AppLogger("agentcore.executor").name == "agentcore.executor"

    def test_setup_logging_replaces_handler(self):
        root = setup_logging("DEBUG")
        setup_logging("INFO", json_format=True)

        handlers = [h for h in root.handlers if getattr(h, "_agentcore_handler", False)]
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, StructuredFormatter)
        assert root.level == logging.INFO

    def test_structured_formatter(self):
        record = logging.LogRecord("agentcore.test", logging.INFO, __file__, 1, "Turn done", None, None)
        record.category = LogCategory.AGENT.value
        record.duration_ms = 12.5
        record.extra_data = {"tool_calls": 2}

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Turn done"
        assert data["category"] == "agent"
        assert data["duration_ms"] == 12.5
        assert data["data"] == {"tool_calls": 2}

    def test_category_attached(self, caplog):
        logger = AppLogger("category_test")

        with caplog.at_level(logging.INFO, logger="agentcore"):
            logger.info("Workflow started", category=LogCategory.WORKFLOW, extra_data={"id": "e1"})

        record = caplog.records[-1]
        assert record.category == "workflow"
        assert record.extra_data == {"id": "e1"}
