"""
Agent Core Configuration
Type-safe settings with environment variable and YAML file support.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentCoreSettings(BaseSettings):
    """Runtime settings for agents and workflows"""

    model_config = SettingsConfigDict(
        env_prefix="AGENTCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Agent turn
    HISTORY_LIMIT: int = Field(default=10, ge=0, description="Messages read from history per turn")
    RECORD_USER_MESSAGES: bool = Field(
        default=False,
        description="Also append the user query to the conversation before the assistant reply"
    )
    SYSTEM_PROMPT: str = Field(
        default="You are a helpful agent. Use the available tools when they help answer the query.",
        description="Default system prompt for agents without their own"
    )

    # Retrieval
    RETRIEVAL_LIMIT: int = Field(default=5, ge=1)
    RETRIEVAL_THRESHOLD: float = Field(default=0.75, ge=0.0, le=1.0)
    RETRIEVAL_CANDIDATE_MULTIPLIER: int = Field(
        default=4, ge=1,
        description="Raw candidates requested from the store per returned document"
    )
    RETRIEVAL_COLLECTION: str = "documents"

    # Tool dispatch
    TOOL_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Persistence
    PERSISTENCE_ATTEMPTS: int = Field(
        default=2, ge=1, le=2,
        description="Attempts per persistence operation (one retry at most)"
    )

    # Workflows
    WORKFLOW_TIMEOUT_SECONDS: Optional[float] = Field(default=None, gt=0)
    RESULT_PREVIEW_CHARS: int = Field(default=2000, ge=100, description="Characters of a step result threaded forward")

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate log level"""
        normalized = v.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return normalized

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AgentCoreSettings":
        """
        Load settings from a YAML file.

        Keys are matched case-insensitively against the field names;
        environment variables still apply to fields the file leaves out.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file must contain a mapping: {path}")

        return cls(**{str(key).upper(): value for key, value in data.items()})


@lru_cache()
def get_settings() -> AgentCoreSettings:
    """Get cached settings"""
    return AgentCoreSettings()
