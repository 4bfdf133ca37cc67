"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> Path | None:
    """Find .env file in current or parent directories."""
    current = Path.cwd()
    for path in [current, current.parent]:
        env_file = path / ".env"
        if env_file.exists():
            return env_file
    return None


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_ignore_empty=True,
        extra="ignore",
    )

    # === Project ===
    PROJECT_NAME: str = "agentflow"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "local", "staging", "production"] = "local"
    LOG_TO_FILE: bool = False

    # === Logfire ===
    LOGFIRE_TOKEN: str | None = None
    LOGFIRE_SERVICE_NAME: str = "agentflow"
    LOGFIRE_ENVIRONMENT: str = "development"

    # === LLM providers (langchain, openai) ===
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str | None = None
    DEFAULT_PROVIDER: str = "openai"
    DEFAULT_MODEL: str = "gpt-4o-mini"
    PLACEHOLDER_API_KEY: str = "your-openai-api-key-here"
    LLM_REQUEST_TIMEOUT: float = 120.0

    # === Agent runs ===
    ANNOUNCE_THINKING: bool = True
    GRAPH_MAX_STEPS: int = 25


settings = Settings()
