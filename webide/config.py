"""Workspace configuration loaded from environment variables.

Uses ``pydantic-settings`` for automatic env-var loading, type coercion,
and ``.env`` file support.  Nothing is required: without API keys the
workspace still runs and the AI operations degrade to inline errors.
"""

VERSION = "0.1.0"

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-haiku-4-5",
    "openai": "gpt-4o-mini",
}


class Settings(BaseSettings):
    """Workspace settings — sourced from environment / ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: str = "INFO"

    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    LLM_PROVIDER: str = ""  # "openai" | "anthropic" | auto
    LLM_MODEL: str = ""  # blank = provider default
    LLM_MAX_TOKENS: int = Field(default=2048, ge=1)
    LLM_TIMEOUT_SECS: float = Field(default=120.0, gt=0)
    LLM_MAX_RETRIES: int = Field(default=3, ge=0)

    # Notices kept on the snapshot; older ones fall off.
    MAX_NOTICES: int = Field(default=20, ge=1)

    def resolved_provider(self) -> str:
        """Explicit ``LLM_PROVIDER``, else whichever key is set (Anthropic first)."""
        if self.LLM_PROVIDER:
            return self.LLM_PROVIDER.lower()
        if not self.ANTHROPIC_API_KEY and self.OPENAI_API_KEY:
            return "openai"
        return "anthropic"

    def resolved_model(self) -> str:
        return self.LLM_MODEL or _DEFAULT_MODELS.get(self.resolved_provider(), "")


settings = Settings()
