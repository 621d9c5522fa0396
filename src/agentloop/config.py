"""
Configuration management for agentloop.

Uses pydantic-settings for environment variable parsing and validation.
Variables are read with the ``AGENTLOOP_`` prefix, and from a ``.env`` file
in the working directory when present.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .agent.core import LoopConfig
    from .llm.base import InvokerConfig

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="AGENTLOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = "INFO"

    # Loop
    max_iterations: int = Field(default=30, ge=1, description="Model turns allowed per loop run")
    invocation_timeout: float | None = Field(
        default=None, gt=0, description="Seconds allowed for one model invocation"
    )

    # Compaction
    compaction_enabled: bool = True
    compaction_min_assistant_turns: int = Field(default=2, ge=0)
    compaction_max_length: int = Field(default=200, ge=0, description="Bytes kept per entry")

    # Provider
    provider: Literal["anthropic", "openai"] = "anthropic"
    model: str = Field(default="", description="Model name; provider default when empty")
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float | None = None
    thinking_budget: int | None = Field(default=None, ge=1024)
    base_url: str | None = None
    anthropic_api_key: str = Field(
        default="",
        validation_alias="ANTHROPIC_API_KEY",
        description="Anthropic API key",
    )
    openai_api_key: str = Field(
        default="",
        validation_alias="OPENAI_API_KEY",
        description="OpenAI API key",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper() if v else "INFO"

    def loop_config(self) -> "LoopConfig":
        """Build the agent loop configuration."""
        from .agent.compaction import CompactionConfig, HistoryCompactor
        from .agent.core import LoopConfig

        compactor = None
        if self.compaction_enabled:
            compactor = HistoryCompactor(CompactionConfig(
                min_assistant_turns=self.compaction_min_assistant_turns,
                max_length=self.compaction_max_length,
            ))

        return LoopConfig(
            max_iterations=self.max_iterations,
            compactor=compactor,
            invocation_timeout=self.invocation_timeout,
        )

    def invoker_config(self) -> "InvokerConfig":
        """Build the model invoker configuration."""
        from .llm.base import InvokerConfig

        api_key = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }[self.provider]

        return InvokerConfig(
            provider=self.provider,
            model=self.model or DEFAULT_MODELS[self.provider],
            api_key=api_key,
            base_url=self.base_url,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            thinking_budget=self.thinking_budget,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
