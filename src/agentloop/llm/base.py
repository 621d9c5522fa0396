"""
Base classes for model invokers.

An invoker takes the tool definitions and the current session and returns the
messages produced by one model turn. The agent loop only depends on that
callable shape; providers live behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, Sequence

from ..messages import Message
from ..tools.base import ToolDefinition

if TYPE_CHECKING:
    from ..agent.session import Session


class ModelInvoker(Protocol):
    """Anything the loop can call to run one model turn."""

    async def __call__(
        self,
        tools: Sequence[ToolDefinition],
        session: "Session",
    ) -> list[Message]: ...


@dataclass
class InvokerConfig:
    """Configuration for a model provider."""

    provider: Literal["anthropic", "openai"] = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 4096
    temperature: float | None = None
    thinking_budget: int | None = None


class BaseInvoker(ABC):
    """Base class for provider-backed invokers."""

    def __init__(self, config: InvokerConfig):
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    async def invoke(
        self,
        tools: Sequence[ToolDefinition],
        session: "Session",
    ) -> list[Message]:
        """Run one model turn over *session*."""
        pass

    async def __call__(
        self,
        tools: Sequence[ToolDefinition],
        session: "Session",
    ) -> list[Message]:
        return await self.invoke(tools, session)

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
