"""
Anthropic Claude invoker.
"""

from typing import TYPE_CHECKING, Any, Sequence

import anthropic
import structlog

from ..messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)
from ..tools.base import ToolDefinition
from .base import BaseInvoker, InvokerConfig

if TYPE_CHECKING:
    from ..agent.session import Session

logger = structlog.get_logger()


def _to_block(message: Message) -> tuple[str, dict[str, Any]] | None:
    """Map a non-system message to an API role and content block.

    Returns None for messages that are not sent to the API.
    """
    match message:
        case UserMessage():
            return "user", {"type": "text", "text": message.content}
        case AssistantMessage():
            return "assistant", {"type": "text", "text": message.content}
        case ToolCallMessage():
            return "assistant", {
                "type": "tool_use",
                "id": message.id,
                "name": message.name,
                "input": message.arguments,
            }
        case ToolResultMessage():
            return "user", {
                "type": "tool_result",
                "tool_use_id": message.id,
                "content": message.output,
            }
        case ThinkingMessage():
            # No signature is kept, so thinking cannot be replayed.
            return None
        case SystemMessage():
            raise ValueError("system messages are sent separately")
        case _:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")


def build_params(session: "Session") -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Convert a session into Anthropic system blocks and message turns.

    Consecutive blocks with the same role are merged into one turn.
    """
    system: list[dict[str, Any]] = []
    turns: list[dict[str, Any]] = []

    for msg in session:
        if isinstance(msg, SystemMessage):
            system.append({"type": "text", "text": msg.content})
            continue

        mapped = _to_block(msg)
        if mapped is None:
            continue
        role, block = mapped

        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].append(block)
        else:
            turns.append({"role": role, "content": [block]})

    return system, turns


def convert_tools(tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    """Convert ToolDefinitions to Anthropic format."""
    converted = []
    for tool in tools:
        schema = tool.input_schema.to_dict()
        param: dict[str, Any] = {"name": tool.name, "input_schema": schema}
        if tool.description:
            param["description"] = tool.description
        converted.append(param)
    return converted


def response_to_messages(response: Any) -> list[Message]:
    """Convert an Anthropic response into session messages."""
    out: list[Message] = []
    for block in response.content:
        if block.type == "text":
            out.append(AssistantMessage(content=block.text))
        elif block.type == "thinking":
            out.append(ThinkingMessage(content=block.thinking))
        elif block.type == "tool_use":
            tool_input = block.input if isinstance(block.input, dict) else {}
            out.append(ToolCallMessage(id=block.id, name=block.name, input=tool_input))
    return out


class AnthropicInvoker(BaseInvoker):
    """Invoker backed by the Anthropic Messages API."""

    def __init__(self, config: InvokerConfig, client: Any = None):
        super().__init__(config)
        self.client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key or None,
            base_url=config.base_url,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def invoke(
        self,
        tools: Sequence[ToolDefinition],
        session: "Session",
    ) -> list[Message]:
        """Call Claude with the session and return the new messages."""
        system, turns = build_params(session)

        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": turns,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = convert_tools(tools)
        if self.config.thinking_budget is not None:
            kwargs["thinking"] = {
                "type": "enabled",
                "budget_tokens": self.config.thinking_budget,
            }
        elif self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error("Anthropic API error", error=str(e))
            raise

        messages = response_to_messages(response)
        logger.debug(
            "Anthropic turn complete",
            model=getattr(response, "model", self.config.model),
            stop_reason=getattr(response, "stop_reason", None),
            blocks=len(messages),
        )
        return messages
