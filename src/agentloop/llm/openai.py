"""
OpenAI chat-completions invoker (also works with OpenRouter and compatible APIs).
"""

import json
from typing import TYPE_CHECKING, Any, Sequence

import openai
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


def convert_messages(session: "Session") -> list[dict[str, Any]]:
    """Convert a session to OpenAI chat messages.

    Tool calls attach to the assistant message right before them, or start a
    new assistant message when there is none.
    """
    converted: list[dict[str, Any]] = []

    for msg in session:
        match msg:
            case SystemMessage():
                converted.append({"role": "system", "content": msg.content})
            case UserMessage():
                converted.append({"role": "user", "content": msg.content})
            case AssistantMessage():
                converted.append({"role": "assistant", "content": msg.content})
            case ToolCallMessage():
                tool_call = {
                    "id": msg.id,
                    "type": "function",
                    "function": {"name": msg.name, "arguments": msg.input},
                }
                last = converted[-1] if converted else None
                if last is not None and last["role"] == "assistant":
                    last.setdefault("tool_calls", []).append(tool_call)
                else:
                    converted.append(
                        {"role": "assistant", "content": None, "tool_calls": [tool_call]}
                    )
            case ToolResultMessage():
                converted.append({
                    "role": "tool",
                    "tool_call_id": msg.id,
                    "content": msg.output,
                })
            case ThinkingMessage():
                continue
            case _:
                raise TypeError(f"Unsupported message type: {type(msg).__name__}")

    return converted


def convert_tools(tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    """Convert ToolDefinitions to OpenAI format."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema.to_dict(),
            },
        }
        for tool in tools
    ]


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning("Tool call arguments are not valid JSON", arguments=raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def response_to_messages(response: Any) -> list[Message]:
    """Convert a chat completion into session messages."""
    message = response.choices[0].message
    out: list[Message] = []

    if message.content:
        out.append(AssistantMessage(content=message.content))
    for tc in message.tool_calls or []:
        out.append(ToolCallMessage(
            id=tc.id,
            name=tc.function.name,
            input=_parse_arguments(tc.function.arguments),
        ))
    return out


class OpenAIInvoker(BaseInvoker):
    """Invoker backed by the OpenAI chat completions API."""

    def __init__(self, config: InvokerConfig, client: Any = None):
        super().__init__(config)
        self.client = client or openai.AsyncOpenAI(
            api_key=config.api_key or None,
            base_url=config.base_url,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    async def invoke(
        self,
        tools: Sequence[ToolDefinition],
        session: "Session",
    ) -> list[Message]:
        """Call the chat completions endpoint and return the new messages."""
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": convert_messages(session),
        }
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        if tools:
            kwargs["tools"] = convert_tools(tools)

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            logger.error("OpenAI API error", error=str(e))
            raise

        messages = response_to_messages(response)
        logger.debug(
            "OpenAI turn complete",
            model=getattr(response, "model", self.config.model),
            finish_reason=response.choices[0].finish_reason,
            blocks=len(messages),
        )
        return messages
