"""
Conversation message model.

A session is made of exactly six kinds of entries. The three role-based kinds
(system, user, assistant) carry plain text and serialize with a ``role``
discriminator. The three block kinds (thinking, tool call, tool result)
serialize with a ``type`` discriminator.

All messages are frozen pydantic models. Code that needs a different version
of a message builds a new one; nothing edits a message in place.
"""

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import DecodingError


class _BaseMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class SystemMessage(_BaseMessage):
    """A system-level instruction."""

    role: Literal["system"] = "system"
    content: str


class UserMessage(_BaseMessage):
    """Input from the human turn."""

    role: Literal["user"] = "user"
    content: str


class AssistantMessage(_BaseMessage):
    """A plain-text reply from the model."""

    role: Literal["assistant"] = "assistant"
    content: str


class ThinkingMessage(_BaseMessage):
    """The model's reasoning trace. Kept for display; providers may drop it."""

    type: Literal["thinking"] = "thinking"
    content: str


class ToolCallMessage(_BaseMessage):
    """A tool invocation requested by the model.

    ``input`` holds the call arguments as compact JSON object text. It may be
    given as a dict, a JSON string or UTF-8 bytes.
    """

    type: Literal["tool_call"] = "tool_call"
    id: str
    name: str
    input: str = "{}"

    @field_validator("input", mode="before")
    @classmethod
    def _normalize_input(cls, value: Any) -> str:
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8")
        if isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else {}
            except json.JSONDecodeError as e:
                raise ValueError(f"tool call input is not valid JSON: {e}") from e
        if not isinstance(value, dict):
            raise ValueError("tool call input must be a JSON object")
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    @property
    def arguments(self) -> dict[str, Any]:
        """The parsed input object."""
        return json.loads(self.input)


class ToolResultMessage(_BaseMessage):
    """The output returned for a prior tool call with the same ``id``."""

    type: Literal["tool_result"] = "tool_result"
    id: str
    output: str


Message = Union[
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
]

MESSAGE_TYPES: tuple[type[_BaseMessage], ...] = (
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
)

_BY_ROLE: dict[str, type[_BaseMessage]] = {
    "system": SystemMessage,
    "user": UserMessage,
    "assistant": AssistantMessage,
}

_BY_TYPE: dict[str, type[_BaseMessage]] = {
    "thinking": ThinkingMessage,
    "tool_call": ToolCallMessage,
    "tool_result": ToolResultMessage,
}


def is_message(value: Any) -> bool:
    """Return True if *value* is one of the six message kinds."""
    return isinstance(value, MESSAGE_TYPES)


def content_of(message: Message) -> str:
    """Return the text payload of a message.

    For tool calls this is the input JSON text, for tool results the output.
    """
    match message:
        case SystemMessage() | UserMessage() | AssistantMessage() | ThinkingMessage():
            return message.content
        case ToolCallMessage():
            return message.input
        case ToolResultMessage():
            return message.output
        case _:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")


def message_to_dict(message: Message) -> dict[str, Any]:
    """Convert a message to its serialized record."""
    match message:
        case SystemMessage() | UserMessage() | AssistantMessage():
            return {"role": message.role, "content": message.content}
        case ThinkingMessage():
            return {"type": message.type, "content": message.content}
        case ToolCallMessage():
            return {
                "type": message.type,
                "id": message.id,
                "name": message.name,
                "input": message.arguments,
            }
        case ToolResultMessage():
            return {"type": message.type, "id": message.id, "output": message.output}
        case _:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")


def message_from_dict(data: Any) -> Message:
    """Decode a serialized record.

    The ``role`` discriminator is checked first, then ``type``. Anything that
    matches neither raises ``DecodingError``.
    """
    if not isinstance(data, dict):
        raise DecodingError(f"message record must be an object, got {type(data).__name__}")

    role = data.get("role")
    kind = data.get("type")
    cls = _BY_ROLE.get(role) if isinstance(role, str) else None
    if cls is None and isinstance(kind, str):
        cls = _BY_TYPE.get(kind)
    if cls is None:
        raise DecodingError(f"unknown message discriminator: role={role!r} type={kind!r}")

    try:
        return cls.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        raise DecodingError(f"malformed {cls.__name__} record: {e}") from e


def message_to_json(message: Message) -> str:
    """Serialize a single message to JSON text."""
    return json.dumps(message_to_dict(message), ensure_ascii=False)


def message_from_json(text: str | bytes) -> Message:
    """Decode a single message from JSON text."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodingError(f"invalid message JSON: {e}") from e
    return message_from_dict(data)
