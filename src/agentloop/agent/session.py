"""
Session: the ordered conversation log.
"""

import json
from typing import Any, Iterable, Iterator

from ..errors import DecodingError
from ..messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolCallMessage,
    UserMessage,
    is_message,
    message_from_dict,
    message_to_dict,
)


class Session:
    """An append-only, ordered log of messages.

    Order is turn order. Messages are only ever appended, except that the
    compactor may swap an entry for a shortened one of the same kind.
    """

    def __init__(self, messages: Iterable[Message] | None = None):
        self.messages: list[Message] = []
        if messages:
            self.add(*messages)

    @classmethod
    def with_prompt(cls, system_prompt: str, user_prompt: str) -> "Session":
        """Create a session primed with a system prompt and a first user message."""
        return cls([SystemMessage(content=system_prompt), UserMessage(content=user_prompt)])

    def add(self, *messages: Message) -> None:
        """Append messages as one batch.

        Every item is checked before anything is appended.
        """
        for msg in messages:
            if not is_message(msg):
                raise TypeError(f"Not a message: {type(msg).__name__}")
        self.messages.extend(messages)

    def replace(self, index: int, message: Message) -> None:
        """Swap the entry at *index* for a message of the same kind."""
        current = self.messages[index]
        if type(current) is not type(message):
            raise TypeError(
                f"Cannot replace {type(current).__name__} with {type(message).__name__}"
            )
        self.messages[index] = message

    def copy(self) -> "Session":
        """Return an independent session with the same messages."""
        clone = Session()
        clone.messages = list(self.messages)
        return clone

    def tool_calls(self) -> list[ToolCallMessage]:
        """All tool calls in the session, in order."""
        return [m for m in self.messages if isinstance(m, ToolCallMessage)]

    def last_assistant_text(self) -> str | None:
        """Content of the most recent assistant message, if any."""
        for msg in reversed(self.messages):
            if isinstance(msg, AssistantMessage):
                return msg.content
        return None

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __getitem__(self, index: int) -> Message:
        return self.messages[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Session):
            return NotImplemented
        return self.messages == other.messages

    def __repr__(self) -> str:
        return f"Session(messages={len(self.messages)})"

    # Serialization

    def to_list(self) -> list[dict[str, Any]]:
        return [message_to_dict(m) for m in self.messages]

    @classmethod
    def from_list(cls, records: Any) -> "Session":
        if not isinstance(records, list):
            raise DecodingError(
                f"session must be an array of messages, got {type(records).__name__}"
            )
        return cls([message_from_dict(r) for r in records])

    def to_json(self, indent: int | None = None) -> str:
        """Serialize to a JSON array of message records."""
        return json.dumps(self.to_list(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str | bytes) -> "Session":
        """Decode a session produced by ``to_json``."""
        try:
            records = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodingError(f"invalid session JSON: {e}") from e
        return cls.from_list(records)
