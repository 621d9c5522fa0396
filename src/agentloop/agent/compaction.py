"""
History compaction - keeps long-running sessions bounded.

Thinking traces, tool calls and tool results are the bulky part of an agent
session, and they matter less once the model has moved on. Once at least
``min_assistant_turns`` assistant messages follow such an entry, its payload
is cut down to ``max_length`` bytes plus an ellipsis.

The compactor remembers which positions it has already finalized, so running
it again over the same prefix changes nothing. Use one compactor per session.
"""

from dataclasses import dataclass
from typing import Callable

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
from .session import Session

logger = structlog.get_logger()

DEFAULT_MIN_ASSISTANT_TURNS = 2
DEFAULT_MAX_LENGTH = 200  # bytes
ELLIPSIS = "…"

# Key used when a tool call's input is shortened; the input must stay an object.
TRUNCATED_INPUT_KEY = "truncated_input"

Compactor = Callable[[Session], Session]


@dataclass
class CompactionConfig:
    """Configuration for history compaction."""

    min_assistant_turns: int = DEFAULT_MIN_ASSISTANT_TURNS
    max_length: int = DEFAULT_MAX_LENGTH
    ellipsis: str = ELLIPSIS

    def __post_init__(self) -> None:
        if self.min_assistant_turns < 0:
            raise ValueError("min_assistant_turns must be >= 0")
        if self.max_length < 0:
            raise ValueError("max_length must be >= 0")


def truncate_bytes(text: str, limit: int) -> str:
    """Return the longest prefix of *text* that fits in *limit* UTF-8 bytes."""
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    return encoded[:limit].decode("utf-8", errors="ignore")


class HistoryCompactor:
    """Stateful, idempotent session compactor.

    ``visited`` holds the positions already finalized. Entries are finalized
    once they are old enough, whether or not they needed shortening.
    """

    def __init__(self, config: CompactionConfig | None = None):
        self.config = config or CompactionConfig()
        self.visited: set[int] = set()

    def reset(self) -> None:
        """Forget all finalized positions."""
        self.visited.clear()

    def __call__(self, session: Session) -> Session:
        return self.compact(session)

    def compact(self, session: Session) -> Session:
        """Return a compacted copy of *session*."""
        result = session.copy()
        assistants_after = 0
        compacted = 0

        for index in range(len(result) - 1, -1, -1):
            message = result[index]
            match message:
                case AssistantMessage():
                    assistants_after += 1
                    continue
                case SystemMessage() | UserMessage():
                    continue
                case ThinkingMessage() | ToolCallMessage() | ToolResultMessage():
                    pass
                case _:
                    raise TypeError(f"Unsupported message type: {type(message).__name__}")

            if index in self.visited or assistants_after < self.config.min_assistant_turns:
                continue

            shortened = self._shorten(message)
            if shortened is not None:
                result.replace(index, shortened)
                compacted += 1
            self.visited.add(index)

        if compacted:
            logger.debug("Compacted session entries", compacted=compacted, total=len(result))
        return result

    def _shorten(self, message: Message) -> Message | None:
        """Build the shortened replacement, or None if the payload already fits."""
        limit = self.config.max_length
        match message:
            case ThinkingMessage():
                if len(message.content.encode("utf-8")) <= limit:
                    return None
                return ThinkingMessage(
                    content=truncate_bytes(message.content, limit) + self.config.ellipsis
                )
            case ToolResultMessage():
                if len(message.output.encode("utf-8")) <= limit:
                    return None
                return ToolResultMessage(
                    id=message.id,
                    output=truncate_bytes(message.output, limit) + self.config.ellipsis,
                )
            case ToolCallMessage():
                if len(message.input.encode("utf-8")) <= limit:
                    return None
                if message.arguments.keys() == {TRUNCATED_INPUT_KEY}:
                    # Shortened by an earlier run.
                    return None
                prefix = truncate_bytes(message.input, limit) + self.config.ellipsis
                return ToolCallMessage(
                    id=message.id,
                    name=message.name,
                    input={TRUNCATED_INPUT_KEY: prefix},
                )
            case _:
                raise TypeError(f"Unsupported message type: {type(message).__name__}")


def create_compactor(
    min_assistant_turns: int = DEFAULT_MIN_ASSISTANT_TURNS,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> HistoryCompactor:
    """Create a compactor with the given thresholds."""
    return HistoryCompactor(
        CompactionConfig(min_assistant_turns=min_assistant_turns, max_length=max_length)
    )
