"""
Tests for history compaction.
"""

import pytest

from agentloop.agent.compaction import (
    ELLIPSIS,
    TRUNCATED_INPUT_KEY,
    CompactionConfig,
    HistoryCompactor,
    create_compactor,
    truncate_bytes,
)
from agentloop.agent.session import Session
from agentloop.messages import (
    AssistantMessage,
    SystemMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)

LONG = "x" * 500


def tool_turn(call_id: str, output: str) -> list:
    return [
        ThinkingMessage(content=LONG),
        ToolCallMessage(id=call_id, name="search", input={"query": LONG}),
        ToolResultMessage(id=call_id, output=output),
    ]


def test_compaction_config_defaults():
    """Test CompactionConfig default values."""
    config = CompactionConfig()
    assert config.min_assistant_turns == 2
    assert config.max_length == 200
    assert config.ellipsis == ELLIPSIS


def test_compaction_config_rejects_negative_values():
    """Test config validation."""
    with pytest.raises(ValueError):
        CompactionConfig(max_length=-1)
    with pytest.raises(ValueError):
        CompactionConfig(min_assistant_turns=-1)


def test_truncate_bytes_keeps_whole_characters():
    """Test that truncation never splits a multi-byte character."""
    assert truncate_bytes("hello", 10) == "hello"
    assert truncate_bytes("hello", 3) == "hel"
    # "é" is two bytes; cutting inside it drops it.
    assert truncate_bytes("aé", 2) == "a"


def test_old_entries_are_truncated():
    """Test that entries followed by two assistant turns are shortened."""
    session = Session([
        SystemMessage(content=LONG),
        UserMessage(content=LONG),
        *tool_turn("c1", LONG),
        AssistantMessage(content=LONG),
        UserMessage(content="next"),
        AssistantMessage(content="done"),
    ])

    compacted = HistoryCompactor()(session)

    thinking, call, result = compacted[2], compacted[3], compacted[4]
    assert thinking.content == "x" * 200 + ELLIPSIS
    assert result.output == "x" * 200 + ELLIPSIS
    assert result.id == "c1"
    assert call.id == "c1" and call.name == "search"
    assert call.arguments[TRUNCATED_INPUT_KEY].endswith(ELLIPSIS)
    assert len(call.arguments[TRUNCATED_INPUT_KEY].encode("utf-8")) == 200 + len(ELLIPSIS.encode())


def test_role_messages_are_never_altered():
    """Test that system, user and assistant messages stay as they are."""
    session = Session([
        SystemMessage(content=LONG),
        UserMessage(content=LONG),
        AssistantMessage(content=LONG),
        AssistantMessage(content=LONG),
        AssistantMessage(content=LONG),
    ])

    assert HistoryCompactor()(session) == session


def test_below_threshold_is_untouched():
    """Test that entries with fewer than N assistant turns after them are left alone."""
    session = Session([
        UserMessage(content="q"),
        *tool_turn("c1", LONG),
        AssistantMessage(content="only one"),
    ])

    compactor = HistoryCompactor()
    compacted = compactor(session)

    assert compacted == session
    assert compactor.visited == set()


def test_short_entries_are_marked_visited():
    """Test that eligible short entries are finalized without changes."""
    session = Session([
        ToolResultMessage(id="c1", output="short"),
        AssistantMessage(content="a"),
        AssistantMessage(content="b"),
    ])

    compactor = HistoryCompactor()
    compacted = compactor(session)

    assert compacted == session
    assert compactor.visited == {0}


def test_compaction_is_idempotent():
    """Test that a second pass over the same state is byte-identical."""
    session = Session([
        UserMessage(content="q"),
        *tool_turn("c1", LONG),
        AssistantMessage(content="a"),
        *tool_turn("c2", LONG),
        AssistantMessage(content="b"),
        AssistantMessage(content="c"),
    ])

    compactor = HistoryCompactor()
    first = compactor(session)
    second = compactor(first)

    assert second.to_json() == first.to_json()


def test_growing_session_compacts_incrementally():
    """Test that entries are compacted once they become old enough."""
    compactor = HistoryCompactor()
    session = Session([UserMessage(content="q"), *tool_turn("c1", LONG)])

    session = compactor(session)
    assert session[3].output == LONG

    session.add(AssistantMessage(content="first"))
    session = compactor(session)
    assert session[3].output == LONG

    session.add(AssistantMessage(content="second"))
    session = compactor(session)
    assert session[3].output == "x" * 200 + ELLIPSIS
    assert compactor.visited == {1, 2, 3}

    session.add(*tool_turn("c2", LONG))
    again = compactor(session)
    assert again.to_json() == session.to_json()


def test_input_session_is_not_mutated():
    """Test that compaction returns a new session."""
    session = Session([
        ToolResultMessage(id="c1", output=LONG),
        AssistantMessage(content="a"),
        AssistantMessage(content="b"),
    ])
    original = session[0]

    compacted = HistoryCompactor()(session)

    assert session[0] is original
    assert session[0].output == LONG
    assert compacted[0].output != LONG


def test_custom_thresholds():
    """Test non-default N and L."""
    compactor = create_compactor(min_assistant_turns=1, max_length=10)
    session = Session([
        ThinkingMessage(content="abcdefghijklmnop"),
        AssistantMessage(content="a"),
    ])

    compacted = compactor(session)

    assert compacted[0].content == "abcdefghij" + ELLIPSIS


def test_reset_forgets_visited_positions():
    """Test that reset clears the compactor state."""
    compactor = HistoryCompactor()
    compactor(Session([
        ThinkingMessage(content="t"),
        AssistantMessage(content="a"),
        AssistantMessage(content="b"),
    ]))
    assert compactor.visited

    compactor.reset()
    assert compactor.visited == set()


def test_visited_positions_are_not_rescanned():
    """Test that a finalized position is skipped even if its content changes."""
    compactor = HistoryCompactor()
    session = Session([
        ToolResultMessage(id="c1", output="short"),
        AssistantMessage(content="a"),
        AssistantMessage(content="b"),
    ])
    compactor(session)

    session.replace(0, ToolResultMessage(id="c1", output=LONG))
    compacted = compactor(session)

    assert compacted[0].output == LONG


def test_shortened_tool_call_is_not_wrapped_again():
    """Test that a fresh compactor leaves an already shortened tool call alone."""
    session = Session([
        ToolCallMessage(id="c1", name="search", input={"query": LONG}),
        AssistantMessage(content="a"),
        AssistantMessage(content="b"),
    ])
    once = HistoryCompactor()(session)

    twice = HistoryCompactor()(once)

    assert twice[0] == once[0]
    assert set(twice[0].arguments) == {TRUNCATED_INPUT_KEY}
