"""
Tests for the message model.
"""

import json

import pytest
from pydantic import ValidationError

from agentloop.errors import DecodingError
from agentloop.messages import (
    MESSAGE_TYPES,
    AssistantMessage,
    SystemMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
    content_of,
    message_from_dict,
    message_from_json,
    message_to_dict,
    message_to_json,
)


def sample_messages():
    return [
        SystemMessage(content="You are a helpful assistant."),
        UserMessage(content="What's the weather in Tokyo?"),
        AssistantMessage(content="Let me check that for you."),
        ThinkingMessage(content="I should call the weather tool."),
        ToolCallMessage(id="call_1", name="get_weather", input={"location": "Tokyo"}),
        ToolResultMessage(id="call_1", output="Sunny, 22°C"),
    ]


def test_sample_covers_every_kind():
    """Test that the sample list has one message of each kind."""
    assert {type(m) for m in sample_messages()} == set(MESSAGE_TYPES)


def test_role_messages_serialize_with_role():
    """Test role-based discriminators."""
    assert message_to_dict(SystemMessage(content="sys")) == {"role": "system", "content": "sys"}
    assert message_to_dict(UserMessage(content="hi")) == {"role": "user", "content": "hi"}
    assert message_to_dict(AssistantMessage(content="yo")) == {"role": "assistant", "content": "yo"}


def test_block_messages_serialize_with_type():
    """Test type-based discriminators."""
    assert message_to_dict(ThinkingMessage(content="hmm")) == {"type": "thinking", "content": "hmm"}
    assert message_to_dict(ToolResultMessage(id="c1", output="ok")) == {
        "type": "tool_result",
        "id": "c1",
        "output": "ok",
    }


def test_tool_call_input_serializes_as_object():
    """Test that tool call input is nested JSON, not a string."""
    msg = ToolCallMessage(id="c1", name="add", input='{"a": 1, "b": 2}')
    data = message_to_dict(msg)

    assert data == {"type": "tool_call", "id": "c1", "name": "add", "input": {"a": 1, "b": 2}}


def test_tool_call_input_forms_are_equivalent():
    """Test that dict, str and bytes input produce the same message."""
    from_dict = ToolCallMessage(id="c1", name="add", input={"a": 1})
    from_str = ToolCallMessage(id="c1", name="add", input='{ "a" : 1 }')
    from_bytes = ToolCallMessage(id="c1", name="add", input=b'{"a":1}')

    assert from_dict == from_str == from_bytes
    assert from_dict.input == '{"a":1}'
    assert from_dict.arguments == {"a": 1}


def test_tool_call_empty_input():
    """Test that missing or blank input becomes an empty object."""
    assert ToolCallMessage(id="c1", name="ping").input == "{}"
    assert ToolCallMessage(id="c1", name="ping", input="").arguments == {}


def test_tool_call_rejects_non_object_input():
    """Test that tool call input must be a JSON object."""
    with pytest.raises(ValidationError):
        ToolCallMessage(id="c1", name="add", input="[1, 2]")
    with pytest.raises(ValidationError):
        ToolCallMessage(id="c1", name="add", input="{not json")


def test_messages_are_immutable():
    """Test that messages cannot be edited in place."""
    msg = UserMessage(content="hello")
    with pytest.raises(ValidationError):
        msg.content = "changed"  # type: ignore[misc]


@pytest.mark.parametrize("message", sample_messages(), ids=lambda m: type(m).__name__)
def test_message_round_trip(message):
    """Test decode(encode(m)) == m for every kind."""
    assert message_from_dict(message_to_dict(message)) == message
    assert message_from_json(message_to_json(message)) == message


def test_unknown_discriminator_names_role_and_type():
    """Test that unknown discriminators are reported."""
    with pytest.raises(DecodingError) as exc_info:
        message_from_dict({"role": "narrator", "type": "aside", "content": "x"})

    assert "narrator" in str(exc_info.value)
    assert "aside" in str(exc_info.value)


def test_missing_discriminator():
    """Test a record with neither role nor type."""
    with pytest.raises(DecodingError):
        message_from_dict({"content": "x"})


def test_role_is_checked_before_type():
    """Test that a valid role wins over a stray type field."""
    msg = message_from_dict({"role": "user", "type": "thinking", "content": "x"})
    assert isinstance(msg, UserMessage)


def test_malformed_payload():
    """Test that a known kind with bad fields fails to decode."""
    with pytest.raises(DecodingError):
        message_from_dict({"type": "tool_result", "id": "c1"})
    with pytest.raises(DecodingError):
        message_from_dict({"type": "tool_call", "id": "c1", "name": "x", "input": [1]})
    with pytest.raises(DecodingError):
        message_from_dict({"role": "user", "content": 42})


def test_non_object_record():
    """Test that non-object records fail to decode."""
    with pytest.raises(DecodingError):
        message_from_dict(["role", "user"])
    with pytest.raises(DecodingError):
        message_from_json("not json")


def test_undecodable_bytes():
    """Test that bytes which are not UTF-8 fail to decode."""
    with pytest.raises(DecodingError):
        message_from_json(b'{"role": "user", "content": "\xff"}')


def test_content_of():
    """Test payload extraction for each kind."""
    msgs = sample_messages()
    assert [content_of(m) for m in msgs] == [
        "You are a helpful assistant.",
        "What's the weather in Tokyo?",
        "Let me check that for you.",
        "I should call the weather tool.",
        '{"location":"Tokyo"}',
        "Sunny, 22°C",
    ]


def test_content_of_rejects_other_types():
    """Test that non-messages are rejected by exhaustive matches."""
    with pytest.raises(TypeError):
        content_of("not a message")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        message_to_dict({"role": "user"})  # type: ignore[arg-type]


def test_json_is_utf8_text():
    """Test that non-ASCII text is kept as-is."""
    text = message_to_json(ToolResultMessage(id="c1", output="22°C"))
    assert "22°C" in text
    assert json.loads(text)["output"] == "22°C"
