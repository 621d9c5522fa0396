"""
agentloop - a turn-based agent loop runtime.

Drives a conversation between a model and caller-supplied tools until the
model answers without requesting any more tool calls.
"""

__version__ = "0.1.0"

from .errors import (
    AgentLoopError,
    DecodingError,
    DuplicateToolError,
    InvocationError,
    IterationLimitExceeded,
    LoopFailure,
)
from .messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)
from .tools import Tool, ToolDefinition, ToolInputSchema, ToolParameter, ToolRegistry, execute_tool_calls
from .agent import (
    AgentLoop,
    CompactionConfig,
    HistoryCompactor,
    LoopConfig,
    LoopState,
    Session,
    create_compactor,
    create_subagent_tool,
    run_agent_loop,
)

__all__ = [
    "AgentLoopError",
    "DecodingError",
    "DuplicateToolError",
    "InvocationError",
    "IterationLimitExceeded",
    "LoopFailure",
    "AssistantMessage",
    "Message",
    "SystemMessage",
    "ThinkingMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "UserMessage",
    "Tool",
    "ToolDefinition",
    "ToolInputSchema",
    "ToolParameter",
    "ToolRegistry",
    "execute_tool_calls",
    "AgentLoop",
    "CompactionConfig",
    "HistoryCompactor",
    "LoopConfig",
    "LoopState",
    "Session",
    "create_compactor",
    "create_subagent_tool",
    "run_agent_loop",
]
