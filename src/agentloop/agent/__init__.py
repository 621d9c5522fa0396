"""
Agent module - the loop runtime.

Includes:
- AgentLoop: Invoke / dispatch state machine
- Session: Ordered conversation log
- HistoryCompactor: Shrinks old tool traffic as the session grows
- create_subagent_tool: Tools that run nested agents
"""

from .session import Session
from .compaction import CompactionConfig, Compactor, HistoryCompactor, create_compactor
from .core import AgentLoop, LoopConfig, LoopState, run_agent_loop
from .subagent import create_subagent_tool

__all__ = [
    "AgentLoop",
    "LoopConfig",
    "LoopState",
    "run_agent_loop",
    "Session",
    "CompactionConfig",
    "Compactor",
    "HistoryCompactor",
    "create_compactor",
    "create_subagent_tool",
]
