"""
Tool definitions, the tool registry and concurrent dispatch.
"""

from .base import Tool, ToolDefinition, ToolHandler, ToolInputSchema, ToolParameter
from .registry import ToolRegistry, execute_tool_calls

__all__ = [
    "Tool",
    "ToolDefinition",
    "ToolHandler",
    "ToolInputSchema",
    "ToolParameter",
    "ToolRegistry",
    "execute_tool_calls",
]
