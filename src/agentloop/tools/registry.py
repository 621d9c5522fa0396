"""
Tool registry and concurrent tool-call dispatch.
"""

import asyncio
import inspect
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Iterable, Mapping, Sequence

import structlog

from ..errors import DuplicateToolError
from ..messages import ToolCallMessage, ToolResultMessage
from .base import Tool, ToolDefinition, ToolHandler

logger = structlog.get_logger()


class ToolRegistry:
    """Registry for managing tools."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool. Names must be unique."""
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        logger.debug("Tool registered", tool_name=tool.name)

    def unregister(self, name: str) -> None:
        """Unregister a tool."""
        if name in self._tools:
            del self._tools[name]
            logger.debug("Tool unregistered", tool_name=name)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        """Get all tool definitions, in registration order."""
        return [tool.definition for tool in self._tools.values()]

    def handlers(self) -> dict[str, ToolHandler]:
        """Name to handler lookup used for dispatch."""
        return {name: tool.handler for name, tool in self._tools.items()}

    async def execute(self, calls: Sequence[ToolCallMessage]) -> list[ToolResultMessage]:
        """Run a batch of tool calls against the registered handlers."""
        return await execute_tool_calls(calls, self.handlers())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def _call_handler(
    handler: ToolHandler,
    arguments: dict[str, Any],
    executor: Executor,
) -> Any:
    if inspect.iscoroutinefunction(handler):
        return await handler(arguments)
    # Plain functions get a thread of their own so blocking handlers overlap.
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(executor, handler, arguments)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _run_tool_call(
    call: ToolCallMessage,
    handlers: Mapping[str, ToolHandler],
    executor: Executor,
) -> ToolResultMessage:
    handler = handlers.get(call.name)
    if handler is None:
        logger.warning("Unknown tool requested", tool=call.name, call_id=call.id)
        return ToolResultMessage(id=call.id, output=f'Error: unknown tool "{call.name}"')

    try:
        logger.info("Executing tool", tool=call.name, call_id=call.id)
        result = await _call_handler(handler, call.arguments, executor)
    except Exception as e:
        logger.warning("Tool execution error", tool=call.name, call_id=call.id, error=str(e))
        return ToolResultMessage(id=call.id, output=f"Error: {_error_text(e)}")

    output = result if isinstance(result, str) else str(result)
    logger.debug("Tool executed", tool=call.name, call_id=call.id, output_length=len(output))
    return ToolResultMessage(id=call.id, output=output)


async def execute_tool_calls(
    calls: Sequence[ToolCallMessage],
    handlers: Mapping[str, ToolHandler],
) -> list[ToolResultMessage]:
    """Run every call concurrently and return one result per call.

    ``result[i]`` always answers ``calls[i]``, whatever order the handlers
    finish in. The function returns only after every handler has finished.
    Unknown tools and handler exceptions become ``"Error: ..."`` results and
    never abort the batch.

    Each batch gets its own thread pool with one worker per call, so a batch
    takes as long as its slowest handler however many calls it holds.
    """
    if not calls:
        return []

    logger.info("Dispatching tool calls", count=len(calls), tools=[c.name for c in calls])
    executor = ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="agentloop-tool")
    try:
        results = await asyncio.gather(
            *(_run_tool_call(call, handlers, executor) for call in calls)
        )
    finally:
        # Threads of cancelled calls finish on their own; do not block the loop on them.
        executor.shutdown(wait=False)
    return list(results)
