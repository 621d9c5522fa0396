"""
Agent loop controller.

The loop drives one conversation until the model answers without asking for
tools:

1. compact the session (when a compactor is configured)
2. invoke the model with the tool definitions and the session
3. append the returned messages
4. if the turn contains tool calls, run them concurrently, append the
   results and go back to 1; otherwise stop

Every run works on its own copy of the session. On failure the raised
``LoopFailure`` carries the session as it stood, so partial progress is
never lost.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

import structlog

from ..errors import InvocationError, IterationLimitExceeded, LoopFailure
from ..messages import Message, ToolCallMessage, is_message
from ..tools.base import Tool, ToolDefinition
from ..tools.registry import ToolRegistry, execute_tool_calls
from .compaction import Compactor, HistoryCompactor
from .session import Session

if TYPE_CHECKING:
    from ..llm.base import ModelInvoker

logger = structlog.get_logger()

DEFAULT_MAX_ITERATIONS = 30

Observer = Callable[[Message], None]


class LoopState(str, Enum):
    """States of the agent loop."""

    INVOKING = "invoking"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"
    FAILED = "failed"


@dataclass
class LoopConfig:
    """Configuration for an agent loop run.

    Attributes:
        max_iterations: Model invocations allowed per run (at least 1).
        compactor: Applied to the session before every invocation. None
            disables compaction.
        observer: Called once per appended message, in append order. None
            disables it. It runs inline, so a slow observer stalls the loop.
        invocation_timeout: Seconds allowed for one model invocation. A
            timeout fails the run with ``InvocationError``.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    compactor: Compactor | None = None
    observer: Observer | None = None
    invocation_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")


def _turn_tool_calls(messages: Iterable[Message]) -> list[ToolCallMessage]:
    return [m for m in messages if isinstance(m, ToolCallMessage)]


class AgentLoop:
    """Runs the invoke / dispatch cycle for one session at a time.

    Nested loops (a tool that runs its own agent) need their own AgentLoop
    and their own Session.
    """

    def __init__(
        self,
        invoker: "ModelInvoker",
        tools: Sequence[Tool] | ToolRegistry = (),
        config: LoopConfig | None = None,
    ):
        self.invoker = invoker
        self.registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.config = config or LoopConfig()
        self.state = LoopState.INVOKING
        self.iterations = 0
        self.failure: LoopFailure | None = None

    @property
    def definitions(self) -> list[ToolDefinition]:
        return self.registry.get_definitions()

    def _transition(self, state: LoopState) -> None:
        logger.debug("Loop state change", previous=self.state.value, state=state.value)
        self.state = state

    def _fail(self, failure: LoopFailure) -> LoopFailure:
        self._transition(LoopState.FAILED)
        self.failure = failure
        return failure

    def _append(self, session: Session, messages: Sequence[Message]) -> None:
        session.add(*messages)
        if self.config.observer is not None:
            for msg in messages:
                self.config.observer(msg)

    async def _invoke(self, definitions: list[ToolDefinition], session: Session) -> list[Message]:
        call = self.invoker(definitions, session)
        if self.config.invocation_timeout is not None:
            turn = await asyncio.wait_for(call, timeout=self.config.invocation_timeout)
        else:
            turn = await call
        if turn is None:
            raise TypeError("invoker returned None instead of a list of messages")
        turn = list(turn)
        for msg in turn:
            if not is_message(msg):
                raise TypeError(f"invoker returned a non-message item: {type(msg).__name__}")
        return turn

    async def run(self, session: Session) -> Session:
        """Run the loop to completion and return the updated session.

        Raises:
            InvocationError: the model invocation failed.
            IterationLimitExceeded: tool calls were pending after the last
                allowed iteration. They are not executed.
        """
        session = session.copy()
        definitions = self.definitions
        handlers = self.registry.handlers()
        limit = self.config.max_iterations

        self.state = LoopState.INVOKING
        self.iterations = 0
        self.failure = None
        if isinstance(self.config.compactor, HistoryCompactor):
            # Finalized positions belong to the previous run's session.
            self.config.compactor.reset()

        while True:
            self.iterations += 1

            if self.config.compactor is not None:
                session = self.config.compactor(session)

            try:
                new_messages = await self._invoke(definitions, session)
            except Exception as e:
                logger.error(
                    "Model invocation failed",
                    iteration=self.iterations,
                    error=str(e) or type(e).__name__,
                )
                raise self._fail(
                    InvocationError(
                        f"model invocation failed: {str(e) or type(e).__name__}",
                        session=session,
                        cause=e,
                    )
                ) from e

            self._append(session, new_messages)
            tool_calls = _turn_tool_calls(new_messages)
            logger.info(
                "Model turn complete",
                iteration=self.iterations,
                messages=len(new_messages),
                tool_calls=len(tool_calls),
            )

            if not tool_calls:
                self._transition(LoopState.DONE)
                return session

            if self.iterations >= limit:
                logger.warning(
                    "Iteration limit reached with pending tool calls",
                    limit=limit,
                    pending=len(tool_calls),
                )
                raise self._fail(IterationLimitExceeded(limit, session=session))

            self._transition(LoopState.DISPATCHING_TOOLS)
            results = await execute_tool_calls(tool_calls, handlers)
            self._append(session, results)
            self._transition(LoopState.INVOKING)


async def run_agent_loop(
    invoker: "ModelInvoker",
    tools: Sequence[Tool] | ToolRegistry,
    session: Session,
    config: LoopConfig | None = None,
) -> Session:
    """Run an agent loop over *session* and return the updated copy."""
    return await AgentLoop(invoker, tools, config).run(session)
