"""
Exceptions raised by the agent loop runtime.

Only loop failures and decoding failures are raised to callers. Tool-level
problems (unknown tools, handler exceptions) are folded into the session as
``ToolResultMessage`` text so the model can react to them.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .agent.session import Session


class AgentLoopError(Exception):
    """Base class for all agentloop errors."""


class LoopFailure(AgentLoopError):
    """The loop stopped without reaching a final answer.

    ``session`` holds every message appended before the failure.
    """

    def __init__(self, message: str, session: "Session | None" = None):
        super().__init__(message)
        self.session = session


class InvocationError(LoopFailure):
    """The model invocation raised or timed out."""

    def __init__(
        self,
        message: str,
        session: "Session | None" = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, session)
        self.cause = cause


class IterationLimitExceeded(LoopFailure):
    """Tool calls were still pending when the iteration budget ran out."""

    def __init__(self, limit: int, session: "Session | None" = None):
        super().__init__(f"iteration limit exceeded ({limit})", session)
        self.limit = limit


class DecodingError(AgentLoopError, ValueError):
    """A serialized message or session could not be decoded."""


class DuplicateToolError(AgentLoopError, ValueError):
    """A tool name was registered twice."""

    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' is already registered")
        self.name = name
