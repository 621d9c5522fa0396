"""
Sub-agent tools: a tool whose handler runs its own agent loop.
"""

import dataclasses
import json
from typing import TYPE_CHECKING, Any, Sequence

import structlog

from ..tools.base import Tool, ToolDefinition
from .compaction import HistoryCompactor
from .core import AgentLoop, LoopConfig
from .session import Session

if TYPE_CHECKING:
    from ..llm.base import ModelInvoker

logger = structlog.get_logger()

NO_RESPONSE = "No response produced."


def _fresh_config(config: LoopConfig | None) -> LoopConfig | None:
    """Give each nested run its own compactor; compactor state is per session."""
    if config is not None and isinstance(config.compactor, HistoryCompactor):
        return dataclasses.replace(config, compactor=HistoryCompactor(config.compactor.config))
    return config


def create_subagent_tool(
    definition: ToolDefinition,
    invoker: "ModelInvoker",
    system_prompt: str,
    *,
    prompt_template: str = "{input}",
    input_field: str | None = None,
    tools: Sequence[Tool] = (),
    config: LoopConfig | None = None,
) -> Tool:
    """Create a tool that delegates each call to a nested agent.

    Every call starts a fresh session primed with *system_prompt* and a user
    prompt built from *prompt_template*. With *input_field* set, ``{input}``
    is that field of the call input; otherwise it is the whole input as JSON.
    The tool returns the nested agent's last assistant message.

    A failing nested loop raises, which the parent reports as a tool error.
    """

    async def handler(arguments: dict[str, Any]) -> str:
        if input_field is not None:
            if input_field not in arguments:
                raise ValueError(f"missing required field '{input_field}'")
            value = arguments[input_field]
            text = value if isinstance(value, str) else json.dumps(value)
        else:
            text = json.dumps(arguments, ensure_ascii=False)

        session = Session.with_prompt(system_prompt, prompt_template.format(input=text))
        loop = AgentLoop(invoker, tools, _fresh_config(config))
        logger.info("Starting sub-agent", tool=definition.name)
        result = await loop.run(session)
        logger.info("Sub-agent finished", tool=definition.name, iterations=loop.iterations)

        return result.last_assistant_text() or NO_RESPONSE

    return Tool(definition=definition, handler=handler)
