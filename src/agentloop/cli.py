"""
Command-line interface for agentloop.
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

import structlog

from .agent import AgentLoop, Session
from .config import Settings, get_settings
from .errors import DecodingError, LoopFailure
from .messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ThinkingMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)

logger = structlog.get_logger()

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to render through the standard library logger."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def format_message(message: Message) -> str:
    """One-line rendering of a message for the terminal."""
    match message:
        case SystemMessage():
            return f"[system] {message.content}"
        case UserMessage():
            return f"[user] {message.content}"
        case AssistantMessage():
            return f"[assistant] {message.content}"
        case ThinkingMessage():
            return f"[thinking] {message.content}"
        case ToolCallMessage():
            return f"[tool_call {message.id}] {message.name}({message.input})"
        case ToolResultMessage():
            return f"[tool_result {message.id}] {message.output}"
        case _:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")


def print_message(message: Message) -> None:
    print(format_message(message), flush=True)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="agentloop",
        description="agentloop - run a model/tool loop from the terminal",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the agent loop on a prompt")
    run_parser.add_argument("prompt", help="User prompt")
    run_parser.add_argument("--system", default=DEFAULT_SYSTEM_PROMPT, help="System prompt")
    run_parser.add_argument(
        "--max-iterations", type=positive_int, help="Override the iteration limit"
    )
    run_parser.add_argument("--session", help="Resume from a serialized session file")
    run_parser.add_argument("--output", help="Write the resulting session JSON here")

    subparsers.add_parser("config", help="Show configuration")

    validate_parser = subparsers.add_parser("validate", help="Validate a serialized session")
    validate_parser.add_argument("path", help="Session JSON file")

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        sys.exit(asyncio.run(run_prompt(args, settings)))
    elif args.command == "config":
        show_config(settings)
    elif args.command == "validate":
        sys.exit(validate_session(args.path))
    else:
        parser.print_help()


async def run_prompt(args: argparse.Namespace, settings: Settings) -> int:
    """Run one loop and return the process exit code."""
    from .llm import create_invoker

    config = dataclasses.replace(settings.loop_config(), observer=print_message)
    if args.max_iterations is not None:
        config = dataclasses.replace(config, max_iterations=args.max_iterations)

    if args.session:
        session = Session.from_json(Path(args.session).read_text(encoding="utf-8"))
        session.add(UserMessage(content=args.prompt))
    else:
        session = Session.with_prompt(args.system, args.prompt)

    loop = AgentLoop(create_invoker(settings=settings), config=config)
    exit_code = 0
    try:
        session = await loop.run(session)
    except LoopFailure as e:
        logger.error("Agent loop failed", error=str(e), iterations=loop.iterations)
        if e.session is not None:
            session = e.session
        exit_code = 1

    if args.output:
        Path(args.output).write_text(session.to_json(indent=2), encoding="utf-8")
        logger.info("Session written", path=args.output, messages=len(session))

    return exit_code


def show_config(settings: Settings) -> None:
    """Print the effective settings with secrets masked."""
    for name, value in settings.model_dump().items():
        if name.endswith("api_key") and value:
            value = value[:4] + "..." if len(value) > 8 else "***"
        print(f"{name}: {value}")


def validate_session(path: str) -> int:
    """Decode a session file and report the result."""
    try:
        session = Session.from_json(Path(path).read_bytes())
    except OSError as e:
        print(f"Cannot read session: {e}")
        return 1
    except DecodingError as e:
        print(f"Invalid session: {e}")
        return 1
    print(f"Valid session with {len(session)} messages")
    return 0


if __name__ == "__main__":
    main()
