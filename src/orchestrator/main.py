"""Orchestrator - interactive command-line entry point.

Wires settings, logging, the language-model client and the built-in tools
into an Orchestrator and runs one conversation in the terminal.
"""

import argparse
import asyncio
import sys
from typing import Optional

from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from orchestrator import __version__
from orchestrator.agent import InputReader, Orchestrator
from orchestrator.errors import MissingCredentialError
from orchestrator.llm import LanguageModelClient, create_llm_client
from orchestrator.retry import RetryPolicy
from toolbox import default_tools

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

BANNER = "Chat with VOO (type '{exit}' to quit)\n"


def build_orchestrator(
    settings: Settings,
    client: LanguageModelClient,
    reader: Optional[InputReader] = None
) -> Orchestrator:
    """Create an Orchestrator from settings."""
    return Orchestrator(
        client=client,
        reader=reader,
        retry_policy=RetryPolicy(
            max_attempts=settings.agent.max_retries,
            delay_seconds=settings.agent.retry_delay_seconds
        ),
        exit_command=settings.agent.exit_command,
        max_tool_rounds=settings.agent.max_tool_rounds
    )


async def run_session(
    settings: Settings,
    client: Optional[LanguageModelClient] = None,
    reader: Optional[InputReader] = None
) -> int:
    """
    Run one interactive session.

    Returns:
        Process exit code
    """
    client = client or create_llm_client(
        settings.llm,
        system_prompt=settings.agent.system_prompt
    )

    async with client:
        orchestrator = build_orchestrator(settings, client, reader)

        if settings.agent.enable_builtin_tools:
            for tool in default_tools():
                await orchestrator.register_tool(tool)

        print(BANNER.format(exit=settings.agent.exit_command), flush=True)
        return await orchestrator.run()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voo", description="Chat with a tool-using LLM agent")
    parser.add_argument("--config", help="Path to a YAML settings file")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the VOO command-line agent."""
    args = parse_args(argv)

    settings = Settings.from_yaml(args.config) if args.config else get_settings()
    setup_logging(
        args.log_level or settings.log_level,
        json_output=settings.environment == "production"
    )

    try:
        return asyncio.run(run_session(settings))
    except MissingCredentialError as e:
        logger.error("Missing credential", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nBye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
