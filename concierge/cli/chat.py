#!/usr/bin/env python3
"""
Interactive console chat with the Concert Concierge agent.

Usage:
    # Chat, creating a new agent on first use
    concierge

    # Reuse an existing agent
    concierge --agent-id asst_abc123

    # Verbose logging, save generated files elsewhere
    concierge --log-level DEBUG --download-dir ./out

Type 'exit' or an empty line to quit.
"""

import argparse
import asyncio
import logging
import sys

import openai
from dotenv import load_dotenv

from concierge.agents import (
    Conversation,
    RunPoller,
    ToolDispatcher,
    ToolRegistry,
    register_search_events_tool,
)
from concierge.agents.concierge import ensure_agent
from concierge.config import Settings, configure_logging, get_settings
from concierge.exceptions import ConciergeError, ConfigurationError, RunFailedError
from concierge.services import AssistantsOrchestrator, TicketmasterClient

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}


def read_user_input(prompt: str = "You: ") -> str:
    """Read one line; EOF and Ctrl-C count as an exit request."""
    try:
        return input(prompt)
    except (EOFError, KeyboardInterrupt):
        print()
        return ""


def is_exit_request(text: str) -> bool:
    return not text.strip() or text.strip().lower() in EXIT_COMMANDS


async def start_conversation(
    orchestrator: AssistantsOrchestrator,
    settings: Settings,
    registry: ToolRegistry,
    agent_id: str | None = None,
) -> Conversation:
    """Get or create the agent and open a conversation thread."""
    resolved_agent_id = await ensure_agent(orchestrator, settings, registry, agent_id)
    if not (agent_id or settings.agent_id):
        print(f"Created agent with ID: {resolved_agent_id}")
        print(f"Save this ID with: AGENT_ID={resolved_agent_id} in your .env")
    else:
        print(f"Using existing agent: {resolved_agent_id}")

    conversation = Conversation(
        orchestrator,
        resolved_agent_id,
        RunPoller.from_settings(orchestrator, settings),
        ToolDispatcher(registry),
    )
    await conversation.start()
    return conversation


async def close_clients(
    ticketmaster: TicketmasterClient, orchestrator: AssistantsOrchestrator
) -> None:
    await ticketmaster.close()
    await orchestrator.close()


async def end_conversation(
    conversation: Conversation,
    ticketmaster: TicketmasterClient,
    orchestrator: AssistantsOrchestrator,
) -> None:
    """Delete the thread, then close both clients."""
    try:
        await conversation.close()
        print("\nConversation thread deleted.")
    except (ConciergeError, openai.APIError) as e:
        logger.warning("Could not delete conversation thread: %s", e)
    finally:
        await close_clients(ticketmaster, orchestrator)


def chat_loop(
    runner: asyncio.Runner,
    conversation: Conversation,
    download_dir: str,
) -> None:
    """Prompt, run a turn, print the reply. Returns when the user quits."""
    while True:
        user_input = read_user_input()
        if is_exit_request(user_input):
            print("Goodbye!")
            return

        try:
            reply = runner.run(conversation.send(user_input))
        except KeyboardInterrupt:
            print("\nTurn interrupted.\n")
            continue
        except RunFailedError as e:
            print(f"\nRun failed with status: {e.state}")
            if e.message:
                print(f"Error: {e.message}\n")
            continue
        except (ConciergeError, openai.APIError) as e:
            print(f"\nError: {e}\n")
            continue

        if reply is None:
            print("\nAssistant: (no response)\n")
            continue

        print(f"\nAssistant: {reply.text}\n")
        if reply.file_ids:
            try:
                paths = runner.run(conversation.download_files(reply, download_dir))
            except (ConciergeError, openai.APIError, OSError) as e:
                print(f"Could not save generated files: {e}\n")
            else:
                for path in paths:
                    print(f"Saved file: {path}")
                print()


def run_chat(
    settings: Settings,
    agent_id: str | None = None,
    download_dir: str | None = None,
) -> int:
    """
    Run the console loop. Returns the process exit code.

    Input is read outside the event loop: Ctrl-C at the prompt ends the chat,
    while Ctrl-C during a turn cancels only that turn.
    """
    print("Concert Concierge - AI Agent")
    print("==============================\n")

    orchestrator = AssistantsOrchestrator(settings=settings)
    ticketmaster = TicketmasterClient.from_settings(settings)

    registry = ToolRegistry()
    register_search_events_tool(registry, ticketmaster, page_size=settings.default_page_size)

    with asyncio.Runner() as runner:
        try:
            conversation = runner.run(
                start_conversation(orchestrator, settings, registry, agent_id)
            )
        except (ConciergeError, openai.APIError) as e:
            print(f"\nError: could not set up the conversation: {e}", file=sys.stderr)
            runner.run(close_clients(ticketmaster, orchestrator))
            return 1
        except KeyboardInterrupt:
            runner.run(close_clients(ticketmaster, orchestrator))
            raise

        print(f"\nStarted conversation thread: {conversation.session_id}")
        print("Chat with the Concert Concierge (type 'exit' to quit)\n")

        try:
            chat_loop(runner, conversation, download_dir or settings.download_dir)
        finally:
            runner.run(end_conversation(conversation, ticketmaster, orchestrator))

    return 0


def main() -> None:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Chat with the Concert Concierge agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--agent-id",
        help="Existing agent to use (default: AGENT_ID, or create a new agent)",
    )
    parser.add_argument(
        "--download-dir",
        help="Where to save files generated by the agent (default: DOWNLOAD_DIR or ./downloads)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: LOG_LEVEL or WARNING)",
    )
    args = parser.parse_args()

    load_dotenv()
    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    configure_logging(settings)

    try:
        settings.require_credentials()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        code = run_chat(settings, agent_id=args.agent_id, download_dir=args.download_dir)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
