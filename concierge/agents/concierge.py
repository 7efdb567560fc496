"""
The Concert Concierge agent definition.

The agent itself runs on the agent service; this module holds its name,
instructions and the get-or-create step performed at startup.
"""

import logging
from datetime import datetime

from concierge.agents.registry import ToolRegistry
from concierge.config import Settings
from concierge.services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

AGENT_NAME = "Concert Concierge"

CONCIERGE_INSTRUCTIONS_TEMPLATE = """You are a helpful concert concierge assistant.
You help users find information about concerts, artists and venues, and help them
plan their concert experiences.

## Finding Events
- Use the `search_events` tool to look up real events. NEVER invent events, dates,
  venues or prices.
- Always pass `countryCode` for cities outside the United States (e.g. 'DE' for
  Munich, 'GB' for London). Only pass `stateCode` for US cities.
- If a search returns no events, say so and suggest broadening the search
  (another city, a wider genre, no keyword).

## Tool Errors
If `search_events` returns an error message, relay it to the user in plain words.
Make clear whether the problem is the API key or a temporary outage.

## Presenting Results
- List events with name, date, time, venue and city, and link to the event page.
- Show price ranges exactly as returned, with their currency.
- Use the code interpreter when the user asks for a chart, table or file.
"""


def get_concierge_instructions() -> str:
    """Agent instructions with the current date."""
    today = datetime.now().strftime("%A, %B %d, %Y")
    return f"""Today's date is {today}.

{CONCIERGE_INSTRUCTIONS_TEMPLATE}"""


async def ensure_agent(
    orchestrator: Orchestrator,
    settings: Settings,
    registry: ToolRegistry,
    agent_id: str | None = None,
) -> str:
    """
    Reuse the configured agent or create a new one with the registry's tools.

    Args:
        orchestrator: Agent service
        settings: Supplies the default agent id and the model for new agents
        registry: Tools to declare on a new agent
        agent_id: Overrides ``settings.agent_id``

    Returns:
        The agent id
    """
    return await orchestrator.get_or_create_agent(
        agent_id or settings.agent_id or None,
        model=settings.model_deployment_name,
        name=AGENT_NAME,
        instructions=get_concierge_instructions(),
        tools=registry.definitions(),
    )
