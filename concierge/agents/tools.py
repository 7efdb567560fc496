"""
Tools exposed to the concierge agent.

``search_events`` lets the agent query Ticketmaster. Its parameter schema is
kept as JSON text, as it is pasted into agent configurations, and is parsed
once at import so a typo fails at startup instead of being silently rejected
by the agent service.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from concierge.agents.arguments import get_optional_string
from concierge.agents.registry import ToolHandler, ToolRegistry
from concierge.models import EventSearchResult, SearchFilters, ToolDefinition
from concierge.models.events import DEFAULT_PAGE_SIZE
from concierge.services.ticketmaster import TicketmasterClient, get_ticketmaster_client

logger = logging.getLogger(__name__)


SEARCH_EVENTS_DESCRIPTION = (
    "Search Ticketmaster for concerts and other live events. "
    "Filter by keyword (artist, band or event name), city, state code, country code "
    "and classification. IMPORTANT: always pass countryCode for cities outside the "
    "United States (for example 'DE' for Munich or 'GB' for London); without it "
    "searches are matched against US locations."
)

SEARCH_EVENTS_PARAMETERS_JSON = """
{
    "type": "object",
    "properties": {
        "keyword": {
            "type": "string",
            "description": "Artist, band or event name to search for"
        },
        "city": {
            "type": "string",
            "description": "City where the event takes place, e.g. 'Seattle' or 'Munich'"
        },
        "stateCode": {
            "type": "string",
            "description": "US state code, e.g. 'WA'. Only meaningful for US cities"
        },
        "countryCode": {
            "type": "string",
            "description": "ISO 3166-1 alpha-2 country code, e.g. 'US', 'DE', 'GB'. Required for non-US cities"
        },
        "classificationName": {
            "type": "string",
            "description": "Segment, genre or sub-genre, e.g. 'Music', 'Rock', 'Jazz'"
        }
    },
    "required": []
}
"""

SEARCH_EVENTS_TOOL = ToolDefinition.from_json(
    name="search_events",
    description=SEARCH_EVENTS_DESCRIPTION,
    parameters_json=SEARCH_EVENTS_PARAMETERS_JSON,
)


def filters_from_arguments(
    arguments: Mapping[str, Any], page_size: int = DEFAULT_PAGE_SIZE
) -> SearchFilters:
    """Build SearchFilters from ``search_events`` call arguments."""
    return SearchFilters(
        keyword=get_optional_string(arguments, "keyword"),
        city=get_optional_string(arguments, "city"),
        state_code=get_optional_string(arguments, "stateCode"),
        country_code=get_optional_string(arguments, "countryCode"),
        classification=get_optional_string(arguments, "classificationName"),
        page_size=page_size,
    )


def make_search_events_handler(
    client: TicketmasterClient, page_size: int = DEFAULT_PAGE_SIZE
) -> Callable[[Mapping[str, Any]], Awaitable[EventSearchResult]]:
    """Bind the ``search_events`` tool to a Ticketmaster client."""

    async def search_events(arguments: Mapping[str, Any]) -> EventSearchResult:
        filters = filters_from_arguments(arguments, page_size)
        logger.info(
            "search_events | keyword=%s city=%s state=%s country=%s classification=%s",
            filters.keyword,
            filters.city,
            filters.state_code,
            filters.country_code,
            filters.classification,
        )
        return await client.search(filters)

    return search_events


def register_search_events_tool(
    registry: ToolRegistry,
    client: TicketmasterClient | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    """Register ``search_events`` with a registry."""
    handler = make_search_events_handler(client or get_ticketmaster_client(), page_size)
    registry.register(ToolHandler(definition=SEARCH_EVENTS_TOOL, handler_fn=handler))
