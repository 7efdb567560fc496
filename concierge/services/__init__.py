"""
Service clients for Concert Concierge.

- TicketmasterClient: Discovery API event search
- Orchestrator, AssistantsOrchestrator: the hosted agent service (threads,
  runs, tool outputs, generated files)
"""

from .orchestrator import AssistantsOrchestrator, Orchestrator
from .ticketmaster import TicketmasterClient, build_query, get_ticketmaster_client

__all__ = [
    "AssistantsOrchestrator",
    "Orchestrator",
    "TicketmasterClient",
    "build_query",
    "get_ticketmaster_client",
]
