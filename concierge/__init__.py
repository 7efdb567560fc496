"""Concert Concierge: a console chat agent that searches Ticketmaster events."""

__version__ = "0.1.0"
