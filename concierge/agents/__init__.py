"""Tool bridge between the hosted agent and local handlers."""

from .conversation import Conversation
from .dispatch import ToolDispatcher
from .poller import RunPoller
from .registry import ToolHandler, ToolRegistry
from .tools import SEARCH_EVENTS_TOOL, register_search_events_tool

__all__ = [
    "Conversation",
    "RunPoller",
    "SEARCH_EVENTS_TOOL",
    "ToolDispatcher",
    "ToolHandler",
    "ToolRegistry",
    "register_search_events_tool",
]
