"""Data models for Concert Concierge."""

from .events import (
    EventSearchResult,
    EventSummary,
    PageInfo,
    PriceRange,
    SearchFilters,
    VenueSummary,
)
from .runs import AssistantReply, RunState, RunStatus
from .tools import ToolCallRequest, ToolCallResult, ToolDefinition

__all__ = [
    "AssistantReply",
    "EventSearchResult",
    "EventSummary",
    "PageInfo",
    "PriceRange",
    "RunState",
    "RunStatus",
    "SearchFilters",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "VenueSummary",
]
