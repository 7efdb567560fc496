"""
Registry of tools the application can execute for the agent.

Each tool pairs the definition sent to the agent service with the async
handler that runs when a run asks for it.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from concierge.exceptions import UnknownToolError
from concierge.models import ToolDefinition

logger = logging.getLogger(__name__)


@dataclass
class ToolHandler:
    """A declared tool and the coroutine that executes it."""

    definition: ToolDefinition
    """What the agent service is told about the tool."""

    handler_fn: Callable[[Mapping[str, Any]], Awaitable[Any]]
    """Async function taking the decoded arguments. Returns a pydantic model or JSON-able value."""

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass
class ToolRegistry:
    """
    Registry of executable tools.

    Usage:
        registry = ToolRegistry()
        registry.register(ToolHandler(definition=SEARCH_EVENTS_TOOL, handler_fn=handler))

        handler = registry.resolve("search_events")
    """

    _tools: dict[str, ToolHandler] = field(default_factory=dict)

    def register(self, tool: ToolHandler) -> None:
        """
        Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        logger.info("Registered tool: %s", tool.name)

    def resolve(self, name: str) -> ToolHandler:
        """
        Get a tool by name.

        Raises:
            UnknownToolError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def definitions(self) -> list[ToolDefinition]:
        """Definitions of all registered tools, in registration order."""
        return [tool.definition for tool in self._tools.values()]
