"""
Tool dispatch: turn a batch of pending tool calls into tool outputs.

Every call gets exactly one output, correlated by ``call_id``. Failures are
reported back to the agent as text so it can explain them to the user; they
never escape the batch.
"""

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from concierge.agents.registry import ToolRegistry
from concierge.exceptions import ApiError, TransportError, UnknownToolError
from concierge.models import ToolCallRequest, ToolCallResult

logger = logging.getLogger(__name__)


def error_envelope(message: str) -> str:
    """Structured error payload understood by the agent."""
    return json.dumps({"error": message}, separators=(",", ":"))


def describe_api_error(error: ApiError) -> str:
    """Format an event API failure so the user can tell a bad key from an outage."""
    status = error.status

    if error.is_parse_error:
        return (
            "Event search failed: the Ticketmaster API returned a response that could "
            "not be read (reason: parse). This is usually temporary; try again."
        )
    if status == 400:
        return (
            "Event search failed: the request was rejected by the Ticketmaster API "
            f"as invalid (HTTP 400). Check the search parameters. Details: {error.raw_body[:300]}"
        )
    if status in (401, 403):
        return (
            f"Event search failed: the Ticketmaster API rejected the credentials (HTTP {status}). "
            "The API key is missing, invalid or not authorized for the Discovery API."
        )
    if status == 404:
        return "Event search failed: the Ticketmaster endpoint was not found (HTTP 404)."
    if status == 429:
        return (
            "Event search failed: the Ticketmaster API rate limit was reached (HTTP 429). "
            "Wait a moment and try again."
        )
    if status >= 500:
        return (
            f"Event search failed: the Ticketmaster service is unavailable (HTTP {status}). "
            "This is usually temporary; try again later."
        )
    return f"Event search failed with HTTP {status}."


def serialize_result(result: Any) -> str:
    """Compact JSON for a handler result."""
    if isinstance(result, BaseModel):
        return result.model_dump_json(exclude_none=True)
    return json.dumps(result, separators=(",", ":"), default=str)


class ToolDispatcher:
    """Executes pending tool calls against a ToolRegistry."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(self, calls: Sequence[ToolCallRequest]) -> list[ToolCallResult]:
        """
        Run every call in the batch concurrently.

        Args:
            calls: Pending calls from one requires-action pause

        Returns:
            One ToolCallResult per call, in input order
        """
        if not calls:
            return []

        start_time = time.perf_counter()
        results = await asyncio.gather(*(self._invoke(call) for call in calls))

        elapsed = time.perf_counter() - start_time
        logger.debug("Dispatched %d tool call(s) | duration=%.2fs", len(results), elapsed)
        return list(results)

    async def _invoke(self, call: ToolCallRequest) -> ToolCallResult:
        """Run one call; any failure becomes that call's output."""
        try:
            tool = self.registry.resolve(call.function_name)
            result = await tool.handler_fn(call.arguments)
            output = serialize_result(result)
        except UnknownToolError as e:
            logger.warning("Run requested unknown function: %s", e.name)
            output = error_envelope(str(e))
        except ApiError as e:
            logger.warning("Tool %s failed: %s", call.function_name, e)
            output = describe_api_error(e)
        except TransportError as e:
            logger.warning("Tool %s failed: %s", call.function_name, e)
            output = f"Event search failed: {e}. This is a network problem; try again."
        except Exception as e:
            logger.error("Tool %s raised unexpectedly: %s", call.function_name, e, exc_info=True)
            output = error_envelope(f"{call.function_name} failed: {e}")

        return ToolCallResult(call_id=call.call_id, output=output)
