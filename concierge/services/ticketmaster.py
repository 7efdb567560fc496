"""
Ticketmaster Discovery API client for event search.

Builds the ``events.json`` query from optional filters and normalizes the
nested response into an EventSearchResult.

API Documentation: https://developer.ticketmaster.com/products-and-docs/apis/discovery-api/v2/
"""

import json
import logging
import time
from decimal import Decimal
from urllib.parse import quote, urlencode

import httpx

from concierge.config import Settings, get_settings
from concierge.exceptions import ApiError, TransportError
from concierge.models import EventSearchResult, SearchFilters

logger = logging.getLogger(__name__)

EVENTS_PATH = "events.json"

REDACTED = "REDACTED"


def build_query(filters: SearchFilters, api_key: str) -> str:
    """
    Build the percent-encoded query string for an event search.

    ``apikey`` and ``size`` are always sent. Optional filters are only sent
    when present, since the API treats an empty value differently from a
    missing one.

    Args:
        filters: Search filters (state/country defaulting already applied)
        api_key: Discovery API key

    Returns:
        Query string without the leading ``?``
    """
    params: list[tuple[str, str]] = [
        ("apikey", api_key),
        ("size", str(filters.page_size)),
    ]

    optional = [
        ("keyword", filters.keyword),
        ("city", filters.city),
        ("stateCode", filters.state_code),
        ("countryCode", filters.country_code),
        ("classificationName", filters.classification),
    ]
    params.extend((name, value) for name, value in optional if value)

    return urlencode(params, quote_via=quote, safe="")


class TicketmasterClient:
    """Async client for the Discovery API.

    One ``httpx.AsyncClient`` is shared by all searches; close it with
    ``close()`` or use the client as an async context manager.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.ticketmaster_api_key
        self.base_url = base_url or settings.ticketmaster_base_url
        self.timeout = timeout or settings.http_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "TicketmasterClient":
        return cls(
            api_key=settings.ticketmaster_api_key,
            base_url=settings.ticketmaster_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TicketmasterClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def search(self, filters: SearchFilters) -> EventSearchResult:
        """
        Search for events.

        Args:
            filters: Optional keyword/location/classification filters

        Returns:
            EventSearchResult, with an empty event list when nothing matched

        Raises:
            ApiError: on a non-success status, or with ``reason="parse"`` when
                the body cannot be decoded
            TransportError: when the API cannot be reached or times out
        """
        request_uri = f"{EVENTS_PATH}?{build_query(filters, self.api_key)}"
        redacted_uri = f"{EVENTS_PATH}?{build_query(filters, REDACTED)}"

        logger.debug("[Ticketmaster] Outbound Query | %s", redacted_uri)
        start_time = time.perf_counter()

        try:
            response = await self._get_client().get(request_uri)
        except httpx.TransportError as e:
            elapsed = time.perf_counter() - start_time
            logger.warning(
                "[Ticketmaster] Transport error | error=%s duration=%.2fs", e, elapsed
            )
            raise TransportError(f"Could not reach the event API: {e}") from e

        if not response.is_success:
            logger.warning(
                "[Ticketmaster] Request failed | status=%d uri=%s",
                response.status_code,
                redacted_uri,
            )
            raise ApiError(
                status=response.status_code,
                request_uri=redacted_uri,
                raw_body=response.text,
            )

        result = self._parse_response(response.text, redacted_uri)

        elapsed = time.perf_counter() - start_time
        logger.debug(
            "[Ticketmaster] Complete | events=%d total=%d duration=%.2fs",
            len(result.events),
            result.page.total_elements,
            elapsed,
        )
        return result

    def _parse_response(self, body: str, request_uri: str) -> EventSearchResult:
        """Decode a success body; prices stay exact via ``parse_float=Decimal``."""
        try:
            data = json.loads(body, parse_float=Decimal)
            return EventSearchResult.from_wire(data)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.warning("[Ticketmaster] Unparseable response | error=%s", e)
            raise ApiError(status=0, request_uri=request_uri, raw_body=body, reason="parse") from e


# Singleton instance
_client: TicketmasterClient | None = None


def get_ticketmaster_client() -> TicketmasterClient:
    """Get the singleton Ticketmaster client."""
    global _client
    if _client is None:
        _client = TicketmasterClient()
    return _client
