"""Event search models: filters in, normalized results out.

The Discovery API nests everything (``_embedded.events[]._embedded.venues[]``,
``dates.start.localDate``...). These models flatten that shape for callers and
can rebuild it with ``to_wire()``.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# State codes only mean something inside this country.
DEFAULT_STATE_COUNTRY = "US"

DEFAULT_PAGE_SIZE = 20


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class SearchFilters(BaseModel):
    """Optional filters for an event search."""

    keyword: str | None = Field(default=None, description="Free-text keyword")
    city: str | None = Field(default=None, description="City name")
    state_code: str | None = Field(default=None, description="State code, e.g. 'CA'")
    country_code: str | None = Field(default=None, description="ISO country code, e.g. 'DE'")
    classification: str | None = Field(
        default=None, description="Segment, genre or sub-genre, e.g. 'Music'"
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, description="Events per page")

    model_config = ConfigDict(frozen=True)

    @field_validator("keyword", "city", "state_code", "country_code", "classification", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="before")
    @classmethod
    def _default_country_for_state(cls, data: Any) -> Any:
        if isinstance(data, dict):
            state = _blank_to_none(data.get("state_code"))
            country = _blank_to_none(data.get("country_code"))
            if state and not country:
                data = {**data, "country_code": DEFAULT_STATE_COUNTRY}
        return data


class VenueSummary(BaseModel):
    """Venue flattened from ``_embedded.venues[]``."""

    name: str = ""
    city: str | None = None
    state_code: str | None = None
    country_code: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> VenueSummary:
        return cls(
            name=data.get("name") or "",
            city=(data.get("city") or {}).get("name"),
            state_code=(data.get("state") or {}).get("stateCode"),
            country_code=(data.get("country") or {}).get("countryCode"),
        )

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.city is not None:
            data["city"] = {"name": self.city}
        if self.state_code is not None:
            data["state"] = {"stateCode": self.state_code}
        if self.country_code is not None:
            data["country"] = {"countryCode": self.country_code}
        return data


class PriceRange(BaseModel):
    """Ticket price range. Amounts are exact decimals."""

    min: Decimal | None = None
    max: Decimal | None = None
    currency: str | None = None

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EventSummary(BaseModel):
    """One event from a search result."""

    id: str
    name: str = ""
    url: str = ""
    start_date: str | None = Field(default=None, description="Local date, YYYY-MM-DD")
    start_time: str | None = Field(default=None, description="Local time, HH:MM:SS")
    venues: tuple[VenueSummary, ...] = ()
    price_ranges: tuple[PriceRange, ...] = ()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> EventSummary:
        start = (data.get("dates") or {}).get("start") or {}
        embedded = data.get("_embedded") or {}
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            url=data.get("url") or "",
            start_date=start.get("localDate"),
            start_time=start.get("localTime"),
            venues=tuple(VenueSummary.from_wire(v) for v in embedded.get("venues") or []),
            price_ranges=tuple(PriceRange.model_validate(p) for p in data.get("priceRanges") or []),
        )

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name, "url": self.url}
        start: dict[str, str] = {}
        if self.start_date is not None:
            start["localDate"] = self.start_date
        if self.start_time is not None:
            start["localTime"] = self.start_time
        if start:
            data["dates"] = {"start": start}
        if self.venues:
            data["_embedded"] = {"venues": [v.to_wire() for v in self.venues]}
        if self.price_ranges:
            data["priceRanges"] = [p.to_wire() for p in self.price_ranges]
        return data


class PageInfo(BaseModel):
    """Pagination block of a search response."""

    size: int = 0
    total_elements: int = Field(default=0, alias="totalElements")
    total_pages: int = Field(default=0, alias="totalPages")
    number: int = 0

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class EventSearchResult(BaseModel):
    """Normalized search response."""

    events: tuple[EventSummary, ...] = ()
    page: PageInfo = Field(default_factory=PageInfo)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> EventSearchResult:
        """Parse a decoded Discovery API response.

        A missing ``_embedded`` block means zero matches. Events without an id
        are skipped.

        Raises:
            ValueError: if the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        events = []
        for item in (data.get("_embedded") or {}).get("events") or []:
            if not isinstance(item, dict) or not item.get("id"):
                logger.warning("Skipping event without id")
                continue
            events.append(EventSummary.from_wire(item))

        return cls(events=tuple(events), page=PageInfo.model_validate(data.get("page") or {}))

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"page": self.page.model_dump(by_alias=True)}
        if self.events:
            data["_embedded"] = {"events": [e.to_wire() for e in self.events]}
        return data
