"""Exception hierarchy for Concert Concierge."""

from __future__ import annotations


class ConciergeError(Exception):
    """Base class for all application errors."""


class ConfigurationError(ConciergeError):
    """A required setting is missing or invalid. Fatal at startup."""


class ToolSchemaError(ConfigurationError):
    """A tool parameter schema is not a valid JSON object."""


class ApiError(ConciergeError):
    """The event API returned a non-success status or an unparseable body.

    ``status`` is 0 when the response could not be parsed; ``reason`` is then
    ``"parse"``.
    """

    def __init__(
        self,
        status: int,
        request_uri: str = "",
        raw_body: str = "",
        reason: str | None = None,
    ):
        self.status = status
        self.request_uri = request_uri
        self.raw_body = raw_body
        self.reason = reason
        if reason == "parse":
            message = f"Event API response could not be parsed. URI: {request_uri}"
        else:
            message = (
                f"Event API request failed with status {status}. "
                f"URI: {request_uri}. Response: {raw_body[:500]}"
            )
        super().__init__(message)

    @property
    def is_parse_error(self) -> bool:
        return self.reason == "parse"


class TransportError(ConciergeError):
    """Network-level failure (connect error, timeout) on an outbound call."""


class UnknownToolError(ConciergeError):
    """The orchestrator asked for a function that was never declared."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown function {name}")


class RunFailedError(ConciergeError):
    """A remote run ended in a terminal state other than completed."""

    def __init__(self, state: str, message: str | None = None):
        self.state = state
        self.message = message
        super().__init__(message or f"Run ended with status: {state}")


class RunTimeoutError(RunFailedError):
    """A remote run did not reach a terminal state within the poll bound."""


class RunInProgressError(ConciergeError):
    """A run is already in flight for this conversation."""
