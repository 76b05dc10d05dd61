"""Errors raised by route finding and its providers."""


class RouteFinderError(Exception):
    """Base class for all route finder errors."""


class AddressNotFound(RouteFinderError):
    """An endpoint address could not be resolved to coordinates."""

    def __init__(self, address: str, reason: str | None = None):
        self.address = address
        self.reason = reason
        message = f"Address not found: {address}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class NoRoutesFound(RouteFinderError):
    """Neither the default route nor any strategy produced a route."""


class ProviderTransientError(RouteFinderError):
    """A single provider request failed. Recoverable at the variant level."""


class NoRoute(ProviderTransientError):
    """The routing provider found no path satisfying the request."""


class ProviderError(ProviderTransientError):
    """Transport, quota or payload failure from a provider."""
