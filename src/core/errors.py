"""Error taxonomy shared by the core and adapters."""

from __future__ import annotations


class CarscopeError(Exception):
    """Base class for all carscope errors."""


class TransportError(CarscopeError):
    """Network or HTTP failure while talking to a remote service."""


class ParseError(CarscopeError):
    """The expected data island is missing or malformed."""


class EnrichmentError(CarscopeError):
    """Distance lookup failed."""


class ConfigError(CarscopeError):
    """Malformed search filter or tracking request."""
