"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PollConfig:
    """Polling loop settings."""

    interval_seconds: float
    origin: str


@dataclass(frozen=True)
class MarketplaceConfig:
    """Where search pages live on the marketplace."""

    base_url: str
    category: str
