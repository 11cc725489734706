"""
Exception taxonomy for the aggregation hub.

Only AggregateFailure is meant to reach callers of ``SolarHub.aggregate()``.
ProviderError is recovered by the parallel aggregator (the provider is
reported as failed with a zeroed summary) and MalformedSnapshotError is
recovered inside the adapters (the record is dropped).

CHANGELOG:
- 2026-10-14: Add ProviderNotConfiguredError for reconcile/resync lookups (STORY-108)
- 2026-10-12: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations


class ProviderError(Exception):
    """A provider fetch failed (network, timeout, non-2xx, malformed payload).

    Attributes:
        provider: Provider identity tag (e.g. ``"hopecloud"``).
        cause: Human-readable cause, or the original exception.
    """

    def __init__(self, provider: str, cause: object) -> None:
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider}: {cause}")


class MalformedSnapshotError(ValueError):
    """A raw KPI record has an unparseable timestamp or an invalid shape."""


class AggregateFailure(RuntimeError):
    """Aggregation cannot even produce zeroed fallbacks (no providers configured)."""


class ProviderNotConfiguredError(LookupError):
    """A request targeted a provider that has no adapter configured."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Provider '{provider}' is not configured")
