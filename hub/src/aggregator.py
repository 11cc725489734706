"""
Parallel aggregator: concurrent fan-out to every configured provider.

Runs one asyncio task per adapter, each under its own timeout, and joins them
with asyncio.gather(return_exceptions=True) so every branch settles
independently. A provider that fails or times out is reported as failed with
an all-zero summary tagged with its identity; it never disappears from the
output and never affects its siblings. The output follows the adapter order
(configuration order), not completion order. No retries, no caching.

CHANGELOG:
- 2026-10-14: Per-provider timeout via asyncio.wait_for (STORY-107)
- 2026-10-13: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from hub.src.errors import AggregateFailure, ProviderError
from hub.src.models import (
    AggregateSummary,
    FetchStatus,
    ProviderStatus,
    UnifiedProviderSummary,
)
from hub.src.providers.base import ProviderAdapter
from hub.src.summary import build_summary

logger = logging.getLogger(__name__)


async def _fetch_one(adapter: ProviderAdapter) -> UnifiedProviderSummary:
    """Run one provider pipeline under the provider's own timeout."""
    return await asyncio.wait_for(
        adapter.fetch_summary(),
        timeout=adapter.config.timeout_s,
    )


def _failure_reason(exc: BaseException, adapter: ProviderAdapter) -> str:
    if isinstance(exc, TimeoutError):
        return f"timed out after {adapter.config.timeout_s:g}s"
    if isinstance(exc, ProviderError):
        return str(exc.cause)
    return f"{type(exc).__name__}: {exc}"


async def fetch_statuses(adapters: Sequence[ProviderAdapter]) -> list[ProviderStatus]:
    """Fetch every provider concurrently and settle each branch independently.

    Args:
        adapters: Configured adapters in output order.

    Returns:
        list[ProviderStatus]: Exactly one status per adapter, same order.

    Raises:
        AggregateFailure: If no adapters are configured.
    """
    if not adapters:
        raise AggregateFailure("No providers configured; cannot aggregate")

    results = await asyncio.gather(
        *(_fetch_one(adapter) for adapter in adapters),
        return_exceptions=True,
    )

    statuses: list[ProviderStatus] = []
    for adapter, result in zip(adapters, results, strict=True):
        provider = adapter.provider
        if isinstance(result, UnifiedProviderSummary):
            statuses.append(
                ProviderStatus(provider=provider, status=FetchStatus.OK, summary=result)
            )
            continue

        if isinstance(result, asyncio.CancelledError):
            raise result
        reason = _failure_reason(result, adapter)
        logger.warning(
            "Provider %s unavailable, substituting zeroed summary: %s",
            provider.label,
            reason,
            exc_info=None if isinstance(result, (ProviderError, TimeoutError)) else result,
        )
        statuses.append(
            ProviderStatus(
                provider=provider,
                status=FetchStatus.FAILED,
                summary=UnifiedProviderSummary.empty(provider),
                error=reason,
            )
        )

    logger.info(
        "Aggregated %d providers (%d failed)",
        len(statuses),
        sum(1 for status in statuses if not status.ok),
    )
    return statuses


async def aggregate(adapters: Sequence[ProviderAdapter]) -> AggregateSummary:
    """Fan out to all providers and reduce the results into an AggregateSummary."""
    return build_summary(await fetch_statuses(adapters))
