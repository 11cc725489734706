"""
SolarHub facade: the outbound operations the dashboard layer calls.

- aggregate(): fan out to every provider and reduce into an AggregateSummary.
- reconcile(): fetch one entity's KPI snapshots through its provider adapter
  and collapse them into one canonical record per period.
- series(): reconcile() wrapped in a PeriodSeries that degrades to an
  all-synthesized series when the provider query fails.
- resync(): trigger a provider-side resync; callers re-query afterwards.

The hub is stateless between calls: each invocation performs a fresh
fetch-and-reconcile cycle and the caller owns refresh intervals and caching.

CHANGELOG:
- 2026-10-19: Add series() with service-level degradation (STORY-112)
- 2026-10-15: Add resync (STORY-109)
- 2026-10-14: Initial creation (STORY-108)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, tzinfo

import httpx

from hub.src import aggregator
from hub.src.config import HubSettings
from hub.src.errors import ProviderError, ProviderNotConfiguredError
from hub.src.models import (
    AggregateSummary,
    CanonicalPeriodRecord,
    Granularity,
    PeriodSeries,
    Provider,
    ResyncResult,
)
from hub.src.periods import period_count
from hub.src.providers import ProviderAdapter, build_adapters
from hub.src.reconciler import reconcile

logger = logging.getLogger(__name__)


class SolarHub:
    """Entry point for aggregation, reconciliation and resync.

    Args:
        adapters: Provider adapters in output order.
        tz: Reporting timezone for period keys (default UTC).

    Usage::

        hub = SolarHub.from_settings(HubSettings())
        summary = await hub.aggregate()
        records = await hub.reconcile(
            Provider.HOPECLOUD, "3", Granularity.MONTH, date(2024, 1, 1), date(2024, 3, 1)
        )
    """

    def __init__(self, adapters: Sequence[ProviderAdapter], *, tz: tzinfo = UTC) -> None:
        self._adapters = list(adapters)
        self._tz = tz

    @classmethod
    def from_settings(
        cls,
        settings: HubSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> SolarHub:
        """Build a hub with one adapter per enabled provider, in PROVIDER_ORDER."""
        adapters = build_adapters(settings.provider_configs(), transport=transport)
        return cls(adapters, tz=settings.tz)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @property
    def providers(self) -> list[Provider]:
        return [adapter.provider for adapter in self._adapters]

    def adapter_for(self, provider: Provider) -> ProviderAdapter:
        """Return the adapter for *provider*.

        Raises:
            ProviderNotConfiguredError: If the provider is not enabled.
        """
        for adapter in self._adapters:
            if adapter.provider is provider:
                return adapter
        raise ProviderNotConfiguredError(provider.value)

    async def aggregate(self) -> AggregateSummary:
        """Cross-provider summary; failed providers appear zeroed.

        Raises:
            AggregateFailure: If no providers are configured.
        """
        return await aggregator.aggregate(self._adapters)

    async def reconcile(
        self,
        provider: Provider,
        entity_id: str,
        granularity: Granularity,
        start: date,
        end: date,
    ) -> list[CanonicalPeriodRecord]:
        """Canonical per-period series for one entity.

        Raises:
            ProviderNotConfiguredError: If the provider is not enabled.
            ProviderError: If the KPI query fails.
        """
        adapter = self.adapter_for(provider)
        if period_count(start, end, granularity) == 0:
            return []
        snapshots = await adapter.fetch(entity_id, granularity, start, end)
        logger.debug(
            "Reconcile query: provider=%s entity_id=%s granularity=%s snapshots=%d",
            provider.value,
            entity_id,
            granularity.value,
            len(snapshots),
        )
        return reconcile(snapshots, granularity, start, end, tz=self._tz)

    async def series(
        self,
        provider: Provider,
        entity_id: str,
        granularity: Granularity,
        start: date,
        end: date,
    ) -> PeriodSeries:
        """Like reconcile(), but a failed KPI query degrades instead of raising.

        On ProviderError every period is synthesized and ``degraded`` is set,
        so charts still render a gap-free axis.

        Raises:
            ProviderNotConfiguredError: If the provider is not enabled.
        """
        degraded = False
        try:
            records = await self.reconcile(provider, entity_id, granularity, start, end)
        except ProviderError as exc:
            logger.warning(
                "Period query failed, serving synthesized series: provider=%s entity_id=%s: %s",
                provider.value,
                entity_id,
                exc.cause,
            )
            records = reconcile([], granularity, start, end, tz=self._tz)
            degraded = True
        return PeriodSeries(
            provider=provider,
            entity_id=entity_id,
            granularity=granularity,
            degraded=degraded,
            records=records,
        )

    async def resync(
        self,
        provider: Provider,
        granularity: Granularity,
        entity_ids: Sequence[str],
    ) -> ResyncResult:
        """Trigger a provider-side resync of period KPIs.

        Raises:
            ProviderNotConfiguredError: If the provider is not enabled.
            ProviderError: If the resync call fails.
        """
        return await self.adapter_for(provider).trigger_resync(granularity, entity_ids)
