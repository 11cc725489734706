"""
Summary builder: reduces per-provider summaries into system-wide totals.

Pure reduction with no I/O. Every numeric field of every bucket (stations,
devices, energy, power, alarms) is summed across providers; missing values
count as zero. Failed providers contribute their zeroed summary, so the
totals never depend on which providers happened to fail.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TypeVar

from pydantic import BaseModel

from hub.src.models import (
    AggregateSummary,
    AlarmCounts,
    DeviceCounts,
    EnergyFigures,
    PowerFigures,
    ProviderStatus,
    StationCounts,
)

_BucketT = TypeVar("_BucketT", bound=BaseModel)


def _sum_buckets(model: type[_BucketT], buckets: Sequence[BaseModel]) -> _BucketT:
    """Field-wise sum of *buckets* into a new *model* instance (None counts as 0)."""
    totals = {
        name: sum(getattr(bucket, name, 0) or 0 for bucket in buckets)
        for name in model.model_fields
    }
    return model(**totals)


def build_summary(
    statuses: Sequence[ProviderStatus],
    *,
    now: datetime | None = None,
) -> AggregateSummary:
    """Reduce provider statuses into an AggregateSummary.

    Args:
        statuses: One status per provider, in configuration order.
        now: Timestamp for ``last_update``; defaults to the current UTC time.

    Returns:
        AggregateSummary: Totals plus the provider list (order preserved).
    """
    summaries = [status.summary for status in statuses]
    return AggregateSummary(
        stations=_sum_buckets(StationCounts, [s.stations for s in summaries]),
        devices=_sum_buckets(DeviceCounts, [s.devices for s in summaries]),
        energy=_sum_buckets(EnergyFigures, [s.energy for s in summaries]),
        power=_sum_buckets(PowerFigures, [s.power for s in summaries]),
        alarms=_sum_buckets(AlarmCounts, [s.alarms for s in summaries]),
        providers=list(statuses),
        failed_providers=[status.provider for status in statuses if not status.ok],
        last_update=now or datetime.now(tz=UTC),
    )
