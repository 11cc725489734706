"""
Period reconciler: collapses an irregular KPI snapshot stream into exactly one
canonical record per calendar period.

Algorithm (pure, no I/O, no clock):

1. Filter out snapshots whose value for the granularity is missing,
   non-positive or unparseable (stored as 0.0). A zero reading cannot be told
   apart from "no data", so it never becomes the source of truth.
2. Group the rest by the period they report on (see periods.derive_period_start).
3. Select one snapshot per period: the one exactly at the closing boundary
   if any, otherwise the one with the latest measured_at. Ties keep the first
   snapshot encountered.
4. Synthesize a zero-valued record for every period in range with no
   selection.
5. Emit ascending by period start.

CHANGELOG:
- 2026-10-19: Drop snapshots whose timestamp maps to no representable period (STORY-112)
- 2026-10-14: Closing-boundary tie-break for month/year snapshots (STORY-106)
- 2026-10-13: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, date, tzinfo

from hub.src.models import CanonicalPeriodRecord, Granularity, RawSnapshot
from hub.src.periods import (
    coarsen,
    derive_period_start,
    format_period,
    is_closing_snapshot,
    iter_periods,
)

logger = logging.getLogger(__name__)


def _select(
    candidates: list[RawSnapshot],
    start: date,
    granularity: Granularity,
    tz: tzinfo,
) -> RawSnapshot:
    """Pick the authoritative snapshot among the candidates of one period."""
    for snapshot in candidates:
        if is_closing_snapshot(snapshot.measured_at, start, granularity, tz):
            return snapshot

    selected = candidates[0]
    for snapshot in candidates[1:]:
        # Strictly later only, so equal timestamps keep the first encountered.
        if snapshot.measured_at > selected.measured_at:
            selected = snapshot
    return selected


def reconcile(
    snapshots: Iterable[RawSnapshot],
    granularity: Granularity,
    start: date,
    end: date,
    tz: tzinfo = UTC,
) -> list[CanonicalPeriodRecord]:
    """Produce one canonical record per period in ``[start, end]``.

    Args:
        snapshots: Raw snapshots in any order; may overlap and may be sparse.
        granularity: Day, month or year.
        start: Any day inside the first period of the range.
        end: Any day inside the last period of the range.
        tz: Reporting timezone used to map timestamps to periods.

    Returns:
        list[CanonicalPeriodRecord]: Ascending, gap-free, one per period.
        Empty if ``start`` is after ``end``.
    """
    start = coarsen(start, granularity)
    end = coarsen(end, granularity)
    if start > end:
        return []

    buckets: dict[date, list[RawSnapshot]] = {}
    dropped = 0
    for snapshot in snapshots:
        value = snapshot.value_for(granularity)
        if value is None or not value > 0:
            dropped += 1
            continue
        try:
            period_start = derive_period_start(snapshot.measured_at, granularity, tz)
        except (ValueError, OverflowError):
            # Sentinel dates such as 0001-01-01 have no representable period.
            logger.warning(
                "Dropping snapshot with out-of-range timestamp %s for %s periods",
                snapshot.measured_at.isoformat(),
                granularity.value,
            )
            dropped += 1
            continue
        if start <= period_start <= end:
            buckets.setdefault(period_start, []).append(snapshot)

    records: list[CanonicalPeriodRecord] = []
    for period_start in iter_periods(start, end, granularity):
        key = format_period(period_start, granularity)
        candidates = buckets.get(period_start)
        if not candidates:
            records.append(
                CanonicalPeriodRecord(
                    period_key=key,
                    period_start=period_start,
                    value=0.0,
                    instantaneous_power_kw=0.0,
                    synthesized=True,
                )
            )
            continue

        selected = _select(candidates, period_start, granularity, tz)
        records.append(
            CanonicalPeriodRecord(
                period_key=key,
                period_start=period_start,
                value=selected.value_for(granularity) or 0.0,
                instantaneous_power_kw=selected.instantaneous_power_kw or 0.0,
                synthesized=False,
                measured_at=selected.measured_at,
            )
        )

    logger.debug(
        "Reconciled %s range %s..%s: %d records, %d real, %d snapshots filtered",
        granularity.value,
        format_period(start, granularity),
        format_period(end, granularity),
        len(records),
        len(buckets),
        dropped,
    )
    return records
