"""
Calendar period arithmetic for day/month/year rollups.

A period is identified by its first calendar day (``period_start``) and
rendered as a key: ``YYYY-MM-DD`` for days, ``YYYY-MM`` for months and
``YYYY`` for years. Timestamps are mapped to periods in the reporting
timezone.

Closing boundary: providers store the finalized total of a month (year) at
midnight on the first day of the next month (year), and the daily figure at
12:00 of the day itself. A snapshot taken exactly at a month/year closing
instant therefore belongs to the period it closes, not to the one it opens.

CHANGELOG:
- 2026-10-19: Stop iteration at the last period; add clamped query_end (STORY-112)
- 2026-10-14: Group closing-instant snapshots into the period they close (STORY-106)
- 2026-10-13: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from hub.src.models import Granularity

_KEY_FORMATS: dict[Granularity, str] = {
    Granularity.DAY: "%Y-%m-%d",
    Granularity.MONTH: "%Y-%m",
    Granularity.YEAR: "%Y",
}

DAILY_SNAPSHOT_TIME = time(12, 0)
"""Fixed local time at which providers store the daily total."""


# ---------------------------------------------------------------------------
# Period start arithmetic
# ---------------------------------------------------------------------------


def coarsen(day: date, granularity: Granularity) -> date:
    """Return the first day of the period containing *day*."""
    if granularity is Granularity.MONTH:
        return day.replace(day=1)
    if granularity is Granularity.YEAR:
        return date(day.year, 1, 1)
    return day


def next_period_start(start: date, granularity: Granularity) -> date:
    """Return the first day of the period following the one starting at *start*."""
    if granularity is Granularity.DAY:
        return start + timedelta(days=1)
    if granularity is Granularity.MONTH:
        if start.month == 12:
            return date(start.year + 1, 1, 1)
        return date(start.year, start.month + 1, 1)
    return date(start.year + 1, 1, 1)


def previous_period_start(start: date, granularity: Granularity) -> date:
    """Return the first day of the period preceding the one starting at *start*."""
    if granularity is Granularity.DAY:
        return start - timedelta(days=1)
    if granularity is Granularity.MONTH:
        if start.month == 1:
            return date(start.year - 1, 12, 1)
        return date(start.year, start.month - 1, 1)
    return date(start.year - 1, 1, 1)


def format_period(start: date, granularity: Granularity) -> str:
    """Render a period start as its key (also the provider query date format)."""
    return start.strftime(_KEY_FORMATS[granularity])


def parse_period(text: str, granularity: Granularity) -> date:
    """Parse a period key, or a full ISO date coarsened to *granularity*.

    Args:
        text: ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY`` depending on granularity,
            or any ISO ``YYYY-MM-DD`` date.
        granularity: Target granularity.

    Returns:
        date: First day of the period.

    Raises:
        ValueError: If *text* is neither form.
    """
    value = text.strip()
    try:
        return coarsen(
            datetime.strptime(value, _KEY_FORMATS[granularity]).date(),
            granularity,
        )
    except ValueError:
        pass
    try:
        return coarsen(date.fromisoformat(value), granularity)
    except ValueError:
        raise ValueError(
            f"Invalid {granularity.value} period '{text}'; "
            f"expected {format_period(date(2024, 1, 1), granularity)!r} style"
        ) from None


def iter_periods(start: date, end: date, granularity: Granularity) -> Iterator[date]:
    """Yield every period start in ``[start, end]`` ascending; nothing if start > end."""
    current = coarsen(start, granularity)
    last = coarsen(end, granularity)
    while current <= last:
        yield current
        if current == last:
            break
        current = next_period_start(current, granularity)


def query_end(end: date, granularity: Granularity) -> date:
    """Start of the period after the one containing *end*.

    Clamped to the last representable period when *end* lies in it
    (``date.max`` has no successor).
    """
    last = coarsen(end, granularity)
    try:
        return next_period_start(last, granularity)
    except (ValueError, OverflowError):
        return last


def period_count(start: date, end: date, granularity: Granularity) -> int:
    """Number of periods in ``[start, end]`` inclusive (0 if inverted)."""
    start = coarsen(start, granularity)
    end = coarsen(end, granularity)
    if start > end:
        return 0
    if granularity is Granularity.DAY:
        return (end - start).days + 1
    if granularity is Granularity.MONTH:
        return (end.year * 12 + end.month) - (start.year * 12 + start.month) + 1
    return end.year - start.year + 1


# ---------------------------------------------------------------------------
# Timestamp -> period mapping
# ---------------------------------------------------------------------------


def to_local(ts: datetime, tz: tzinfo = UTC) -> datetime:
    """Convert *ts* to the reporting timezone; naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(tz)


def closing_boundary(start: date, granularity: Granularity, tz: tzinfo = UTC) -> datetime:
    """Instant at which the finalized total of a period is recorded.

    Day: 12:00 of that day. Month/year: midnight at the start of the next
    period.
    """
    if granularity is Granularity.DAY:
        return datetime.combine(start, DAILY_SNAPSHOT_TIME, tzinfo=tz)
    return datetime.combine(next_period_start(start, granularity), time.min, tzinfo=tz)


def derive_period_start(
    ts: datetime,
    granularity: Granularity,
    tz: tzinfo = UTC,
) -> date:
    """Map a measurement timestamp to the start of the period it reports on."""
    local = to_local(ts, tz)
    start = coarsen(local.date(), granularity)
    if granularity is not Granularity.DAY and local.replace(tzinfo=None) == datetime.combine(
        start, time.min
    ):
        # First instant of a month/year: closing snapshot of the previous one.
        return previous_period_start(start, granularity)
    return start


def derive_key(ts: datetime, granularity: Granularity, tz: tzinfo = UTC) -> str:
    """Period key for a measurement timestamp."""
    return format_period(derive_period_start(ts, granularity, tz), granularity)


def is_closing_snapshot(
    ts: datetime,
    start: date,
    granularity: Granularity,
    tz: tzinfo = UTC,
) -> bool:
    """True if *ts* lands exactly on the closing boundary of the period at *start*.

    The last representable month/year has no closing instant.
    """
    try:
        boundary = closing_boundary(start, granularity, tz)
    except (ValueError, OverflowError):
        return False
    return to_local(ts, tz) == boundary
