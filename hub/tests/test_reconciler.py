"""
Unit tests for the period reconciler.

Tests verify:
- Output length equals the number of periods, ascending, unique keys.
- No snapshots -> every record synthesized with value 0.
- A single valid snapshot is selected whatever its timestamp.
- The closing-boundary snapshot beats an earlier one.
- Otherwise the latest measured_at wins; exact ties keep the first encountered.
- Non-positive and unparseable values are never selected.
- Inverted ranges yield an empty list.

CHANGELOG:
- 2026-10-19: Out-of-range timestamps and year-9999 ranges (STORY-112)
- 2026-10-14: Closing-boundary tests for month/year (STORY-106)
- 2026-10-13: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from hub.src.models import Granularity, RawSnapshot
from hub.src.reconciler import reconcile

DAY, MONTH, YEAR = Granularity.DAY, Granularity.MONTH, Granularity.YEAR

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _snap(
    ts: str,
    value: float | None,
    granularity: Granularity = MONTH,
    power: float | None = None,
) -> RawSnapshot:
    """Build a snapshot carrying *value* for *granularity* at ISO time *ts*."""
    values = {} if value is None else {granularity: value}
    return RawSnapshot(
        measured_at=datetime.fromisoformat(ts),
        period_values=values,
        instantaneous_power_kw=power,
    )


# ---------------------------------------------------------------------------
# Shape of the output
# ---------------------------------------------------------------------------


class TestOutputShape:
    """Tests for record count, ordering and key uniqueness."""

    @pytest.mark.parametrize(
        ("granularity", "start", "end", "expected"),
        [
            (DAY, date(2024, 2, 27), date(2024, 3, 2), 5),
            (MONTH, date(2023, 11, 1), date(2024, 2, 1), 4),
            (YEAR, date(2021, 1, 1), date(2024, 1, 1), 4),
        ],
    )
    def test_one_record_per_period(
        self, granularity: Granularity, start: date, end: date, expected: int
    ) -> None:
        snapshots = [
            _snap("2024-01-15T10:00:00+00:00", 12.0, granularity),
            _snap("2024-01-15T11:00:00+00:00", 13.0, granularity),
        ]

        records = reconcile(snapshots, granularity, start, end)

        keys = [r.period_key for r in records]
        assert len(records) == expected
        assert len(set(keys)) == expected
        assert [r.period_start for r in records] == sorted(r.period_start for r in records)

    def test_inverted_range_is_empty(self) -> None:
        snapshots = [_snap("2024-02-15T00:00:00+00:00", 50.0)]
        assert reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 1, 1)) == []

    def test_no_snapshots_all_synthesized(self) -> None:
        records = reconcile([], MONTH, date(2024, 1, 1), date(2024, 6, 1))

        assert len(records) == 6
        assert all(r.synthesized for r in records)
        assert all(r.value == 0 for r in records)
        assert all(r.instantaneous_power_kw == 0 for r in records)
        assert all(r.measured_at is None for r in records)

    def test_snapshots_outside_range_ignored(self) -> None:
        snapshots = [
            _snap("2023-12-15T00:00:00+00:00", 40.0),
            _snap("2024-04-15T00:00:00+00:00", 40.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 1, 1), date(2024, 3, 1))

        assert all(r.synthesized for r in records)


# ---------------------------------------------------------------------------
# Selection rules
# ---------------------------------------------------------------------------


class TestSelection:
    """Tests for choosing the authoritative snapshot within a period."""

    def test_gap_filling_example(self) -> None:
        """Month range with a single mid-February snapshot."""
        snapshots = [_snap("2024-02-15T00:00:00+00:00", 50.0)]

        records = reconcile(snapshots, MONTH, date(2024, 1, 1), date(2024, 3, 1))

        assert [(r.period_key, r.value, r.synthesized) for r in records] == [
            ("2024-01", 0.0, True),
            ("2024-02", 50.0, False),
            ("2024-03", 0.0, True),
        ]

    def test_single_snapshot_selected_regardless_of_time(self) -> None:
        snapshots = [_snap("2024-03-02T03:17:00+00:00", 7.5, power=1.2)]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].value == 7.5
        assert records[0].instantaneous_power_kw == 1.2
        assert records[0].synthesized is False
        assert records[0].measured_at == datetime(2024, 3, 2, 3, 17, tzinfo=UTC)

    def test_boundary_snapshot_wins_month(self) -> None:
        """The midnight-of-next-month snapshot closes March and beats earlier ones."""
        snapshots = [
            _snap("2024-03-20T00:00:00+00:00", 80.0),
            _snap("2024-04-01T00:00:00+00:00", 95.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].period_key == "2024-03"
        assert records[0].value == 95.0

    def test_boundary_snapshot_wins_over_later_in_list(self) -> None:
        snapshots = [
            _snap("2024-04-01T00:00:00+00:00", 95.0),
            _snap("2024-03-31T23:59:59+00:00", 99.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 4, 1))

        assert records[0].value == 95.0
        assert records[1].synthesized is True

    def test_boundary_snapshot_wins_day(self) -> None:
        snapshots = [
            _snap("2024-03-05T12:00:00+00:00", 10.0, DAY),
            _snap("2024-03-05T18:00:00+00:00", 11.0, DAY),
        ]

        records = reconcile(snapshots, DAY, date(2024, 3, 5), date(2024, 3, 5))

        assert records[0].value == 10.0

    def test_boundary_snapshot_wins_year(self) -> None:
        snapshots = [
            _snap("2023-11-30T00:00:00+00:00", 900.0, YEAR),
            _snap("2024-01-01T00:00:00+00:00", 1200.0, YEAR),
        ]

        records = reconcile(snapshots, YEAR, date(2023, 1, 1), date(2024, 1, 1))

        assert [(r.period_key, r.value) for r in records] == [
            ("2023", 1200.0),
            ("2024", 0.0),
        ]

    def test_latest_wins_without_boundary(self) -> None:
        snapshots = [
            _snap("2024-03-25T00:00:00+00:00", 85.0),
            _snap("2024-03-10T00:00:00+00:00", 30.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].value == 85.0

    def test_identical_timestamps_keep_first(self) -> None:
        snapshots = [
            _snap("2024-03-25T00:00:00+00:00", 85.0),
            _snap("2024-03-25T00:00:00+00:00", 86.0),
        ]

        first = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))
        again = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert first[0].value == 85.0
        assert again == first

    def test_boundary_respects_reporting_timezone(self) -> None:
        brussels = ZoneInfo("Europe/Brussels")
        snapshots = [
            _snap("2024-03-20T00:00:00+00:00", 80.0),
            # Midnight April 1 in Brussels (UTC+2 in summer time).
            _snap("2024-03-31T22:00:00+00:00", 95.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1), tz=brussels)

        assert records[0].value == 95.0


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    """Tests for dropping snapshots that cannot be the source of truth."""

    @pytest.mark.parametrize("value", [0.0, -4.0, math.nan])
    def test_invalid_value_never_selected(self, value: float) -> None:
        snapshots = [_snap("2024-03-10T00:00:00+00:00", value)]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].synthesized is True
        assert records[0].value == 0

    def test_missing_value_never_selected(self) -> None:
        snapshots = [_snap("2024-03-10T00:00:00+00:00", None)]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].synthesized is True

    def test_zero_boundary_snapshot_loses_to_valid_one(self) -> None:
        snapshots = [
            _snap("2024-03-20T00:00:00+00:00", 80.0),
            _snap("2024-04-01T00:00:00+00:00", 0.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].value == 80.0

    def test_value_for_other_granularity_ignored(self) -> None:
        snapshots = [_snap("2024-03-10T00:00:00+00:00", 5.0, DAY)]

        records = reconcile(snapshots, MONTH, date(2024, 3, 1), date(2024, 3, 1))

        assert records[0].synthesized is True

    def test_sentinel_timestamp_dropped_without_failing_batch(self) -> None:
        """0001-01-01 has no previous month to close; only that snapshot is lost."""
        snapshots = [
            RawSnapshot(measured_at=datetime(1, 1, 1, tzinfo=UTC), period_values={MONTH: 5.0}),
            _snap("2024-02-15T00:00:00+00:00", 50.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 1, 1), date(2024, 3, 1))

        assert [(r.period_key, r.value) for r in records] == [
            ("2024-01", 0.0),
            ("2024-02", 50.0),
            ("2024-03", 0.0),
        ]

    def test_unconvertible_timestamp_dropped(self) -> None:
        """9999-12-31T23:00Z cannot be expressed in a zone ahead of UTC."""
        tokyo = ZoneInfo("Asia/Tokyo")
        snapshots = [
            RawSnapshot(
                measured_at=datetime(9999, 12, 31, 23, tzinfo=UTC),
                period_values={MONTH: 5.0},
            ),
            _snap("2024-02-15T00:00:00+00:00", 50.0),
        ]

        records = reconcile(snapshots, MONTH, date(2024, 1, 1), date(2024, 3, 1), tz=tokyo)

        assert len(records) == 3
        assert records[1].value == 50.0
        assert records[0].synthesized and records[2].synthesized


class TestCalendarEdges:
    """Tests for ranges that end in the last representable period."""

    def test_range_ending_in_year_9999(self) -> None:
        records = reconcile([], YEAR, date(9998, 1, 1), date(9999, 1, 1))

        assert [r.period_key for r in records] == ["9998", "9999"]
        assert all(r.synthesized for r in records)

    def test_last_year_selects_latest_without_closing_instant(self) -> None:
        snapshots = [
            _snap("9999-03-01T00:00:00+00:00", 10.0, YEAR),
            _snap("9999-06-01T00:00:00+00:00", 20.0, YEAR),
        ]

        records = reconcile(snapshots, YEAR, date(9999, 1, 1), date(9999, 1, 1))

        assert records[0].value == 20.0

    def test_last_day_of_calendar(self) -> None:
        snapshots = [_snap("9999-12-31T12:00:00+00:00", 3.0, DAY)]

        records = reconcile(snapshots, DAY, date(9999, 12, 30), date.max)

        assert [(r.period_key, r.value) for r in records] == [
            ("9999-12-30", 0.0),
            ("9999-12-31", 3.0),
        ]
