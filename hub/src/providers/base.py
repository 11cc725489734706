"""
Base provider adapter: HTTP plumbing and normalization helpers shared by every
provider variant.

Each adapter normalizes one provider backend into the common schema:

- fetch(): period-KPI query -> list[RawSnapshot]. Records with unparseable
  timestamps are dropped with a warning; yield figures that do not parse
  become 0.0 (the reconciler never selects them).
- fetch_summary(): station/device/energy/alarm pipeline ->
  UnifiedProviderSummary. A failing primary fetch raises ProviderError; a
  failing secondary sub-fetch zero-fills only its own bucket.
- fetch_alarms(): alarms query normalized to critical/warning/other.
- trigger_resync(): provider-side resync action -> ResyncResult.

Every call opens its own httpx.AsyncClient, so adapters hold no mutable
state between calls and can run concurrently. No retries happen here.

CHANGELOG:
- 2026-10-19: Clamp the KPI query end at the last representable period (STORY-112)
- 2026-10-15: Add trigger_resync and resync result parsing (STORY-109)
- 2026-10-13: Secondary sub-fetches zero-fill their bucket only (STORY-105)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Sequence
from datetime import UTC, date, datetime
from typing import Any, ClassVar, TypeVar

import httpx

from hub.src.config import ProviderConfig
from hub.src.errors import MalformedSnapshotError, ProviderError
from hub.src.models import (
    AlarmCounts,
    AlarmRecord,
    AlarmSeverity,
    Granularity,
    Provider,
    RawSnapshot,
    ResyncResult,
    ResyncStatus,
    UnifiedProviderSummary,
)
from hub.src.periods import coarsen, format_period, query_end

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_EPOCH_MS_THRESHOLD = 1e11
"""Numeric timestamps above this are epoch milliseconds, below are seconds."""


# ---------------------------------------------------------------------------
# Value parsing helpers
# ---------------------------------------------------------------------------


def parse_decimal(value: object) -> float | None:
    """Parse a yield/power figure that may be encoded as text.

    Returns:
        ``None`` if the field is absent (None or empty string), ``0.0`` if it
        is present but unparseable or non-finite, otherwise the float value.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_count(value: object) -> int:
    """Parse a record count, defaulting to 0 for anything unparseable."""
    number = parse_decimal(value)
    return int(number) if number is not None else 0


def sum_field(records: Sequence[dict[str, Any]], field: str) -> float:
    """Sum a numeric field across records; missing or unparseable values count as 0."""
    return sum(parse_decimal(record.get(field)) or 0.0 for record in records)


def max_field(records: Sequence[dict[str, Any]], *fields: str) -> float:
    """Largest value of any of *fields* across records, 0.0 when there is none."""
    return max(
        (parse_decimal(record.get(field)) or 0.0 for record in records for field in fields),
        default=0.0,
    )


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO 8601 string or epoch seconds/milliseconds into an aware datetime.

    Raises:
        MalformedSnapshotError: If *value* is missing or cannot be parsed.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise MalformedSnapshotError(f"non-finite timestamp {value!r}")
        seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise MalformedSnapshotError(f"timestamp out of range {value!r}") from exc

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise MalformedSnapshotError(f"unparseable timestamp {value!r}") from exc
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)

    raise MalformedSnapshotError(f"missing or invalid timestamp {value!r}")


def extract_records(payload: object) -> list[dict[str, Any]]:
    """Unwrap the record list from the response envelopes used by the backends.

    Accepts a bare list, ``{"data": [...]}``, ``{"data": {"result": [...]}}``
    and ``{"data": {"records": [...]}}`` (paged responses). Non-dict items
    are skipped.

    Raises:
        ValueError: If no record list can be found.
    """
    records: object = payload
    if isinstance(records, dict):
        records = records.get("data", records)
    if isinstance(records, dict):
        for key in ("result", "records", "items"):
            if isinstance(records.get(key), list):
                records = records[key]
                break
    if not isinstance(records, list):
        raise ValueError(f"expected a record list, got {type(records).__name__}")
    return [record for record in records if isinstance(record, dict)]


def count_alarms(alarms: Sequence[AlarmRecord]) -> AlarmCounts:
    """Count active alarms in total and by severity."""
    active = [alarm for alarm in alarms if alarm.is_active]
    return AlarmCounts(
        active=len(active),
        critical=sum(1 for alarm in active if alarm.severity is AlarmSeverity.CRITICAL),
        warning=sum(1 for alarm in active if alarm.severity is AlarmSeverity.WARNING),
    )


def _lookup(sources: Sequence[dict[str, Any]], *keys: str) -> object:
    """Return the first non-None value for any of *keys* across *sources*."""
    for source in sources:
        for key in keys:
            if source.get(key) is not None:
                return source[key]
    return None


def _optional_timestamp(value: object) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except MalformedSnapshotError:
        return None


def parse_resync_result(
    provider: Provider,
    granularity: Granularity,
    payload: object,
) -> ResyncResult:
    """Normalize a resync response.

    Reads ``status`` and the record counts and timestamps from the top level
    or from a nested ``data`` object. Without a recognizable status the
    outcome is derived from the counts: no failures -> success, some
    processed and some failed -> partial, otherwise failure.
    """
    top = payload if isinstance(payload, dict) else {}
    data = top.get("data") if isinstance(top.get("data"), dict) else {}
    sources = [data, top]

    processed = parse_count(_lookup(sources, "recordsProcessed", "records_processed"))
    failed = parse_count(_lookup(sources, "recordsFailed", "records_failed"))

    raw_status = str(_lookup(sources, "status") or "").strip().lower()
    if raw_status in ("success", "ok", "completed"):
        status = ResyncStatus.SUCCESS
    elif raw_status == "partial":
        status = ResyncStatus.PARTIAL
    elif raw_status in ("failure", "failed", "error"):
        status = ResyncStatus.FAILURE
    elif failed == 0 and processed > 0:
        status = ResyncStatus.SUCCESS
    elif processed > 0:
        status = ResyncStatus.PARTIAL
    else:
        status = ResyncStatus.FAILURE

    return ResyncResult(
        provider=provider,
        granularity=granularity,
        status=status,
        records_processed=processed,
        records_failed=failed,
        started_at=_optional_timestamp(_lookup(sources, "startTime", "startedAt")),
        finished_at=_optional_timestamp(_lookup(sources, "endTime", "finishedAt")),
    )


# ---------------------------------------------------------------------------
# Adapter base class
# ---------------------------------------------------------------------------


class ProviderAdapter(ABC):
    """Uniform contract every provider variant implements.

    Subclasses declare the provider tag, the KPI record field names and the
    endpoint paths, and implement the summary pipeline and alarm mapping.

    Args:
        config: Connection parameters for the provider backend.
        transport: Optional httpx transport (tests inject httpx.MockTransport).
    """

    provider: ClassVar[Provider]

    timestamp_field: ClassVar[str]
    yield_fields: ClassVar[dict[Granularity, str]]
    power_field: ClassVar[str]

    alarms_path: ClassVar[str]
    alarms_params: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if config.provider is not self.provider:
            raise ValueError(
                f"{type(self).__name__} cannot use config for '{config.provider.value}'"
            )
        self._config = config
        self._transport = transport

    @property
    def config(self) -> ProviderConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        entity_id: str,
        granularity: Granularity,
        start: date,
        end: date,
    ) -> list[RawSnapshot]:
        """Query period KPIs for one entity and normalize them into snapshots.

        The query end is extended to the start of the period after *end* so
        that the closing-boundary snapshot of the last period is included.

        Raises:
            ProviderError: On network, HTTP status or payload shape errors.
        """
        params = self._snapshot_params(
            entity_id,
            granularity,
            format_period(coarsen(start, granularity), granularity),
            format_period(query_end(end, granularity), granularity),
        )
        path = self._snapshot_path(entity_id)
        async with self._client() as client:
            records = await self._get_records(client, path, params=params)

        snapshots: list[RawSnapshot] = []
        for record in records:
            try:
                snapshots.append(self.parse_snapshot(record))
            except MalformedSnapshotError as exc:
                logger.warning(
                    "Dropping malformed %s snapshot for entity %s: %s",
                    self.provider.value,
                    entity_id,
                    exc,
                )
        logger.debug(
            "Fetched %d/%d %s snapshots for entity %s",
            len(snapshots),
            len(records),
            self.provider.value,
            entity_id,
        )
        return snapshots

    async def fetch_summary(self) -> UnifiedProviderSummary:
        """Run the provider's normalization pipeline.

        Raises:
            ProviderError: If the primary fetch fails.
        """
        async with self._client() as client:
            return await self._build_summary(client)

    async def fetch_alarms(self) -> list[AlarmRecord]:
        """Return the provider's alarms in the common vocabulary."""
        async with self._client() as client:
            return await self._fetch_alarms(client)

    async def trigger_resync(
        self,
        granularity: Granularity,
        entity_ids: Sequence[str],
    ) -> ResyncResult:
        """Ask the provider backend to resync period KPIs for *entity_ids*.

        Raises:
            ProviderError: On network, HTTP status or payload errors.
        """
        path, body = self._resync_request(granularity, list(entity_ids))
        async with self._client() as client:
            payload = await self._request_json(client, "POST", path, json=body)
        result = parse_resync_result(self.provider, granularity, payload)
        logger.info(
            "Resync %s/%s for %d entities: status=%s processed=%d failed=%d",
            self.provider.value,
            granularity.value,
            len(entity_ids),
            result.status.value,
            result.records_processed,
            result.records_failed,
        )
        return result

    def parse_snapshot(self, record: dict[str, Any]) -> RawSnapshot:
        """Normalize one KPI record.

        Raises:
            MalformedSnapshotError: If the timestamp is missing or invalid.
        """
        measured_at = parse_timestamp(record.get(self.timestamp_field))
        values: dict[Granularity, float] = {}
        for granularity, field in self.yield_fields.items():
            value = parse_decimal(record.get(field))
            if value is not None:
                values[granularity] = value
        return RawSnapshot(
            measured_at=measured_at,
            period_values=values,
            instantaneous_power_kw=parse_decimal(record.get(self.power_field)),
        )

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _snapshot_path(self, entity_id: str) -> str:
        """Path of the period-KPI query for *entity_id*."""

    @abstractmethod
    def _snapshot_params(
        self,
        entity_id: str,
        granularity: Granularity,
        start: str,
        end: str,
    ) -> dict[str, str]:
        """Query parameters of the period-KPI query."""

    @abstractmethod
    async def _build_summary(self, client: httpx.AsyncClient) -> UnifiedProviderSummary:
        """Fetch and reduce the provider's data into a summary."""

    @abstractmethod
    def _parse_alarm(self, record: dict[str, Any]) -> AlarmRecord:
        """Map one provider alarm record onto the common vocabulary."""

    @abstractmethod
    def _resync_request(
        self,
        granularity: Granularity,
        entity_ids: list[str],
    ) -> tuple[str, dict[str, Any]]:
        """Return ``(path, json_body)`` of the resync action."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self._config.api_token:
            headers["Authorization"] = f"Bearer {self._config.api_token}"
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            headers=headers,
            timeout=self._config.timeout_s,
            transport=self._transport,
        )

    async def _request_json(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> object:
        try:
            response = await client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(self.provider.value, exc) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.provider.value, f"invalid JSON from {path}") from exc

    async def _get_records(
        self,
        client: httpx.AsyncClient,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        payload = await self._request_json(client, "GET", path, params=params)
        try:
            return extract_records(payload)
        except ValueError as exc:
            raise ProviderError(self.provider.value, f"{path}: {exc}") from exc

    async def _fetch_alarms(self, client: httpx.AsyncClient) -> list[AlarmRecord]:
        records = await self._get_records(
            client, self.alarms_path, params=dict(self.alarms_params) or None
        )
        return [self._parse_alarm(record) for record in records]

    async def _secondary(
        self,
        bucket: str,
        degraded: list[str],
        fetch: Awaitable[_T],
    ) -> _T | None:
        """Await a secondary sub-fetch; on ProviderError record *bucket* as degraded."""
        try:
            return await fetch
        except ProviderError as exc:
            logger.warning(
                "%s %s sub-fetch failed, defaulting to zero: %s",
                self.provider.label,
                bucket,
                exc.cause,
            )
            degraded.append(bucket)
            return None

    async def _alarm_counts(
        self,
        client: httpx.AsyncClient,
        degraded: list[str],
    ) -> AlarmCounts:
        alarms = await self._secondary("alarms", degraded, self._fetch_alarms(client))
        return count_alarms(alarms or [])
