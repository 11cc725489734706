"""
Pydantic models shared by the provider adapters, aggregator and reconciler.

Defines the closed provider set, the period granularities, the raw KPI
snapshot as reported by a provider, the canonical per-period record produced
by the reconciler, and the per-provider and cross-provider summaries.

All numeric summary fields default to zero so that a failed provider can be
represented by an all-zero summary that still carries its identity tag.

CHANGELOG:
- 2026-10-19: Add PeriodSeries (STORY-112)
- 2026-10-15: Add ResyncResult and AlarmRecord (STORY-109)
- 2026-10-13: Add degraded_fields to UnifiedProviderSummary (STORY-105)
- 2026-10-12: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Provider(str, Enum):
    """Closed set of supported solar-monitoring providers."""

    HOPECLOUD = "hopecloud"
    SOLISCLOUD = "soliscloud"
    FSOLAR = "fsolar"

    @property
    def label(self) -> str:
        """Display tag used by the dashboard (e.g. ``"HopeCloud"``)."""
        return _PROVIDER_LABELS[self]


_PROVIDER_LABELS: dict[Provider, str] = {
    Provider.HOPECLOUD: "HopeCloud",
    Provider.SOLISCLOUD: "SolisCloud",
    Provider.FSOLAR: "FSolar",
}


class Granularity(str, Enum):
    """Calendar bucket size used for period rollups."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"

    @property
    def alias(self) -> str:
        """Provider-side name of the granularity (``daily``/``monthly``/``yearly``)."""
        return _GRANULARITY_ALIASES[self]

    @classmethod
    def parse(cls, value: str) -> Granularity:
        """Parse either the canonical name or the provider alias.

        Raises:
            ValueError: If *value* names no granularity.
        """
        text = value.strip().lower()
        for granularity in cls:
            if text in (granularity.value, granularity.alias):
                return granularity
        raise ValueError(f"Unknown granularity '{value}'")


_GRANULARITY_ALIASES: dict[Granularity, str] = {
    Granularity.DAY: "daily",
    Granularity.MONTH: "monthly",
    Granularity.YEAR: "yearly",
}


class FetchStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"


class ResyncStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class AlarmSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Snapshots and canonical period records
# ---------------------------------------------------------------------------


class RawSnapshot(BaseModel):
    """One telemetry reading as reported by a provider.

    Attributes:
        measured_at: Timezone-aware measurement timestamp.
        period_values: Yield figure per granularity in kWh. Unparseable
            values are stored as 0.0; fields the provider did not report
            are absent.
        instantaneous_power_kw: Current power at measurement time, if known.
    """

    model_config = ConfigDict(frozen=True)

    measured_at: datetime
    period_values: dict[Granularity, float] = Field(default_factory=dict)
    instantaneous_power_kw: float | None = None

    @field_validator("measured_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    def value_for(self, granularity: Granularity) -> float | None:
        """Return the yield for *granularity*, or None if not reported."""
        return self.period_values.get(granularity)


class CanonicalPeriodRecord(BaseModel):
    """The single authoritative record for one calendar period.

    Attributes:
        period_key: ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY``.
        period_start: First calendar day of the period.
        value: Reconciled yield for the period (>= 0).
        instantaneous_power_kw: Power carried from the selected snapshot,
            0 when synthesized.
        synthesized: True when no real snapshot existed for the period.
        measured_at: Timestamp of the selected snapshot, None when synthesized.
    """

    period_key: str
    period_start: date
    value: float = Field(ge=0)
    instantaneous_power_kw: float = 0.0
    synthesized: bool
    measured_at: datetime | None = None


class PeriodSeries(BaseModel):
    """Reconciled period series for one provider entity.

    Attributes:
        provider: Provider that owns the entity.
        entity_id: Station or device identifier that was queried.
        granularity: Period size of the series.
        degraded: True when the provider query failed and every record is
            synthesized.
        records: One canonical record per period, ascending.
    """

    provider: Provider
    entity_id: str
    granularity: Granularity
    degraded: bool = False
    records: list[CanonicalPeriodRecord]


# ---------------------------------------------------------------------------
# Provider summaries
# ---------------------------------------------------------------------------


class StationCounts(BaseModel):
    total: int = 0
    online: int = 0
    offline: int = 0


class DeviceCounts(BaseModel):
    total: int = 0
    online: int = 0
    offline: int = 0
    warning: int = 0


class EnergyFigures(BaseModel):
    """Energy yield figures in kWh."""

    today: float = 0.0
    this_month: float = 0.0
    this_year: float = 0.0
    lifetime: float = 0.0


class PowerFigures(BaseModel):
    """Power figures in kW."""

    current: float = 0.0
    peak: float = 0.0


class AlarmCounts(BaseModel):
    active: int = 0
    critical: int = 0
    warning: int = 0


class AlarmRecord(BaseModel):
    """An alarm normalized to the common severity/status vocabulary."""

    severity: AlarmSeverity
    status: str

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class UnifiedProviderSummary(BaseModel):
    """Normalized per-provider snapshot, built fresh on every aggregation.

    Attributes:
        provider: Provider identity tag.
        stations: Station counts and health buckets.
        devices: Device counts and health buckets.
        energy: Energy figures (today/month/year/lifetime).
        power: Current and peak power.
        alarms: Active alarm counts by severity.
        last_update: When the summary was built.
        degraded_fields: Buckets zero-filled because a sub-fetch failed.
    """

    provider: Provider
    stations: StationCounts = Field(default_factory=StationCounts)
    devices: DeviceCounts = Field(default_factory=DeviceCounts)
    energy: EnergyFigures = Field(default_factory=EnergyFigures)
    power: PowerFigures = Field(default_factory=PowerFigures)
    alarms: AlarmCounts = Field(default_factory=AlarmCounts)
    last_update: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    degraded_fields: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls, provider: Provider) -> UnifiedProviderSummary:
        """Return the all-zero fallback summary for *provider*."""
        return cls(provider=provider)


class ProviderStatus(BaseModel):
    """Outcome of one provider fetch: ok with its summary, or failed with zeros."""

    provider: Provider
    status: FetchStatus
    summary: UnifiedProviderSummary
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK


class AggregateSummary(BaseModel):
    """Field-wise sum of every provider summary plus the provider list."""

    stations: StationCounts
    devices: DeviceCounts
    energy: EnergyFigures
    power: PowerFigures
    alarms: AlarmCounts
    providers: list[ProviderStatus]
    failed_providers: list[Provider] = Field(default_factory=list)
    last_update: datetime


# ---------------------------------------------------------------------------
# Resync
# ---------------------------------------------------------------------------


class ResyncResult(BaseModel):
    """Outcome of a provider-side resync action."""

    provider: Provider
    granularity: Granularity
    status: ResyncStatus
    records_processed: int = 0
    records_failed: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_s(self) -> float | None:
        """Wall-clock duration reported by the provider, if both ends are known."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
