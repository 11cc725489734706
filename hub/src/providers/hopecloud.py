"""
HopeCloud adapter.

HopeCloud data is synced into the platform database; the backend exposes the
synced stations, alarms and site KPIs. KPI records carry text-encoded
decimals (``"12.50"``) and the alarm records already use the common
severity/status vocabulary.

CHANGELOG:
- 2026-10-15: Resync via /api/hopecloud/sync/{daily,monthly,yearly} (STORY-109)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from typing import Any

import httpx

from hub.src.models import (
    AlarmRecord,
    AlarmSeverity,
    EnergyFigures,
    Granularity,
    PowerFigures,
    Provider,
    StationCounts,
    UnifiedProviderSummary,
)
from hub.src.providers.base import ProviderAdapter, max_field, sum_field

_ONLINE_STATUSES = frozenset({"online", "normal"})


class HopeCloudAdapter(ProviderAdapter):
    """Adapter for the HopeCloud synced-site backend."""

    provider = Provider.HOPECLOUD

    timestamp_field = "measuredAt"
    yield_fields = {
        Granularity.DAY: "dailyYieldKwh",
        Granularity.MONTH: "monthlyYieldKwh",
        Granularity.YEAR: "yearlyYieldKwh",
    }
    power_field = "currentPowerKw"

    alarms_path = "/api/hopecloud/alarms"
    alarms_params = {"status": "active"}

    def _snapshot_path(self, entity_id: str) -> str:
        return "/api/site-kpis"

    def _snapshot_params(
        self,
        entity_id: str,
        granularity: Granularity,
        start: str,
        end: str,
    ) -> dict[str, str]:
        return {"siteId": entity_id, "startDate": start, "endDate": end}

    async def _build_summary(self, client: httpx.AsyncClient) -> UnifiedProviderSummary:
        stations = await self._get_records(client, "/api/hopecloud/stations")
        degraded: list[str] = []
        alarms = await self._alarm_counts(client, degraded)

        online = sum(
            1 for s in stations if str(s.get("status", "")).lower() in _ONLINE_STATUSES
        )

        return UnifiedProviderSummary(
            provider=self.provider,
            stations=StationCounts(
                total=len(stations),
                online=online,
                offline=len(stations) - online,
            ),
            energy=EnergyFigures(
                today=sum_field(stations, "todayEnergyKwh"),
                this_month=sum_field(stations, "monthEnergyKwh"),
                this_year=sum_field(stations, "yearEnergyKwh"),
                lifetime=sum_field(stations, "totalEnergyKwh"),
            ),
            power=PowerFigures(
                current=sum_field(stations, "currentPowerKw"),
                peak=max_field(stations, "peakPowerKw", "currentPowerKw"),
            ),
            alarms=alarms,
            degraded_fields=degraded,
        )

    def _parse_alarm(self, record: dict[str, Any]) -> AlarmRecord:
        severity = str(record.get("severity", "")).lower()
        try:
            parsed = AlarmSeverity(severity)
        except ValueError:
            parsed = AlarmSeverity.OTHER
        return AlarmRecord(severity=parsed, status=str(record.get("status", "")).lower())

    def _resync_request(
        self,
        granularity: Granularity,
        entity_ids: list[str],
    ) -> tuple[str, dict[str, Any]]:
        return f"/api/hopecloud/sync/{granularity.alias}", {"siteIds": entity_ids}
