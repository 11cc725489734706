"""
FSolar adapter.

FSolar has no station concept: the summary is built from the device list,
the latest energy reading per device and the active device events. Events
use ``alarmLevel`` 1=critical, 2=major, 3=minor, 4=warning. FSolar does not
report month/year/lifetime energy in its latest readings.

CHANGELOG:
- 2026-10-15: Resync via /api/fsolar/db/sync/trigger (STORY-109)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from hub.src.models import (
    AlarmRecord,
    AlarmSeverity,
    DeviceCounts,
    EnergyFigures,
    Granularity,
    PowerFigures,
    Provider,
    UnifiedProviderSummary,
)
from hub.src.providers.base import ProviderAdapter, max_field, parse_count, sum_field

_WARNING_STATUSES = frozenset({"fault", "alarm", "warning"})

_ALARM_LEVELS: dict[int, AlarmSeverity] = {
    1: AlarmSeverity.CRITICAL,
    4: AlarmSeverity.WARNING,
}


class FSolarAdapter(ProviderAdapter):
    """Adapter for the FSolar database mirror."""

    provider = Provider.FSOLAR

    timestamp_field = "timestamp"
    yield_fields = {
        Granularity.DAY: "dailyEnergyKwh",
        Granularity.MONTH: "monthlyEnergyKwh",
        Granularity.YEAR: "yearlyEnergyKwh",
    }
    power_field = "powerKw"

    alarms_path = "/api/fsolar/db/events/active"

    def _snapshot_path(self, entity_id: str) -> str:
        return f"/api/fsolar/db/devices/{quote(entity_id, safe='')}/history"

    def _snapshot_params(
        self,
        entity_id: str,
        granularity: Granularity,
        start: str,
        end: str,
    ) -> dict[str, str]:
        return {"granularity": granularity.alias, "startDate": start, "endDate": end}

    async def _build_summary(self, client: httpx.AsyncClient) -> UnifiedProviderSummary:
        devices = await self._get_records(client, "/api/fsolar/db/devices")
        degraded: list[str] = []
        readings = await self._secondary(
            "energy",
            degraded,
            self._get_records(client, "/api/fsolar/db/energy/latest"),
        )
        if readings is None:
            # Power comes from the same readings.
            degraded.append("power")
            readings = []
        alarms = await self._alarm_counts(client, degraded)

        statuses = [str(d.get("status", "")).lower() for d in devices]
        online = statuses.count("online")
        warning = sum(1 for status in statuses if status in _WARNING_STATUSES)

        return UnifiedProviderSummary(
            provider=self.provider,
            devices=DeviceCounts(
                total=len(devices),
                online=online,
                offline=len(devices) - online - warning,
                warning=warning,
            ),
            energy=EnergyFigures(today=sum_field(readings, "todayEnergyKwh")),
            power=PowerFigures(
                current=sum_field(readings, "currentPowerKw"),
                peak=max_field(readings, "currentPowerKw"),
            ),
            alarms=alarms,
            degraded_fields=degraded,
        )

    def _parse_alarm(self, record: dict[str, Any]) -> AlarmRecord:
        severity = _ALARM_LEVELS.get(parse_count(record.get("alarmLevel")), AlarmSeverity.OTHER)
        return AlarmRecord(severity=severity, status=str(record.get("status", "")).lower())

    def _resync_request(
        self,
        granularity: Granularity,
        entity_ids: list[str],
    ) -> tuple[str, dict[str, Any]]:
        return "/api/fsolar/db/sync/trigger", {
            "types": [f"history_{granularity.alias}"],
            "deviceSns": entity_ids,
        }
