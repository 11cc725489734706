"""
SolisCloud adapter.

Reads the SolisCloud data mirrored in the platform database. Stations and
inverters report numeric ``state`` codes; alarms use ``alarmLevel``
(1=warning, 2=fault, 3=critical) and ``state`` ("0"=ongoing). SolisCloud
does not report month/year energy in its station list, so those figures stay
at zero. Readings carry ``dataTimestamp`` as epoch milliseconds.

CHANGELOG:
- 2026-10-15: Resync via /api/soliscloud/db/sync/trigger (STORY-109)
- 2026-10-13: Inverter list becomes a secondary sub-fetch (STORY-105)
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
    StationCounts,
    UnifiedProviderSummary,
)
from hub.src.providers.base import ProviderAdapter, max_field, parse_count, sum_field

# Station state: 1=normal, 2=alarm (both reporting), 3=offline.
_STATION_OFFLINE = 3
# Inverter state: 1=online, 2=offline, 3=alarm.
_INVERTER_ONLINE = 1
_INVERTER_ALARM = 3

_ALARM_LEVELS: dict[int, AlarmSeverity] = {
    1: AlarmSeverity.WARNING,
    3: AlarmSeverity.CRITICAL,
}


class SolisCloudAdapter(ProviderAdapter):
    """Adapter for the SolisCloud database mirror."""

    provider = Provider.SOLISCLOUD

    timestamp_field = "dataTimestamp"
    yield_fields = {
        Granularity.DAY: "eToday",
        Granularity.MONTH: "eMonth",
        Granularity.YEAR: "eYear",
    }
    power_field = "pac"

    alarms_path = "/api/soliscloud/db/alarms/active"

    def _snapshot_path(self, entity_id: str) -> str:
        return f"/api/soliscloud/db/stations/{quote(entity_id, safe='')}/readings"

    def _snapshot_params(
        self,
        entity_id: str,
        granularity: Granularity,
        start: str,
        end: str,
    ) -> dict[str, str]:
        return {"granularity": granularity.alias, "startDate": start, "endDate": end}

    async def _build_summary(self, client: httpx.AsyncClient) -> UnifiedProviderSummary:
        stations = await self._get_records(client, "/api/soliscloud/db/stations")
        degraded: list[str] = []
        inverters = await self._secondary(
            "devices",
            degraded,
            self._get_records(client, "/api/soliscloud/db/inverters"),
        )
        alarms = await self._alarm_counts(client, degraded)

        offline_stations = sum(
            1 for s in stations if parse_count(s.get("state")) == _STATION_OFFLINE
        )
        devices = DeviceCounts()
        if inverters is not None:
            online = sum(1 for i in inverters if parse_count(i.get("state")) == _INVERTER_ONLINE)
            warning = sum(1 for i in inverters if parse_count(i.get("state")) == _INVERTER_ALARM)
            devices = DeviceCounts(
                total=len(inverters),
                online=online,
                offline=len(inverters) - online - warning,
                warning=warning,
            )

        return UnifiedProviderSummary(
            provider=self.provider,
            stations=StationCounts(
                total=len(stations),
                online=len(stations) - offline_stations,
                offline=offline_stations,
            ),
            devices=devices,
            energy=EnergyFigures(
                today=sum_field(stations, "eToday"),
                lifetime=sum_field(stations, "eTotal"),
            ),
            power=PowerFigures(
                current=sum_field(stations, "pac"),
                peak=max_field(stations, "pac"),
            ),
            alarms=alarms,
            degraded_fields=degraded,
        )

    def _parse_alarm(self, record: dict[str, Any]) -> AlarmRecord:
        severity = _ALARM_LEVELS.get(parse_count(record.get("alarmLevel")), AlarmSeverity.OTHER)
        status = "active" if str(record.get("state", "")).strip() == "0" else "resolved"
        return AlarmRecord(severity=severity, status=status)

    def _resync_request(
        self,
        granularity: Granularity,
        entity_ids: list[str],
    ) -> tuple[str, dict[str, Any]]:
        return "/api/soliscloud/db/sync/trigger", {
            "types": [f"station_{granularity.value}"],
            "stationIds": entity_ids,
        }
