"""
GET /v1/periods endpoint for one entity's reconciled period series.

Returns exactly one canonical record per day, month or year in the requested
inclusive range, ascending, with zero-valued synthesized records for gaps.
When the provider query fails the hub still answers: every record is
synthesized and ``degraded`` is set so the chart can flag the series.

CHANGELOG:
- 2026-10-19: Degradation moved into SolarHub.series (STORY-112)
- 2026-10-15: Initial creation (STORY-108)

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from hub.src.api.deps import HubDep, parse_provider
from hub.src.errors import ProviderNotConfiguredError
from hub.src.models import Granularity, PeriodSeries
from hub.src.periods import parse_period

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["periods"])


@router.get("/periods", response_model=PeriodSeries)
async def get_periods(
    hub: HubDep,
    provider: Annotated[str, Query(description="hopecloud, soliscloud or fsolar.")],
    entity_id: Annotated[str, Query(min_length=1, description="Station or device id.")],
    granularity: Annotated[
        str,
        Query(description="day, month or year (daily/monthly/yearly accepted)."),
    ],
    start: Annotated[str, Query(description="First period: YYYY-MM-DD, YYYY-MM or YYYY.")],
    end: Annotated[str, Query(description="Last period, inclusive.")],
) -> PeriodSeries:
    """Return the reconciled period series for one provider entity.

    Raises:
        HTTPException: 422 if provider, granularity or a period is invalid.
        HTTPException: 404 if the provider is not configured.
    """
    provider_enum = parse_provider(provider)
    try:
        granularity_enum = Granularity.parse(granularity)
        start_date = parse_period(start, granularity_enum)
        end_date = parse_period(end, granularity_enum)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None

    try:
        series = await hub.series(
            provider_enum, entity_id, granularity_enum, start_date, end_date
        )
    except ProviderNotConfiguredError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    logger.debug(
        "Periods query: provider=%s entity_id=%s granularity=%s records=%d degraded=%s",
        provider_enum.value,
        entity_id,
        granularity_enum.value,
        len(series.records),
        series.degraded,
    )
    return series
