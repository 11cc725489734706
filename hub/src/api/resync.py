"""
POST /v1/resync endpoint to trigger a provider-side period KPI resync.

The hub forwards the request to the provider's sync trigger and returns the
normalised ResyncResult. Callers re-query /v1/periods afterwards; the hub
keeps no state between the two calls.

CHANGELOG:
- 2026-10-16: Initial creation (STORY-109)

TODO:
- None
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from hub.src.api.deps import HubDep, parse_provider
from hub.src.errors import ProviderError, ProviderNotConfiguredError
from hub.src.models import Granularity, ResyncResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["resync"])


class ResyncRequest(BaseModel):
    """Request body for POST /v1/resync.

    Attributes:
        provider: Provider name (hopecloud, soliscloud, fsolar).
        granularity: day, month or year (daily/monthly/yearly accepted).
        entity_ids: Stations or devices to resync; empty means all.
    """

    provider: str
    granularity: str
    entity_ids: list[str] = Field(default_factory=list)


@router.post("/resync", response_model=ResyncResult)
async def post_resync(body: ResyncRequest, hub: HubDep) -> ResyncResult:
    """Trigger a provider-side resync.

    Raises:
        HTTPException: 422 if provider or granularity is invalid.
        HTTPException: 404 if the provider is not configured.
        HTTPException: 502 if the provider rejects or fails the call.
    """
    provider = parse_provider(body.provider)
    try:
        granularity = Granularity.parse(body.granularity)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None

    try:
        return await hub.resync(provider, granularity, body.entity_ids)
    except ProviderNotConfiguredError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ProviderError as exc:
        logger.error("Resync failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
