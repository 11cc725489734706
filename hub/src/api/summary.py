"""
GET /v1/summary endpoint for the cross-provider dashboard summary.

Fans out to every configured provider through the hub and returns the reduced
AggregateSummary. A failing provider appears in ``failed_providers`` with an
all-zero contribution; only a hub with no providers at all yields 503.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-110)

TODO:
- None
"""

import logging

from fastapi import APIRouter, HTTPException

from hub.src.api.deps import HubDep
from hub.src.errors import AggregateFailure
from hub.src.models import AggregateSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["summary"])


@router.get("/summary", response_model=AggregateSummary)
async def get_summary(hub: HubDep) -> AggregateSummary:
    """Return the aggregate summary across all configured providers.

    Raises:
        HTTPException: 503 if no providers are configured.
    """
    try:
        return await hub.aggregate()
    except AggregateFailure as exc:
        logger.error("Summary unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
