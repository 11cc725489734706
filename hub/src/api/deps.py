"""
FastAPI dependency injection providers.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-110)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from hub.src.models import Provider
from hub.src.service import SolarHub


def get_hub(request: Request) -> SolarHub:
    """Return the SolarHub built during application startup."""
    return request.app.state.hub


# Usage in route handlers:
#   async def my_route(hub: HubDep):
#       summary = await hub.aggregate()
HubDep = Annotated[SolarHub, Depends(get_hub)]


def parse_provider(value: str) -> Provider:
    """Parse a provider name from a request, raising 422 on unknown names.

    Raises:
        HTTPException: 422 if *value* is not a known provider.
    """
    try:
        return Provider(value.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail=(
                f"Invalid provider '{value}'. "
                f"Must be one of: {sorted(p.value for p in Provider)}."
            ),
        ) from None
