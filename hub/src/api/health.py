"""
Health check endpoint for the hub API.

GET /health returns HTTP 200 with ``status`` and the providers the hub was
configured with, in output order. It does not contact any provider; it is
intended for Docker HEALTHCHECK and for spotting a hub started without any
provider base URL.

CHANGELOG:
- 2026-10-19: Report configured providers (STORY-112)
- 2026-10-14: Initial creation (STORY-110)

TODO:
- None
"""

from fastapi import APIRouter

from hub.src.api.deps import HubDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(hub: HubDep) -> dict[str, object]:
    """Return liveness plus the configured providers.

    Returns:
        dict: ``{"status": "ok", "providers": [...]}``; ``status`` is
        ``"no_providers"`` when nothing is configured, since /v1/summary
        would answer 503.
    """
    providers = [provider.value for provider in hub.providers]
    return {"status": "ok" if providers else "no_providers", "providers": providers}
