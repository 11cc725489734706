"""
Provider adapters package.

ADAPTERS maps every member of the closed Provider set to its adapter class.
Adding a provider means adding a Provider member and an adapter here; call
sites never branch on provider shape.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from hub.src.config import ProviderConfig
from hub.src.models import Provider
from hub.src.providers.base import ProviderAdapter
from hub.src.providers.fsolar import FSolarAdapter
from hub.src.providers.hopecloud import HopeCloudAdapter
from hub.src.providers.soliscloud import SolisCloudAdapter

ADAPTERS: dict[Provider, type[ProviderAdapter]] = {
    Provider.HOPECLOUD: HopeCloudAdapter,
    Provider.SOLISCLOUD: SolisCloudAdapter,
    Provider.FSOLAR: FSolarAdapter,
}


def build_adapters(
    configs: Sequence[ProviderConfig],
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ProviderAdapter]:
    """Instantiate one adapter per config, preserving the config order."""
    return [ADAPTERS[config.provider](config, transport=transport) for config in configs]


__all__ = [
    "ADAPTERS",
    "FSolarAdapter",
    "HopeCloudAdapter",
    "ProviderAdapter",
    "SolisCloudAdapter",
    "build_adapters",
]
