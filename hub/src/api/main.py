"""
FastAPI application entry point for the solar aggregation hub.

Loads HubSettings at startup, configures structured JSON logging, and stores
a SolarHub instance on app.state for the route handlers. The API is a thin
transport over the hub: summary, period series, resync and health.

CHANGELOG:
- 2026-10-16: Register resync router (STORY-109)
- 2026-10-15: Register periods router (STORY-108)
- 2026-10-14: Initial creation with summary and health routers (STORY-110)
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from hub.src.api.health import router as health_router
from hub.src.api.periods import router as periods_router
from hub.src.api.resync import router as resync_router
from hub.src.api.summary import router as summary_router
from hub.src.config import HubSettings
from hub.src.service import SolarHub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger (stderr)."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: HubSettings) -> None:
    """Log the enabled providers and timing settings, omitting API tokens."""
    logger.info(
        "Hub starting with config: providers=%s, provider_timeout_s=%s, "
        "reporting_timezone=%s, log_level=%s",
        ",".join(
            f"{config.provider.value}@{config.base_url}"
            for config in settings.provider_configs()
        )
        or "<none>",
        settings.provider_timeout_s,
        settings.reporting_timezone,
        settings.log_level,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: load settings and build the hub.

    Startup:
        - Loads and validates HubSettings from the environment.
        - Configures logging and logs a config summary without secrets.
        - Stores the SolarHub on app.state.hub.

    Shutdown:
        - Logs that the API is shutting down.
    """
    settings = HubSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    app.state.hub = SolarHub.from_settings(settings)
    if not app.state.hub.providers:
        logger.warning("No provider base URL configured; /v1/summary will return 503")

    logger.info("Solar aggregation hub ready")
    yield
    logger.info("Solar aggregation hub shutting down")


app = FastAPI(
    title="Solar Aggregation Hub",
    description="Cross-provider solar telemetry summary and period series API.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(summary_router)
app.include_router(periods_router)
app.include_router(resync_router)
