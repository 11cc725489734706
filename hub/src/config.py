"""
Hub configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
A provider is enabled when its base URL is set; PROVIDER_ORDER fixes the
order in which providers appear in every aggregate response, independent of
network timing.

CHANGELOG:
- 2026-10-16: Add REPORTING_TIMEZONE and LOG_LEVEL (STORY-111)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

from hub.src.models import Provider


class ProviderConfig(BaseModel):
    """Connection parameters for one provider backend.

    Attributes:
        provider: Which provider the parameters belong to.
        base_url: Absolute base URL of the provider backend.
        api_token: Bearer token; empty means no Authorization header.
        timeout_s: Timeout for the whole provider pipeline and each request.
    """

    provider: Provider
    base_url: str
    api_token: str = ""
    timeout_s: float = 10.0


class HubSettings(BaseSettings):
    """Aggregation hub configuration.

    Attributes:
        hopecloud_base_url: HopeCloud backend URL (empty disables the provider).
        hopecloud_api_token: HopeCloud bearer token.
        soliscloud_base_url: SolisCloud backend URL (empty disables the provider).
        soliscloud_api_token: SolisCloud bearer token.
        fsolar_base_url: FSolar backend URL (empty disables the provider).
        fsolar_api_token: FSolar bearer token.
        provider_order: Comma-separated provider names, output order.
        provider_timeout_s: Independent timeout per provider fetch.
        reporting_timezone: IANA zone used to map timestamps to periods.
        log_level: Root logging level name.
    """

    hopecloud_base_url: str = ""
    hopecloud_api_token: str = ""
    soliscloud_base_url: str = ""
    soliscloud_api_token: str = ""
    fsolar_base_url: str = ""
    fsolar_api_token: str = ""
    provider_order: str = "hopecloud,soliscloud,fsolar"
    provider_timeout_s: float = 10.0
    reporting_timezone: str = "UTC"
    log_level: str = "INFO"

    @field_validator("hopecloud_base_url", "soliscloud_base_url", "fsolar_base_url")
    @classmethod
    def base_url_must_be_absolute(cls, v: str) -> str:
        """Validate that a configured base URL is an absolute http(s) URL."""
        v = v.strip().rstrip("/")
        if v and not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"Provider base URL must start with http:// or https:// (got: '{v[:30]}')"
            )
        return v

    @field_validator("provider_order")
    @classmethod
    def provider_order_must_name_known_providers(cls, v: str) -> str:
        """Validate that PROVIDER_ORDER lists known providers without duplicates."""
        names = [name.strip().lower() for name in v.split(",") if name.strip()]
        known = {provider.value for provider in Provider}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ValueError(
                f"PROVIDER_ORDER contains unknown providers: {', '.join(unknown)}"
            )
        if len(set(names)) != len(names):
            raise ValueError("PROVIDER_ORDER must not repeat a provider")
        return ",".join(names)

    @field_validator("provider_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        """Validate the per-provider timeout is strictly positive."""
        if v <= 0:
            raise ValueError("PROVIDER_TIMEOUT_S must be > 0")
        return v

    @field_validator("reporting_timezone")
    @classmethod
    def timezone_must_exist(cls, v: str) -> str:
        """Validate REPORTING_TIMEZONE names an IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"REPORTING_TIMEZONE '{v}' is not a known timezone") from exc
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate LOG_LEVEL is a standard logging level name."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level")
        return level

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.reporting_timezone)

    def provider_configs(self) -> list[ProviderConfig]:
        """Return the enabled providers' connection parameters in PROVIDER_ORDER.

        Providers without a base URL are skipped; providers missing from
        PROVIDER_ORDER are appended in enum order.
        """
        ordered = [Provider(name) for name in self.provider_order.split(",") if name]
        ordered += [provider for provider in Provider if provider not in ordered]

        configs: list[ProviderConfig] = []
        for provider in ordered:
            base_url = getattr(self, f"{provider.value}_base_url")
            if not base_url:
                continue
            configs.append(
                ProviderConfig(
                    provider=provider,
                    base_url=base_url,
                    api_token=getattr(self, f"{provider.value}_api_token"),
                    timeout_s=self.provider_timeout_s,
                )
            )
        return configs

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
