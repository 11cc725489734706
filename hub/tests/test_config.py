"""
Unit tests for hub configuration (HubSettings).

Tests verify:
- All env vars load with correct types; URLs lose trailing slashes.
- Defaults when nothing is set (no providers enabled).
- Validation errors for bad URLs, PROVIDER_ORDER, timeout, timezone, log level.
- provider_configs() honours PROVIDER_ORDER and skips disabled providers.

CHANGELOG:
- 2026-10-16: Add REPORTING_TIMEZONE and LOG_LEVEL tests (STORY-111)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from hub.src.config import HubSettings
from hub.src.models import Provider


class TestLoading:
    """Tests for loading HubSettings from environment variables."""

    def test_all_vars_load(self, env_vars_full: dict[str, str]) -> None:
        """Every env var is read and normalised."""
        settings = HubSettings()

        assert settings.hopecloud_base_url == "https://hopecloud.example.com"
        assert settings.hopecloud_api_token == "hope-token"
        assert settings.soliscloud_base_url == "https://solis.example.com"
        assert settings.provider_order == "fsolar,hopecloud,soliscloud"
        assert settings.provider_timeout_s == 2.5
        assert settings.reporting_timezone == "Europe/Brussels"
        assert settings.tz == ZoneInfo("Europe/Brussels")
        assert settings.log_level == "DEBUG"

    def test_defaults(self) -> None:
        """Without env vars no provider is enabled and defaults apply."""
        settings = HubSettings()

        assert settings.provider_configs() == []
        assert settings.provider_timeout_s == 10.0
        assert settings.reporting_timezone == "UTC"
        assert settings.log_level == "INFO"


class TestValidation:
    """Tests for field validators."""

    def test_relative_base_url_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOPECLOUD_BASE_URL", "hopecloud.example.com")
        with pytest.raises(ValidationError, match="http:// or https://"):
            HubSettings()

    def test_unknown_provider_in_order_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_ORDER", "hopecloud,sungrow")
        with pytest.raises(ValidationError, match="sungrow"):
            HubSettings()

    def test_duplicate_provider_in_order_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_ORDER", "fsolar,FSolar")
        with pytest.raises(ValidationError, match="must not repeat"):
            HubSettings()

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_timeout_rejected(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("PROVIDER_TIMEOUT_S", value)
        with pytest.raises(ValidationError, match="PROVIDER_TIMEOUT_S"):
            HubSettings()

    def test_unknown_timezone_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORTING_TIMEZONE", "Mars/Olympus_Mons")
        with pytest.raises(ValidationError, match="REPORTING_TIMEZONE"):
            HubSettings()

    def test_unknown_log_level_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            HubSettings()


class TestProviderConfigs:
    """Tests for provider_configs() ordering and enablement."""

    def test_follows_provider_order(self, env_vars_full: dict[str, str]) -> None:
        configs = HubSettings().provider_configs()

        assert [c.provider for c in configs] == [
            Provider.FSOLAR,
            Provider.HOPECLOUD,
            Provider.SOLISCLOUD,
        ]
        assert all(c.timeout_s == 2.5 for c in configs)
        assert configs[1].api_token == "hope-token"
        assert configs[0].api_token == ""

    def test_skips_providers_without_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOLISCLOUD_BASE_URL", "http://solis.local")

        configs = HubSettings().provider_configs()

        assert [c.provider for c in configs] == [Provider.SOLISCLOUD]
        assert configs[0].base_url == "http://solis.local"

    def test_unlisted_providers_appended(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_ORDER", "soliscloud")
        monkeypatch.setenv("HOPECLOUD_BASE_URL", "http://hope.local")
        monkeypatch.setenv("SOLISCLOUD_BASE_URL", "http://solis.local")
        monkeypatch.setenv("FSOLAR_BASE_URL", "http://fsolar.local")

        configs = HubSettings().provider_configs()

        assert [c.provider for c in configs] == [
            Provider.SOLISCLOUD,
            Provider.HOPECLOUD,
            Provider.FSOLAR,
        ]
