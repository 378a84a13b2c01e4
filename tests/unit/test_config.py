"""Unit tests for AgentConfig."""

from __future__ import annotations

import re

import pytest

from lookout.config import MAX_EVENTS_PER_REQUEST, AgentConfig, redact_api_key
from lookout.errors import AgentConfigError
from tests.helpers.fakes import ENDPOINT, SITE_ID

_ENV_VARS = (
    "LOOKOUT_ENDPOINT",
    "LOOKOUT_SITE_ID",
    "LOOKOUT_API_KEY",
    "LOOKOUT_BATCH_SIZE",
    "LOOKOUT_FLUSH_INTERVAL_MS",
    "LOOKOUT_RESPECT_DNT",
    "LOOKOUT_DEBUG",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every LOOKOUT_* variable for the test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Default values match the documented behaviour."""

    def test_defaults(self) -> None:
        """Collection is on, DNT is respected and debug is off."""
        config = AgentConfig(endpoint=ENDPOINT, site_id=SITE_ID)

        assert config.auto_page_views is True
        assert config.auto_web_vitals is True
        assert config.auto_errors is True
        assert config.respect_dnt is True
        assert config.debug is False
        assert config.batch_size == 10
        assert config.flush_interval_ms == 5000
        assert dict(config.headers) == {}

    def test_effective_batch_size_is_capped(self) -> None:
        """Batch sizes above the ingestion limit are clamped."""
        config = AgentConfig(endpoint=ENDPOINT, site_id=SITE_ID, batch_size=500)
        assert config.effective_batch_size == MAX_EVENTS_PER_REQUEST


class TestValidate:
    """Tests for AgentConfig.validate."""

    def test_valid_config_passes(self) -> None:
        """A complete configuration validates."""
        AgentConfig(endpoint=ENDPOINT, site_id=SITE_ID).validate()

    @pytest.mark.parametrize(
        ("endpoint", "site_id", "message"),
        [
            ("", SITE_ID, "endpoint is required"),
            ("   ", SITE_ID, "endpoint is required"),
            (ENDPOINT, "", "site_id is required"),
            ("/ingest", SITE_ID, "absolute http(s) URL"),
            ("ftp://collect.example.test/ingest", SITE_ID, "absolute http(s) URL"),
        ],
    )
    def test_rejects_missing_or_relative_values(
        self,
        endpoint: str,
        site_id: str,
        message: str,
    ) -> None:
        """Missing fields and non-HTTP endpoints are rejected."""
        config = AgentConfig(endpoint=endpoint, site_id=site_id)
        with pytest.raises(AgentConfigError, match=re.escape(message)):
            config.validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"batch_size": 0},
            {"flush_interval_ms": -5},
            {"delivery_timeout_s": 0.0},
            {"keepalive_grace_s": -1.0},
            {"page_view_delay_ms": -1},
        ],
    )
    def test_rejects_non_positive_numbers(self, overrides: dict[str, float]) -> None:
        """Sizes, intervals and timeouts must be positive."""
        config = AgentConfig(endpoint=ENDPOINT, site_id=SITE_ID, **overrides)
        with pytest.raises(AgentConfigError, match="must be positive"):
            config.validate()

    def test_config_error_is_value_error(self) -> None:
        """Configuration errors can be caught as ValueError."""
        assert issubclass(AgentConfigError, ValueError)


class TestFromEnv:
    """Tests for AgentConfig.from_env."""

    def test_reads_required_and_optional_values(
        self,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        """Variables populate the configuration."""
        clean_env.setenv("LOOKOUT_ENDPOINT", ENDPOINT)
        clean_env.setenv("LOOKOUT_SITE_ID", SITE_ID)
        clean_env.setenv("LOOKOUT_API_KEY", " anon-key ")
        clean_env.setenv("LOOKOUT_BATCH_SIZE", "25")
        clean_env.setenv("LOOKOUT_FLUSH_INTERVAL_MS", "2000")
        clean_env.setenv("LOOKOUT_RESPECT_DNT", "off")
        clean_env.setenv("LOOKOUT_DEBUG", "yes")

        config = AgentConfig.from_env()

        assert config.endpoint == ENDPOINT
        assert config.site_id == SITE_ID
        assert config.api_key == "anon-key"
        assert config.batch_size == 25
        assert config.flush_interval_ms == 2000
        assert config.respect_dnt is False
        assert config.debug is True

    def test_missing_endpoint_raises(self, clean_env: pytest.MonkeyPatch) -> None:
        """The endpoint is mandatory."""
        clean_env.setenv("LOOKOUT_SITE_ID", SITE_ID)
        with pytest.raises(AgentConfigError, match="endpoint is required"):
            AgentConfig.from_env()

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_batch_size_raises(
        self,
        clean_env: pytest.MonkeyPatch,
        raw: str,
    ) -> None:
        """Batch size must be a positive integer."""
        clean_env.setenv("LOOKOUT_ENDPOINT", ENDPOINT)
        clean_env.setenv("LOOKOUT_SITE_ID", SITE_ID)
        clean_env.setenv("LOOKOUT_BATCH_SIZE", raw)
        with pytest.raises(AgentConfigError, match="LOOKOUT_BATCH_SIZE"):
            AgentConfig.from_env()

    def test_invalid_flag_raises(self, clean_env: pytest.MonkeyPatch) -> None:
        """Boolean flags only accept the documented spellings."""
        clean_env.setenv("LOOKOUT_ENDPOINT", ENDPOINT)
        clean_env.setenv("LOOKOUT_SITE_ID", SITE_ID)
        clean_env.setenv("LOOKOUT_DEBUG", "maybe")
        with pytest.raises(AgentConfigError, match="LOOKOUT_DEBUG"):
            AgentConfig.from_env()


class TestFromAttributes:
    """Tests for AgentConfig.from_attributes."""

    def test_presence_of_opt_outs_disables_features(self) -> None:
        """Boolean attributes count when present, whatever their value."""
        config = AgentConfig.from_attributes(
            {
                "data-endpoint": ENDPOINT,
                "data-site-id": SITE_ID,
                "data-api-key": "anon-key",
                "data-no-pageviews": "",
                "data-no-vitals": None,
                "data-ignore-dnt": "false",
                "data-debug": "",
            }
        )

        assert config.api_key == "anon-key"
        assert config.auto_page_views is False
        assert config.auto_web_vitals is False
        assert config.auto_errors is True
        assert config.respect_dnt is False
        assert config.debug is True

    def test_missing_site_id_raises(self) -> None:
        """The site id is mandatory."""
        with pytest.raises(AgentConfigError, match="site_id is required"):
            AgentConfig.from_attributes({"data-endpoint": ENDPOINT})


def test_redact_api_key_masks_secrets() -> None:
    """The API key is masked and header values are omitted."""
    config = AgentConfig(
        endpoint=ENDPOINT,
        site_id=SITE_ID,
        api_key="secret-key",
        headers={"X-Tenant": "acme", "Authorization": "Basic abc"},
    )

    redacted = redact_api_key(config)

    assert redacted["api_key"] == "***"
    assert redacted["headers"] == ["Authorization", "X-Tenant"]
    assert "secret-key" not in repr(redacted)
    assert "Basic abc" not in repr(redacted)
