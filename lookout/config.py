"""Configuration for the telemetry agent.

This module provides the AgentConfig dataclass supplied when an agent is
constructed. It controls where batches are delivered, which signals are
collected and how often the queue is flushed.

Usage
-----
Create a configuration with defaults:

>>> config = AgentConfig(endpoint="https://collect.example/ingest", site_id="docs")
>>> config.batch_size
10

Or load from environment variables:

>>> import os
>>> os.environ["LOOKOUT_ENDPOINT"] = "https://collect.example/ingest"
>>> os.environ["LOOKOUT_SITE_ID"] = "docs"
>>> os.environ["LOOKOUT_BATCH_SIZE"] = "25"
>>> AgentConfig.from_env().batch_size
25

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import os
import typing as typ

import httpx

from lookout.errors import AgentConfigError

# The ingestion endpoint rejects requests carrying more records than this.
MAX_EVENTS_PER_REQUEST = 100

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dc.dataclass(frozen=True, slots=True)
class AgentConfig:
    """Configuration for a telemetry agent instance.

    Attributes
    ----------
    endpoint
        Absolute URL of the batch ingestion endpoint. Required.
    site_id
        Identifier attached to every record so one endpoint can serve many
        sites. Required.
    api_key
        Optional key sent as a bearer token and ``apikey`` header on the
        fetch path, and as an ``apikey`` query parameter on the beacon path.
    auto_page_views
        Emit a page view on init and after client-side navigations.
    auto_web_vitals
        Collect LCP, FCP, CLS, INP and TTFB.
    auto_errors
        Record uncaught errors and unhandled rejections.
    respect_dnt
        Stay dormant when the page reports Do-Not-Track. Default ``True``.
    headers
        Extra headers attached to every fetch-path request.
    batch_size
        Queue length that triggers an immediate flush. Capped at
        ``MAX_EVENTS_PER_REQUEST`` when applied.
    flush_interval_ms
        Maximum time a record waits in the queue before a timed flush.
    debug
        Emit agent log events. When ``False`` the agent is silent.
    page_view_delay_ms
        Deferral between a detected path change and the page view record,
        giving the host time to update the document title.
    delivery_timeout_s
        Timeout applied to each fetch-path request.
    keepalive_grace_s
        How long :meth:`lookout.agent.Agent.drain` waits for in-flight
        requests during teardown.

    """

    endpoint: str
    site_id: str
    api_key: str | None = None
    auto_page_views: bool = True
    auto_web_vitals: bool = True
    auto_errors: bool = True
    respect_dnt: bool = True
    headers: cabc.Mapping[str, str] = dc.field(default_factory=dict)
    batch_size: int = 10
    flush_interval_ms: int = 5000
    debug: bool = False
    page_view_delay_ms: int = 100
    delivery_timeout_s: float = 10.0
    keepalive_grace_s: float = 5.0

    @property
    def effective_batch_size(self) -> int:
        """Return the batch size clamped to what the endpoint accepts."""
        return max(1, min(self.batch_size, MAX_EVENTS_PER_REQUEST))

    def validate(self) -> None:
        """Check required fields and numeric ranges.

        Raises
        ------
        AgentConfigError
            If the endpoint or site id is missing, the endpoint is not an
            absolute HTTP URL, or a size or interval is not positive.

        """
        if not self.endpoint.strip():
            raise AgentConfigError.missing_endpoint()
        if not self.site_id.strip():
            raise AgentConfigError.missing_site_id()
        try:
            url = httpx.URL(self.endpoint)
        except httpx.InvalidURL as exc:
            raise AgentConfigError.invalid_endpoint(self.endpoint) from exc
        if url.scheme not in {"http", "https"} or not url.host:
            raise AgentConfigError.invalid_endpoint(self.endpoint)
        for field in ("batch_size", "flush_interval_ms"):
            value = getattr(self, field)
            if value < 1:
                raise AgentConfigError.not_positive(field, value)
        for field in ("delivery_timeout_s", "keepalive_grace_s"):
            value = getattr(self, field)
            if value <= 0:
                raise AgentConfigError.not_positive(field, value)
        if self.page_view_delay_ms < 0:
            raise AgentConfigError.not_positive(
                "page_view_delay_ms", self.page_view_delay_ms
            )

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise AgentConfigError(msg) from exc
        if value < 1:
            raise AgentConfigError.not_positive(env_var, value)
        return value

    @staticmethod
    def _parse_flag(env_var: str, *, default: bool) -> bool:
        """Read a boolean env var such as ``1``/``true``/``off``."""
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return default
        if raw in _TRUE_VALUES:
            return True
        if raw in _FALSE_VALUES:
            return False
        msg = f"{env_var} must be a boolean flag, got: {raw!r}"
        raise AgentConfigError(msg)

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``LOOKOUT_ENDPOINT``: Ingestion endpoint URL. Required.
        - ``LOOKOUT_SITE_ID``: Site identifier. Required.
        - ``LOOKOUT_API_KEY``: Optional API key.
        - ``LOOKOUT_BATCH_SIZE``: Positive integer, default 10.
        - ``LOOKOUT_FLUSH_INTERVAL_MS``: Positive integer, default 5000.
        - ``LOOKOUT_RESPECT_DNT``: Boolean flag, default on.
        - ``LOOKOUT_DEBUG``: Boolean flag, default off.

        Returns
        -------
        AgentConfig
            Validated configuration instance.

        Raises
        ------
        AgentConfigError
            If a required variable is missing or a value cannot be parsed.

        """
        api_key = os.environ.get("LOOKOUT_API_KEY", "").strip() or None
        config = cls(
            endpoint=os.environ.get("LOOKOUT_ENDPOINT", "").strip(),
            site_id=os.environ.get("LOOKOUT_SITE_ID", "").strip(),
            api_key=api_key,
            respect_dnt=cls._parse_flag("LOOKOUT_RESPECT_DNT", default=True),
            batch_size=cls._parse_positive_int("LOOKOUT_BATCH_SIZE", 10),
            flush_interval_ms=cls._parse_positive_int(
                "LOOKOUT_FLUSH_INTERVAL_MS", 5000
            ),
            debug=cls._parse_flag("LOOKOUT_DEBUG", default=False),
        )
        config.validate()
        return config

    @classmethod
    def from_attributes(cls, attributes: cabc.Mapping[str, str | None]) -> AgentConfig:
        """Create configuration from ``data-*`` markup attributes.

        Presence of an opt-out attribute disables the feature regardless of
        its value, matching how boolean HTML attributes behave.

        Raises
        ------
        AgentConfigError
            If ``data-endpoint`` or ``data-site-id`` is missing or empty.

        """
        endpoint = (attributes.get("data-endpoint") or "").strip()
        site_id = (attributes.get("data-site-id") or "").strip()
        config = cls(
            endpoint=endpoint,
            site_id=site_id,
            api_key=(attributes.get("data-api-key") or "").strip() or None,
            auto_page_views="data-no-pageviews" not in attributes,
            auto_web_vitals="data-no-vitals" not in attributes,
            auto_errors="data-no-errors" not in attributes,
            respect_dnt="data-ignore-dnt" not in attributes,
            debug="data-debug" in attributes,
        )
        config.validate()
        return config


def redact_api_key(config: AgentConfig) -> dict[str, typ.Any]:
    """Return the configuration as a dict safe to log."""
    values = {
        field.name: getattr(config, field.name) for field in dc.fields(config)
    }
    if values["api_key"]:
        values["api_key"] = "***"
    values["headers"] = sorted(values["headers"])
    return values
