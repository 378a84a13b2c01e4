"""Emit structured observability events for the agent lifecycle.

This module defines event identifiers and a logger wrapper used by
:class:`lookout.agent.Agent` and its collectors. Events are only written when
the agent runs with ``debug`` enabled; otherwise every method returns
immediately so a production agent never writes to the host's logs.

Usage
-----
>>> event_logger = AgentEventLogger(enabled=True)
>>> event_logger.log_init_skipped(reason=InitSkipReason.DO_NOT_TRACK)

"""

from __future__ import annotations

import enum
import typing as typ

from lookout.config import redact_api_key
from lookout.logging import get_logger, log_debug, log_info, log_warning

if typ.TYPE_CHECKING:
    from lookout.config import AgentConfig
    from lookout.events.models import EventBase

logger = get_logger(__name__)


class AgentEventType(enum.StrEnum):
    """Structured log event types for the agent lifecycle."""

    INIT_COMPLETED = "agent.init.completed"
    INIT_SKIPPED = "agent.init.skipped"
    EVENT_QUEUED = "agent.event.queued"
    COLLECTOR_DISABLED = "agent.collector.disabled"
    CALL_FAILED = "agent.call.failed"


class InitSkipReason(enum.StrEnum):
    """Why :meth:`lookout.agent.Agent.init` left the agent dormant."""

    ALREADY_INITIALISED = "already_initialised"
    DO_NOT_TRACK = "do_not_track"
    INVALID_CONFIG = "invalid_config"
    NO_SCHEDULER = "no_scheduler"


class AgentEventLogger:
    """Emit agent lifecycle events via femtologging when enabled."""

    def __init__(self, *, enabled: bool) -> None:
        """Create a logger that writes only when ``enabled`` is true."""
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        """Return whether events are written."""
        return self._enabled

    def log_initialised(self, config: AgentConfig, *, version: str) -> None:
        """Log a completed initialisation with the effective settings."""
        if not self._enabled:
            return
        settings = redact_api_key(config)
        log_info(
            logger,
            "[%s] version=%s site_id=%s endpoint=%s batch_size=%d "
            "flush_interval_ms=%d page_views=%s web_vitals=%s errors=%s",
            AgentEventType.INIT_COMPLETED,
            version,
            settings["site_id"],
            settings["endpoint"],
            config.effective_batch_size,
            settings["flush_interval_ms"],
            settings["auto_page_views"],
            settings["auto_web_vitals"],
            settings["auto_errors"],
        )

    def log_init_skipped(
        self,
        *,
        reason: InitSkipReason,
        error: BaseException | None = None,
    ) -> None:
        """Log that initialisation was skipped and the agent stays dormant.

        Parameters
        ----------
        reason
            Why initialisation did not happen.
        error
            Underlying error, for configuration or scheduler failures.

        """
        if not self._enabled:
            return
        if error is None:
            log_info(logger, "[%s] reason=%s", AgentEventType.INIT_SKIPPED, reason)
            return
        log_warning(
            logger,
            "[%s] reason=%s error_type=%s error_message=%s",
            AgentEventType.INIT_SKIPPED,
            reason,
            type(error).__name__,
            str(error),
        )

    def log_event_queued(self, event: EventBase) -> None:
        """Log a record handed to the batcher."""
        if not self._enabled:
            return
        log_debug(
            logger,
            "[%s] type=%s pathname=%s",
            AgentEventType.EVENT_QUEUED,
            event.kind,
            event.pathname,
        )

    def log_collector_disabled(self, *, collector: str, error: BaseException) -> None:
        """Log a collector that failed and will no longer run."""
        if not self._enabled:
            return
        log_warning(
            logger,
            "[%s] collector=%s error_type=%s error_message=%s",
            AgentEventType.COLLECTOR_DISABLED,
            collector,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_call_failed(self, *, operation: str, error: BaseException) -> None:
        """Log a public agent call that failed and was absorbed."""
        if not self._enabled:
            return
        log_warning(
            logger,
            "[%s] operation=%s error_type=%s error_message=%s",
            AgentEventType.CALL_FAILED,
            operation,
            type(error).__name__,
            str(error),
            exc_info=error,
        )
