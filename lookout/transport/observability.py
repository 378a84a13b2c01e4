"""Observability primitives for batch delivery.

Provides error categorization and structured debug logging for the two
delivery paths. Nothing here influences delivery: a failed batch is dropped
whatever its category, and the logger is silent unless the agent runs in
debug mode.
"""

from __future__ import annotations

import enum

import httpx

from lookout.logging import get_logger, log_debug, log_warning

from .errors import DeliveryError

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class DeliveryPath(enum.StrEnum):
    """How a batch left the agent."""

    FETCH = "fetch"
    BEACON = "beacon"


class DeliveryEventType(enum.StrEnum):
    """Structured log event types for batch delivery."""

    BATCH_DISPATCHED = "delivery.batch.dispatched"
    BATCH_DELIVERED = "delivery.batch.delivered"
    BATCH_FAILED = "delivery.batch.failed"
    BATCH_DROPPED = "delivery.batch.dropped"
    BEACON_COMPLETED = "delivery.beacon.completed"
    BEACON_FAILED = "delivery.beacon.failed"


class DeliveryErrorCategory(enum.StrEnum):
    """Categories for delivery failures."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    NETWORK = "network"
    UNKNOWN = "unknown"


def categorize_delivery_error(exc: BaseException) -> DeliveryErrorCategory:
    """Categorize a delivery failure for debug logs.

    Returns:
        DeliveryErrorCategory describing the failure.

    """
    if isinstance(exc, DeliveryError):
        if exc.status_code is None:
            return DeliveryErrorCategory.UNKNOWN
        if exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return DeliveryErrorCategory.TRANSIENT
        return DeliveryErrorCategory.CLIENT_ERROR
    if isinstance(exc, httpx.TransportError):
        return DeliveryErrorCategory.NETWORK
    return DeliveryErrorCategory.UNKNOWN


class DeliveryEventLogger:
    """Emit structured delivery events via femtologging when enabled."""

    def __init__(self, *, enabled: bool) -> None:
        """Create a logger that writes only when ``enabled`` is true."""
        self._enabled = enabled

    def log_dispatched(self, *, path: DeliveryPath, count: int, size: int) -> None:
        """Log a batch handed to a delivery path."""
        if not self._enabled:
            return
        log_debug(
            logger,
            "[%s] path=%s events=%d bytes=%d",
            DeliveryEventType.BATCH_DISPATCHED,
            path,
            count,
            size,
        )

    def log_delivered(self, *, path: DeliveryPath, count: int, status: int) -> None:
        """Log a batch the endpoint accepted."""
        if not self._enabled:
            return
        log_debug(
            logger,
            "[%s] path=%s events=%d status=%d",
            DeliveryEventType.BATCH_DELIVERED,
            path,
            count,
            status,
        )

    def log_failed(
        self,
        *,
        path: DeliveryPath,
        count: int,
        error: BaseException,
    ) -> None:
        """Log a batch that was attempted and lost."""
        if not self._enabled:
            return
        log_warning(
            logger,
            "[%s] path=%s events=%d category=%s error_type=%s error_message=%s",
            DeliveryEventType.BATCH_FAILED,
            path,
            count,
            categorize_delivery_error(error),
            type(error).__name__,
            str(error),
        )

    def log_dropped(self, *, count: int, error: BaseException) -> None:
        """Log a batch that no delivery path could take."""
        if not self._enabled:
            return
        log_warning(
            logger,
            "[%s] events=%d error_message=%s",
            DeliveryEventType.BATCH_DROPPED,
            count,
            str(error),
        )

    def log_beacon_completed(self, *, size: int, status: int) -> None:
        """Log a queued beacon request the endpoint answered."""
        if not self._enabled:
            return
        log_debug(
            logger,
            "[%s] bytes=%d status=%d",
            DeliveryEventType.BEACON_COMPLETED,
            size,
            status,
        )

    def log_beacon_failed(self, *, size: int, error: BaseException) -> None:
        """Log a queued beacon request that was lost on the worker."""
        if not self._enabled:
            return
        log_warning(
            logger,
            "[%s] bytes=%d category=%s error_type=%s error_message=%s",
            DeliveryEventType.BEACON_FAILED,
            size,
            categorize_delivery_error(error),
            type(error).__name__,
            str(error),
        )
