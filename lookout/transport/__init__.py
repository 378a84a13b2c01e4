"""Delivery of flushed batches to the ingestion endpoint."""

from __future__ import annotations

from .beacon import DEFAULT_BEACON_TIMEOUT_S, Beacon, HttpBeacon
from .client import (
    JSON_CONTENT_TYPE,
    DeliveryTransport,
    beacon_url,
    request_headers,
)
from .errors import DeliveryError
from .observability import (
    DeliveryErrorCategory,
    DeliveryEventLogger,
    DeliveryEventType,
    DeliveryPath,
    categorize_delivery_error,
)

__all__ = [
    "DEFAULT_BEACON_TIMEOUT_S",
    "JSON_CONTENT_TYPE",
    "Beacon",
    "DeliveryError",
    "DeliveryErrorCategory",
    "DeliveryEventLogger",
    "DeliveryEventType",
    "DeliveryPath",
    "DeliveryTransport",
    "HttpBeacon",
    "beacon_url",
    "categorize_delivery_error",
    "request_headers",
]
