"""Delivery errors.

Raised inside the transport only so failures can be classified and logged;
they never leave :class:`lookout.transport.client.DeliveryTransport`.
"""

from __future__ import annotations


class DeliveryError(RuntimeError):
    """Raised when a batch could not be delivered."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> DeliveryError:
        """Return an error for non-2xx ingestion responses."""
        return cls(
            f"ingestion endpoint returned HTTP {status_code}",
            status_code=status_code,
        )

    @classmethod
    def beacon_rejected(cls) -> DeliveryError:
        """Return an error when the beacon refused to queue the payload."""
        return cls("beacon send was not accepted")

    @classmethod
    def no_event_loop(cls) -> DeliveryError:
        """Return an error when no loop can run the request and no beacon exists."""
        return cls("no running event loop for the request and no beacon available")
