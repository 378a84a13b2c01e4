"""Event queue and batch flushing policy."""

from lookout.batching.batcher import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_FLUSH_INTERVAL_MS,
    BatcherState,
    BatchTransport,
    EventBatcher,
)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_FLUSH_INTERVAL_MS",
    "BatchTransport",
    "BatcherState",
    "EventBatcher",
]
