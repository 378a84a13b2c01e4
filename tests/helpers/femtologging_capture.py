"""Capture femtologging output so tests can assert on structured events."""

from __future__ import annotations

import contextlib
import dataclasses
import threading
import time
import typing as typ

from femtologging import get_logger


@dataclasses.dataclass(slots=True)
class FemtoLogRecord:
    """One record delivered by the femtologging worker."""

    logger: str
    level: str
    message: str
    exc_info: object | None = None


class FemtoLogCapture:
    """Handler collecting records from the femtologging worker thread."""

    def __init__(self) -> None:
        """Start with no records."""
        self.records: list[FemtoLogRecord] = []
        self._condition = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Receive a plain record."""
        self._store(
            FemtoLogRecord(logger=str(logger), level=str(level), message=message)
        )

    def handle_record(self, record: dict[str, object]) -> None:
        """Receive a structured record."""
        self._store(
            FemtoLogRecord(
                logger=str(record.get("logger", "")),
                level=str(record.get("level", "")),
                message=str(record.get("message", "")),
                exc_info=record.get("exc_info"),
            )
        )

    def messages(self) -> list[str]:
        """Return the captured messages in arrival order."""
        with self._condition:
            return [record.message for record in self.records]

    def wait_for_count(self, count: int, timeout: float = 1.0) -> None:
        """Block until ``count`` records arrived, then assert it."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while len(self.records) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(timeout=remaining)
        assert len(self.records) >= count, (
            f"Expected {count} records, got {len(self.records)}"
        )

    def settle(self, timeout: float = 0.1) -> None:
        """Give the worker thread time to deliver anything still queued."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while (remaining := deadline - time.monotonic()) > 0:
                self._condition.wait(timeout=remaining)

    def _store(self, record: FemtoLogRecord) -> None:
        with self._condition:
            self.records.append(record)
            self._condition.notify_all()


@contextlib.contextmanager
def capture_femto_logs(
    logger_name: str,
    *,
    level: str = "TRACE",
) -> typ.Iterator[FemtoLogCapture]:
    """Attach a :class:`FemtoLogCapture` to ``logger_name`` for the block."""
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate
    logger.set_level(level)
    logger.set_propagate(False)
    capture = FemtoLogCapture()
    logger.add_handler(capture)
    try:
        yield capture
    finally:
        logger.remove_handler(capture)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
