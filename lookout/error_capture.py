"""Turn uncaught errors and unhandled rejections into error records."""

from __future__ import annotations

import collections.abc as cabc
import traceback
import typing as typ

from lookout.events.bounds import MAX_MESSAGE_LENGTH, MAX_STACK_LENGTH, truncate
from lookout.events.models import ErrorEvent

if typ.TYPE_CHECKING:
    from lookout.events.envelope import EnvelopeFactory

UNKNOWN_ERROR_MESSAGE = "Unknown error"
UNHANDLED_REJECTION_MESSAGE = "Unhandled rejection"


def format_stack(error: BaseException) -> str | None:
    """Return the formatted traceback of ``error``, or ``None`` without one."""
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(error)).rstrip()


def error_location(error: BaseException) -> tuple[str | None, int | None]:
    """Return the file and line of the innermost frame that raised ``error``."""
    frames = traceback.extract_tb(error.__traceback__)
    if not frames:
        return (None, None)
    frame = frames[-1]
    return (frame.filename, frame.lineno)


class ErrorCollector:
    """Build bounded :class:`ErrorEvent` records, one per occurrence."""

    def __init__(
        self,
        *,
        envelopes: EnvelopeFactory,
        emit: cabc.Callable[[ErrorEvent], None],
    ) -> None:
        """Bind the collector to an envelope factory and emit callback."""
        self._envelopes = envelopes
        self._emit = emit

    def capture_error(
        self,
        error: BaseException | None = None,
        *,
        message: str | None = None,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> ErrorEvent:
        """Record an uncaught error.

        Parameters
        ----------
        error
            The exception, when the host has one. Supplies the stack and,
            unless given explicitly, the message and source location.
        message
            Error message reported by the host.
        source
            File or script URL where the error was raised.
        line
            Line number within ``source``.
        column
            Column number within ``source``.

        Returns
        -------
        ErrorEvent
            The record that was emitted.

        """
        stack: str | None = None
        if error is not None:
            stack = format_stack(error)
            if source is None and line is None:
                source, line = error_location(error)
            message = message or str(error) or type(error).__name__
        return self._record(
            message or UNKNOWN_ERROR_MESSAGE,
            stack=stack,
            source=source,
            line=line,
            column=column,
        )

    def capture_rejection(self, reason: object) -> ErrorEvent:
        """Record an unhandled rejection with an arbitrary reason."""
        if isinstance(reason, BaseException):
            message = str(reason) or type(reason).__name__
            return self._record(message, stack=format_stack(reason))
        text = "" if reason is None else str(reason)
        return self._record(text or UNHANDLED_REJECTION_MESSAGE)

    def _record(
        self,
        message: str,
        *,
        stack: str | None = None,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> ErrorEvent:
        event = ErrorEvent(
            **self._envelopes.build().fields(),
            message=truncate(message, MAX_MESSAGE_LENGTH),
            stack=None if stack is None else truncate(stack, MAX_STACK_LENGTH),
            source=source,
            line=line,
            column=column,
        )
        self._emit(event)
        return event
