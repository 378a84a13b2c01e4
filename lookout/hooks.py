"""Route uncaught exceptions from the host process into an agent.

:func:`install_exception_hooks` chains the interpreter's ``sys.excepthook``
and, optionally, an asyncio loop's exception handler. Previous handlers keep
running after the agent records the error, and the returned callable puts
them back.
"""

from __future__ import annotations

import collections.abc as cabc
import sys
import typing as typ

if typ.TYPE_CHECKING:
    import asyncio
    import types

    from lookout.agent import Agent


def install_exception_hooks(
    agent: Agent,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> cabc.Callable[[], None]:
    """Report uncaught errors and unhandled task failures to ``agent``.

    Parameters
    ----------
    agent
        Receives :meth:`~lookout.agent.Agent.report_error` for uncaught
        exceptions and :meth:`~lookout.agent.Agent.report_rejection` for
        loop errors, the closest analogue of an unhandled rejection.
    loop
        Loop whose exception handler should be chained.

    Returns
    -------
    Callable[[], None]
        Restores the previous handlers.

    """
    previous_excepthook = sys.excepthook

    def excepthook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: types.TracebackType | None,
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            agent.report_error(exc)
        previous_excepthook(exc_type, exc, tb)

    sys.excepthook = excepthook

    previous_loop_handler = None if loop is None else loop.get_exception_handler()

    def loop_handler(
        active_loop: asyncio.AbstractEventLoop,
        context: dict[str, typ.Any],
    ) -> None:
        reason = context.get("exception") or context.get("message")
        agent.report_rejection(reason)
        if previous_loop_handler is not None:
            previous_loop_handler(active_loop, context)
        else:
            active_loop.default_exception_handler(context)

    if loop is not None:
        loop.set_exception_handler(loop_handler)

    def uninstall() -> None:
        if sys.excepthook is excepthook:
            sys.excepthook = previous_excepthook
        if loop is not None and loop.get_exception_handler() is loop_handler:
            loop.set_exception_handler(previous_loop_handler)

    return uninstall
