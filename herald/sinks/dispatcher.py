"""Run every sink once and aggregate their failures."""

from __future__ import annotations

import typing as typ

from herald.errors import MultipleSinkErrors, SinkError
from herald.logging import get_logger, log_debug, log_error

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .protocol import Sinker

logger = get_logger(__name__)


class SinkDispatcher:
    """Deliver a notification through an ordered list of sinks.

    Sinks run sequentially in registration order, each exactly once, and a
    failure never prevents the following sinks from running. The order also
    fixes the order of messages in the aggregated error.
    """

    def __init__(self, sinks: cabc.Sequence[Sinker]) -> None:
        """Initialise with the sinks in dispatch order."""
        self._sinks = tuple(sinks)

    @property
    def sinks(self) -> tuple[Sinker, ...]:
        """Return the sinks in dispatch order."""
        return self._sinks

    def run(self) -> None:
        """Run every sink.

        Raises
        ------
        SinkError
            The failing sink's own error when exactly one sink failed.
        MultipleSinkErrors
            When two or more sinks failed, listing each in dispatch order.

        """
        errors: list[SinkError] = []
        for sink in self._sinks:
            name = type(sink).__name__
            try:
                sink.send()
            except SinkError as exc:
                log_error(logger, "%s failed: %s", name, exc)
                errors.append(exc)
            else:
                log_debug(logger, "%s done", name)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise MultipleSinkErrors(errors)


def dispatch(sinks: cabc.Sequence[Sinker]) -> None:
    """Run ``sinks`` in order; see :meth:`SinkDispatcher.run`."""
    SinkDispatcher(sinks).run()
