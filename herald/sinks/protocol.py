"""Sinker protocol and the data every sink renders from.

A sink is one independent notification target. Sinks never raise anything
but :class:`~herald.errors.SinkError` for delivery problems, which lets the
dispatcher keep going after a failure.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from herald.config import PutParams, Source
    from herald.environment import BuildEnvironment
    from herald.inputs import ResolvedRepo


@dc.dataclass(frozen=True, slots=True)
class Notification:
    """Everything a sink needs to describe one build step outcome.

    Attributes
    ----------
    source
        Validated resource configuration.
    params
        Validated step parameters.
    repo
        The resolved checkout and the commit it is at.
    environment
        Concourse build metadata.
    chat_message_path
        Full path of ``chat_message_file``, when requested.

    """

    source: Source
    params: PutParams
    repo: ResolvedRepo
    environment: BuildEnvironment
    chat_message_path: Path | None = None


@typ.runtime_checkable
class Sinker(typ.Protocol):
    """A notification target that can attempt one delivery."""

    def send(self) -> None:
        """Deliver the notification.

        Raises
        ------
        SinkError
            If delivery failed; the dispatcher collects it.

        """
        ...
