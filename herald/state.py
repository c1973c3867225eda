"""Build states reported to notification sinks."""

from __future__ import annotations

import enum

from herald.errors import InvalidBuildStateError


class BuildState(enum.StrEnum):
    """Closed set of build states a ``put`` step can report.

    The model only guarantees validity; each sink owns its mapping onto its
    own wire vocabulary.
    """

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"

    @classmethod
    def parse(cls, value: object) -> BuildState:
        """Return the state named exactly by ``value``.

        Raises
        ------
        InvalidBuildStateError
            If ``value`` is not one of the four lowercase literals.

        """
        if not isinstance(value, str):
            raise InvalidBuildStateError(value)
        return cls(value)

    @classmethod
    def _missing_(cls, value: object) -> BuildState:
        raise InvalidBuildStateError(value)
