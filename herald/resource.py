"""The ``check`` and ``in`` operations of the resource.

Herald only produces notifications, so these operations exist to satisfy
the Concourse protocol: ``check`` reports a placeholder version and ``in``
echoes back the version it was asked for.
"""

from __future__ import annotations

import typing as typ

import msgspec

from herald.config import (
    CheckRequest,
    GetRequest,
    GetResponse,
    Version,
    decode_request,
)
from herald.errors import ConfigError, HeraldError, OperationError, OutputError
from herald.logging import get_logger, log_debug

logger = get_logger(__name__)

DUMMY_VERSION = Version(ref="dummy")


def write_document(out: typ.TextIO, document: object) -> None:
    """Write ``document`` to ``out`` as one line of JSON.

    Raises
    ------
    OutputError
        If writing to ``out`` fails.

    """
    try:
        out.write(msgspec.json.encode(document).decode("utf-8"))
        out.write("\n")
        out.flush()
    except OSError as exc:
        raise OutputError.write(exc) from exc


def check(data: bytes, out: typ.TextIO) -> None:
    """Run the ``check`` operation.

    Raises
    ------
    OperationError
        Prefixed with ``check:`` when the request is invalid.

    """
    try:
        request = decode_request(data, CheckRequest)
        request.source.validate()
        log_debug(logger, "source:\n%s", request.source)
        versions = [request.version or DUMMY_VERSION]
        write_document(out, versions)
    except HeraldError as exc:
        raise OperationError("check", exc) from exc


def get(data: bytes, out: typ.TextIO) -> None:
    """Run the ``in`` operation.

    Raises
    ------
    OperationError
        Prefixed with ``get:`` when the request is invalid or carries no
        version.

    """
    try:
        request = decode_request(data, GetRequest)
        request.source.validate()
        log_debug(logger, "source:\n%s", request.source)
        if request.version is None:
            raise ConfigError.missing_version()
        write_document(out, GetResponse(version=request.version))
    except HeraldError as exc:
        raise OperationError("get", exc) from exc
