"""Process entry point for the Concourse resource.

Concourse runs ``/opt/resource/check``, ``/opt/resource/in`` and
``/opt/resource/out``; all three are links to the ``herald`` executable,
whose invoked name selects the operation. ``herald out <dir>`` works too.

The request is read from stdin, the response written to stdout, and
diagnostics go to stderr.
"""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

import msgspec

from herald.environment import BuildEnvironment
from herald.errors import ConfigError, HeraldError
from herald.github import API_URL_ENV_VAR, GitHubStatusConfig
from herald.logging import (
    configure_logging,
    get_logger,
    log_exception,
    log_info,
    log_warning,
)
from herald.put import ProdPutter, put
from herald.resource import check, get

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

COMMANDS = ("check", "in", "out")
_PROGRAM = "herald"


class _SourcePeek(msgspec.Struct):
    log_level: str = ""


class _RequestPeek(msgspec.Struct):
    source: _SourcePeek = msgspec.field(default_factory=_SourcePeek)


def peek_log_level(data: bytes) -> str:
    """Return ``source.log_level`` from a request body, ignoring all else.

    Raises
    ------
    ConfigError
        If ``data`` is not a JSON object with an object ``source``.

    """
    try:
        return msgspec.json.decode(data, type=_RequestPeek).source.log_level
    except msgspec.DecodeError as exc:
        raise ConfigError.peeking(exc) from exc


def parse_command(argv: cabc.Sequence[str]) -> tuple[str, list[str]]:
    """Return the operation selected by ``argv`` and its remaining arguments.

    Raises
    ------
    ConfigError
        If the invoked name is not one of :data:`COMMANDS`.

    """
    name = Path(argv[0]).name if argv else ""
    args = list(argv[1:])
    if name == _PROGRAM and args:
        name = args.pop(0)
    if name not in COMMANDS:
        raise ConfigError.unknown_command(name, COMMANDS)
    return name, args


def _run(argv: cabc.Sequence[str], stdin: typ.BinaryIO, stdout: typ.TextIO) -> None:
    command, args = parse_command(argv)
    data = stdin.read()

    log_level = peek_log_level(data)
    normalized, invalid = configure_logging(log_level)
    if invalid:
        log_warning(
            logger, "invalid log_level %r, falling back to %s", log_level, normalized
        )

    github_config = GitHubStatusConfig.from_env()
    if github_config.is_overridden:
        log_info(
            logger,
            "%s set: using GitHub API at %s",
            API_URL_ENV_VAR,
            github_config.api_url,
        )

    if command == "check":
        check(data, stdout)
    elif command == "in":
        get(data, stdout)
    else:
        with ProdPutter(github_config, BuildEnvironment.from_env()) as putter:
            put(putter, data, args, stdout)


def main(
    argv: cabc.Sequence[str] | None = None,
    stdin: typ.BinaryIO | None = None,
    stdout: typ.TextIO | None = None,
    stderr: typ.TextIO | None = None,
) -> int:
    """Run one resource operation.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        Full argument vector, executable name included. ``None`` defaults to
        ``sys.argv``.
    stdin, stdout, stderr : optional
        Streams; default to the process streams.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on any failure. Failures print one
        ``herald: error: <message>`` line on ``stderr``.

    """
    argv = sys.argv if argv is None else argv
    stdin = sys.stdin.buffer if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr
    try:
        _run(argv, stdin, stdout)
    except HeraldError as exc:
        print(f"{_PROGRAM}: error: {exc}", file=stderr)
        return 1
    except Exception as exc:  # noqa: BLE001
        # Anything else is a bug; its traceback goes to the log.
        log_exception(logger, f"unexpected {type(exc).__name__}", exc)
        print(f"{_PROGRAM}: error: {exc}", file=stderr)
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
