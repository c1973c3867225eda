"""Herald error hierarchy.

Errors raised before any sink runs (``ConfigError``, ``ResolutionError``,
``GitReadError``) abort the ``out`` pipeline. ``SinkError`` instances are
collected by the dispatcher so one failing sink never stops the others.
``OutputError`` is raised after the sinks have already run.

No message built here may contain an access token or a webhook URL.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from herald.common.sorted_set import SortedSet


def describe_read_error(exc: OSError | UnicodeDecodeError, path: Path | str) -> str:
    """Render a failed read of ``path`` as ``open <path>: <reason>``.

    Files that open but do not decode render as ``read <path>: ...``.
    """
    if isinstance(exc, UnicodeDecodeError):
        return f"read {path}: not valid UTF-8 (byte {exc.start})"
    reason = exc.strerror or str(exc)
    return f"open {path}: {reason[:1].lower()}{reason[1:]}"


class HeraldError(Exception):
    """Base class for all herald errors."""


class ConfigError(HeraldError):
    """Raised when the request or the command-line arguments are invalid."""

    @classmethod
    def parsing(cls, detail: object) -> ConfigError:
        """Return an error for a body that fails JSON or schema decoding."""
        return cls(f"parsing request: {detail}")

    @classmethod
    def missing_keys(cls, keys: cabc.Sequence[str]) -> ConfigError:
        """Return an error naming every missing mandatory source key."""
        return cls(f"source: missing keys: {', '.join(keys)}")

    @classmethod
    def wrong_chat_message_file(cls, value: str) -> ConfigError:
        """Return an error for a ``chat_message_file`` not shaped ``<dir>/<file>``."""
        return cls(
            f"chat_message_file: wrong format: have: {value}, "
            "want: path of the form: <dir>/<file>"
        )

    @classmethod
    def missing_input_directory(cls) -> ConfigError:
        """Return an error when ``out`` is invoked without an input directory."""
        return cls("arguments: missing input directory")

    @classmethod
    def missing_version(cls) -> ConfigError:
        """Return an error when ``in`` is invoked without a version."""
        return cls("missing source version")

    @classmethod
    def peeking(cls, detail: object) -> ConfigError:
        """Return an error for a body too malformed to look up ``log_level``."""
        return cls(f"peeking into JSON for log_level: {detail}")

    @classmethod
    def unknown_command(cls, name: str, commands: cabc.Iterable[str]) -> ConfigError:
        """Return an error for an executable name that selects no operation."""
        return cls(f"invoked as '{name}'; want: one of [{' '.join(commands)}]")


class InvalidBuildStateError(HeraldError, ValueError):
    """Raised when text does not name a known build state.

    Subclasses ``ValueError`` so msgspec reports it as a validation error
    when raised while decoding a request.
    """

    def __init__(self, value: object) -> None:
        """Initialise with the rejected value."""
        self.value = value
        super().__init__(f"invalid build state: {value}")


class ResolutionError(HeraldError):
    """Raised when the input directories cannot be disambiguated."""

    @classmethod
    def collecting(cls, root: Path, exc: OSError) -> ResolutionError:
        """Return an error when the input root cannot be listed."""
        reason = describe_read_error(exc, root)
        return cls(f"collecting directories in {root}: {reason}")

    @classmethod
    def missing_repo_dir(
        cls, have: SortedSet, owner: str, repo: str
    ) -> ResolutionError:
        """Return an error when no input directory is the configured repo."""
        return cls(
            "put:inputs: missing directory for GitHub repo: "
            f"have: {have}, GitHub: {owner}/{repo}"
        )

    @classmethod
    def too_many_repo_dirs(
        cls, have: SortedSet, owner: str, repo: str
    ) -> ResolutionError:
        """Return an error when several input directories are the configured repo."""
        return cls(
            "put:inputs: want only directory for GitHub repo: "
            f"have: {have}, GitHub: {owner}/{repo}"
        )

    @classmethod
    def chat_dir_not_found(
        cls, have: SortedSet, chat_message_file: str
    ) -> ResolutionError:
        """Return an error when the ``chat_message_file`` directory is absent."""
        return cls(
            "put:inputs: directory for chat_message_file not found: "
            f"have: {have}, chat_message_file: {chat_message_file}"
        )


class GitReadError(HeraldError):
    """Raised when on-disk git metadata is unreadable or malformed.

    Messages name the stage that failed so operators can tell a
    misconfigured pipeline from a corrupted checkout.
    """

    @classmethod
    def config_unreadable(
        cls, path: Path, exc: OSError | UnicodeDecodeError
    ) -> GitReadError:
        """Return an error when ``.git/config`` cannot be opened."""
        return cls(f"parsing .git/config: {describe_read_error(exc, path)}")

    @classmethod
    def config_malformed(cls, path: Path, line_no: int, line: str) -> GitReadError:
        """Return an error for a ``.git/config`` line that does not parse."""
        return cls(f"parsing .git/config: {path}:{line_no}: unexpected line: {line!r}")

    @classmethod
    def gitdir_file(cls, path: Path, detail: str) -> GitReadError:
        """Return an error for a ``.git`` file that does not point at a git dir."""
        return cls(f"reading .git file {path}: {detail}")

    @classmethod
    def commondir_unreadable(
        cls, path: Path, exc: OSError | UnicodeDecodeError
    ) -> GitReadError:
        """Return an error when a worktree's ``commondir`` file cannot be read."""
        return cls(f"reading commondir: {describe_read_error(exc, path)}")

    @classmethod
    def head_unreadable(
        cls, path: Path, exc: OSError | UnicodeDecodeError
    ) -> GitReadError:
        """Return an error when ``HEAD`` cannot be opened."""
        return cls(f"git commit: read HEAD: {describe_read_error(exc, path)}")

    @classmethod
    def head_malformed(cls, content: str) -> GitReadError:
        """Return an error when ``HEAD`` is neither a symbolic ref nor a SHA."""
        return cls(f"git commit: HEAD: unexpected content: {content!r}")

    @classmethod
    def branch_sha_unreadable(
        cls, path: Path, exc: OSError | UnicodeDecodeError
    ) -> GitReadError:
        """Return an error when the branch ref is neither loose nor packed."""
        reason = describe_read_error(exc, path)
        return cls(f"git commit: branch checkout: read SHA file: {reason}")

    @classmethod
    def invalid_sha(cls, source: str, value: str) -> GitReadError:
        """Return an error for ref contents that are not a hex object name."""
        return cls(f"git commit: {source}: invalid SHA: {value!r}")


class SinkError(HeraldError):
    """Raised when a notification sink fails to deliver."""


class GitHubStatusError(SinkError):
    """Raised when the GitHub commit status API rejects or misses a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def authentication(cls, status_code: int) -> GitHubStatusError:
        """Return an error for rejected credentials."""
        return cls(
            f"github: commit status: HTTP {status_code}: "
            "authentication failed, check access_token",
            status_code=status_code,
        )

    @classmethod
    def not_found(cls, status_code: int, slug: str, sha: str) -> GitHubStatusError:
        """Return an error when the repository or commit is unknown to GitHub."""
        return cls(
            f"github: commit status: HTTP {status_code}: {slug}@{sha} not found "
            "(the repository may be private and the access_token lacks "
            "repo:status scope)",
            status_code=status_code,
        )

    @classmethod
    def http_error(cls, status_code: int, detail: str) -> GitHubStatusError:
        """Return an error for any other non-2xx response."""
        message = f"github: commit status: HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status_code=status_code)

    @classmethod
    def timeout(cls) -> GitHubStatusError:
        """Return an error for a request that timed out."""
        return cls("github: commit status: request timed out")

    @classmethod
    def transport(cls, detail: str) -> GitHubStatusError:
        """Return an error for network failures (DNS, connection, TLS)."""
        return cls(f"github: commit status: network error: {detail}")


class GoogleChatError(SinkError):
    """Raised when a Google Chat webhook call fails.

    Webhook URLs embed their credentials, so messages only carry the
    status code or the exception class name.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> GoogleChatError:
        """Return an error for a non-2xx webhook response."""
        return cls(f"gchat: webhook: HTTP {status_code}", status_code=status_code)

    @classmethod
    def timeout(cls) -> GoogleChatError:
        """Return an error for a webhook call that timed out."""
        return cls("gchat: webhook: request timed out")

    @classmethod
    def transport(cls, exc: BaseException) -> GoogleChatError:
        """Return an error for network failures, naming only the failure kind."""
        return cls(f"gchat: webhook: network error: {type(exc).__name__}")

    @classmethod
    def invalid_webhook(cls) -> GoogleChatError:
        """Return an error for a webhook that is not an absolute http(s) URL."""
        return cls("gchat: webhook: not an http(s) URL")

    @classmethod
    def message_file(
        cls, path: Path, exc: OSError | UnicodeDecodeError
    ) -> GoogleChatError:
        """Return an error when ``chat_message_file`` cannot be read."""
        reason = describe_read_error(exc, path)
        return cls(f"gchat: reading chat_message_file: {reason}")


class MultipleSinkErrors(SinkError):
    """Raised when two or more sinks failed in one dispatch.

    Parameters
    ----------
    errors
        The sink errors in dispatch order.

    """

    errors: tuple[SinkError, ...]

    def __init__(self, errors: cabc.Sequence[SinkError]) -> None:
        """Initialise with the collected errors, one per indented line."""
        self.errors = tuple(errors)
        lines = "".join(f"\n\t{error}" for error in self.errors)
        super().__init__(f"multiple errors:{lines}")


class OutputError(HeraldError):
    """Raised when the protocol output document cannot be written."""

    @classmethod
    def write(cls, exc: OSError) -> OutputError:
        """Return an error for a failed write to the output stream."""
        return cls(f"writing output: {exc.strerror or exc}")


class OperationError(HeraldError):
    """A failure of one resource operation, prefixed with its name.

    Attributes
    ----------
    operation
        ``check``, ``get``, or ``put``.
    cause
        The underlying herald error.

    """

    def __init__(self, operation: str, cause: HeraldError) -> None:
        """Initialise from the failing operation and its cause."""
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")
