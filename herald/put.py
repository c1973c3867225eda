"""The ``out`` operation: notify every sink about one build step.

:func:`put` drives a :class:`Putter` through four stages: loading the
configuration, resolving the input directories, dispatching the sinks, and
writing the protocol output. Any failure is reported prefixed with ``put:``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from herald.config import PutResponse, Version, parse_put_request
from herald.errors import HeraldError, OperationError
from herald.gchat import GoogleChatClient
from herald.github import GitHubStatusClient
from herald.inputs import resolve_inputs
from herald.logging import get_logger, log_debug, log_info
from herald.resource import write_document
from herald.sinks import (
    GitHubCommitStatusSink,
    GoogleChatSink,
    Notification,
    dispatch,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from herald.config import PutRequest
    from herald.environment import BuildEnvironment
    from herald.github import GitHubStatusConfig
    from herald.inputs import ResolvedRepo
    from herald.sinks import Sinker

logger = get_logger(__name__)


class Putter(typ.Protocol):
    """The stages of the ``out`` operation."""

    def load_configuration(self, data: bytes, args: cabc.Sequence[str]) -> None:
        """Parse and validate the request body and arguments."""
        ...

    def process_input_dir(self) -> None:
        """Resolve the repository directory and its current commit."""
        ...

    def sinks(self) -> cabc.Sequence[Sinker]:
        """Return the notification sinks in dispatch order."""
        ...

    def output(self, out: typ.TextIO) -> None:
        """Write the protocol output document to ``out``."""
        ...


def put(
    putter: Putter, data: bytes, args: cabc.Sequence[str], out: typ.TextIO
) -> None:
    """Run the ``out`` operation.

    Parameters
    ----------
    putter
        Implementation of the pipeline stages.
    data
        Raw request body.
    args
        Command-line arguments after the executable name.
    out
        Stream receiving the protocol output.

    Raises
    ------
    OperationError
        Wrapping the first fatal error, or the sink errors once every sink
        has run.

    """
    try:
        putter.load_configuration(data, args)
        putter.process_input_dir()
        dispatch(putter.sinks())
        putter.output(out)
    except HeraldError as exc:
        raise OperationError("put", exc) from exc


class ProdPutter:
    """Production :class:`Putter` talking to GitHub and Google Chat.

    Parameters
    ----------
    github_config
        GitHub API endpoint configuration.
    environment
        Concourse build metadata.
    http_client
        Optional ``httpx.Client`` shared by both sinks; when omitted each
        API client owns its own.

    """

    def __init__(
        self,
        github_config: GitHubStatusConfig,
        environment: BuildEnvironment,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialise the putter; nothing is read until the stages run."""
        self._github_config = github_config
        self._environment = environment
        self._http_client = http_client
        self._request: PutRequest | None = None
        self._input_dir: Path | None = None
        self._repo: ResolvedRepo | None = None
        self._chat_message_path: Path | None = None
        self._clients: list[GitHubStatusClient | GoogleChatClient] = []

    @property
    def request(self) -> PutRequest:
        """Return the validated request."""
        if self._request is None:
            msg = "load_configuration() has not run"
            raise RuntimeError(msg)
        return self._request

    @property
    def repo(self) -> ResolvedRepo:
        """Return the resolved repository and commit."""
        if self._repo is None:
            msg = "process_input_dir() has not run"
            raise RuntimeError(msg)
        return self._repo

    def load_configuration(self, data: bytes, args: cabc.Sequence[str]) -> None:
        """Parse the request; the first argument is the inputs directory.

        Raises
        ------
        ConfigError
            If the request or the arguments are invalid.

        """
        request = parse_put_request(data, args)
        self._request = request
        self._input_dir = Path(args[0])
        log_debug(logger, "source:\n%s", request.source)
        log_debug(logger, "params:\n%s", request.params)
        log_debug(logger, "build environment:\n%s", self._environment)

    def process_input_dir(self) -> None:
        """Find the repository among the inputs and read its HEAD.

        Raises
        ------
        ResolutionError
            If the inputs do not hold exactly one matching repository, or
            the ``chat_message_file`` directory is absent.
        GitReadError
            If git metadata cannot be read.

        """
        request = self.request
        if self._input_dir is None:
            msg = "load_configuration() has not run"
            raise RuntimeError(msg)
        resolved = resolve_inputs(self._input_dir, request.source, request.params)
        self._repo = resolved.read_commit()
        self._chat_message_path = resolved.chat_message_path
        log_info(
            logger,
            "reporting %s for %s@%s",
            request.params.build_state,
            self._repo.slug,
            self._repo.short_sha,
        )

    def sinks(self) -> list[Sinker]:
        """Return the GitHub sink followed by the Google Chat sink."""
        request = self.request
        notification = Notification(
            source=request.source,
            params=request.params,
            repo=self.repo,
            environment=self._environment,
            chat_message_path=self._chat_message_path,
        )
        github = GitHubStatusClient(
            self._github_config,
            request.source.access_token,
            http_client=self._http_client,
        )
        gchat = GoogleChatClient(http_client=self._http_client)
        self._clients.extend((github, gchat))
        return [
            GitHubCommitStatusSink(notification, github),
            GoogleChatSink(notification, gchat),
        ]

    def output(self, out: typ.TextIO) -> None:
        """Write ``{"version": {"ref": <sha>}}`` to ``out``.

        Raises
        ------
        OutputError
            If writing to ``out`` fails.

        """
        write_document(out, PutResponse(version=Version(ref=self.repo.sha)))

    def close(self) -> None:
        """Close the API clients created by :meth:`sinks`."""
        while self._clients:
            self._clients.pop().close()

    def __enter__(self) -> ProdPutter:
        """Return the putter for use as a context manager."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close the API clients on exit."""
        self.close()
