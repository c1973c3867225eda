"""Commit status sink: mirror the build state on the GitHub commit."""

from __future__ import annotations

import typing as typ

from herald.github import CommitStatus
from herald.logging import get_logger, log_info
from herald.state import BuildState

if typ.TYPE_CHECKING:
    from herald.environment import BuildEnvironment
    from herald.github import GitHubStatusClient

    from .protocol import Notification

logger = get_logger(__name__)

_GitHubState = typ.Literal["pending", "success", "failure", "error"]

_GITHUB_STATES: dict[BuildState, _GitHubState] = {
    BuildState.PENDING: "pending",
    BuildState.SUCCESS: "success",
    BuildState.FAILURE: "failure",
    BuildState.ERROR: "error",
}

_DEFAULT_CONTEXT = "default"


def status_context(prefix: str, context: str, environment: BuildEnvironment) -> str:
    """Return the commit status context.

    ``context`` falls back to the job name; ``prefix`` is joined in front of
    it with ``/``.

    Examples
    --------
    >>> status_context("ci", "", BuildEnvironment(job_name="unit"))
    'ci/unit'

    """
    name = context or environment.job_name or _DEFAULT_CONTEXT
    return f"{prefix}/{name}" if prefix else name


def build_commit_status(notification: Notification) -> CommitStatus:
    """Return the commit status describing ``notification``."""
    environment = notification.environment
    return CommitStatus(
        state=_GITHUB_STATES[notification.params.build_state],
        target_url=environment.build_url() if environment.atc_external_url else "",
        description=f"Build {environment.build_name}",
        context=status_context(
            notification.source.context_prefix,
            notification.params.context,
            environment,
        ),
    )


class GitHubCommitStatusSink:
    """Set a commit status on the resolved commit.

    Parameters
    ----------
    notification
        What to report.
    client
        GitHub client authenticated with the resource's access token.

    """

    def __init__(self, notification: Notification, client: GitHubStatusClient) -> None:
        """Initialise the sink."""
        self._notification = notification
        self._client = client

    def send(self) -> None:
        """Create the commit status.

        Raises
        ------
        GitHubStatusError
            If GitHub rejected the request or could not be reached.

        """
        repo = self._notification.repo
        status = build_commit_status(self._notification)
        self._client.create_status(repo.owner, repo.repo, repo.sha, status)
        log_info(
            logger,
            "commit status %s set on %s@%s (context %s)",
            status.state,
            repo.slug,
            repo.short_sha,
            status.context,
        )
