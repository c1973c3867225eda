"""Build sink notifications and recording API clients for tests."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from herald.config import PutParams, Source
from herald.environment import BuildEnvironment
from herald.inputs import ResolvedRepo
from herald.sinks import Notification
from tests.helpers.bodies import ACCESS_TOKEN, OWNER, REPO
from tests.helpers.git_repo import SHA_MAIN

if typ.TYPE_CHECKING:
    from pathlib import Path

    from herald.errors import SinkError
    from herald.github import CommitStatus

ENVIRONMENT = BuildEnvironment(
    build_id="1234",
    build_name="42",
    job_name="unit",
    pipeline_name="reef-ci",
    team_name="main",
    atc_external_url="https://ci.example.test",
)
BUILD_URL = "https://ci.example.test/teams/main/pipelines/reef-ci/jobs/unit/builds/42"


def make_notification(
    *,
    source: dict[str, typ.Any] | None = None,
    params: dict[str, typ.Any] | None = None,
    branch: str | None = "main",
    environment: BuildEnvironment = ENVIRONMENT,
    chat_message_path: Path | None = None,
) -> Notification:
    """Return a notification for ``octo/reef`` at ``SHA_MAIN``."""
    source_fields: dict[str, typ.Any] = {
        "owner": OWNER,
        "repo": REPO,
        "access_token": ACCESS_TOKEN,
        **(source or {}),
    }
    params_fields: dict[str, typ.Any] = {"state": "success", **(params or {})}
    return Notification(
        source=Source(**source_fields),
        params=PutParams(**params_fields),
        repo=ResolvedRepo(
            directory_name="a-repo",
            owner=OWNER,
            repo=REPO,
            sha=SHA_MAIN,
            branch=branch,
        ),
        environment=environment,
        chat_message_path=chat_message_path,
    )


@dc.dataclass(slots=True)
class RecordingStatusClient:
    """Stands in for GitHubStatusClient, recording created statuses."""

    error: SinkError | None = None
    calls: list[tuple[str, str, str, CommitStatus]] = dc.field(default_factory=list)

    def create_status(
        self, owner: str, repo: str, sha: str, status: CommitStatus
    ) -> None:
        self.calls.append((owner, repo, sha, status))
        if self.error is not None:
            raise self.error


@dc.dataclass(slots=True)
class RecordingChatClient:
    """Stands in for GoogleChatClient, recording posted messages."""

    error: SinkError | None = None
    calls: list[tuple[str, str, str | None]] = dc.field(default_factory=list)

    def post_message(
        self, webhook_url: str, text: str, *, thread_key: str | None = None
    ) -> None:
        self.calls.append((webhook_url, text, thread_key))
        if self.error is not None:
            raise self.error
