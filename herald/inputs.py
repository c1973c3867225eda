"""Disambiguate the input directories of a ``put`` step.

Concourse materialises every input of a ``put`` step as a directory under a
common root. Exactly one of them must be the git checkout of the configured
GitHub repository; when ``chat_message_file`` is set, another one must hold
the message file.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from herald.common.sorted_set import SortedSet
from herald.config import split_chat_message_file
from herald.errors import ResolutionError
from herald.git import GitCheckout, parse_github_remote, redact_remote_url
from herald.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from pathlib import Path

    from herald.config import PutParams, Source

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class RepoCandidate:
    """An input directory whose ``origin`` remote names a GitHub repository."""

    directory_name: str
    checkout: GitCheckout
    owner: str
    repo: str


@dc.dataclass(frozen=True, slots=True)
class ResolvedInputs:
    """Outcome of input disambiguation.

    Attributes
    ----------
    repo
        The single input directory holding the configured repository.
    chat_message_path
        Full path of ``chat_message_file`` when it was requested.

    """

    repo: RepoCandidate
    chat_message_path: Path | None = None

    def read_commit(self) -> ResolvedRepo:
        """Read the commit checked out in the repository directory.

        Raises
        ------
        GitReadError
            If HEAD or the branch it points to cannot be resolved.

        """
        commit = self.repo.checkout.head_commit()
        log_debug(
            logger,
            "input %s: HEAD at %s (branch %s)",
            self.repo.directory_name,
            commit.sha,
            commit.branch or "<detached>",
        )
        return ResolvedRepo(
            directory_name=self.repo.directory_name,
            owner=self.repo.owner,
            repo=self.repo.repo,
            sha=commit.sha,
            branch=commit.branch,
        )


@dc.dataclass(frozen=True, slots=True)
class ResolvedRepo:
    """The repository to notify about, and the commit it is at."""

    directory_name: str
    owner: str
    repo: str
    sha: str
    branch: str | None = None

    @property
    def slug(self) -> str:
        """Return ``owner/repo``."""
        return f"{self.owner}/{self.repo}"

    @property
    def short_sha(self) -> str:
        """Return the first seven characters of the commit SHA."""
        return self.sha[:7]


def collect_input_dirs(root: Path) -> SortedSet:
    """Return the names of the directories directly under ``root``.

    Raises
    ------
    ResolutionError
        If ``root`` cannot be listed.

    """
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        raise ResolutionError.collecting(root, exc) from exc
    return SortedSet(entry.name for entry in entries if entry.is_dir())


def inspect_candidate(directory: Path) -> RepoCandidate | None:
    """Return ``directory`` as a repository candidate, or ``None``.

    Directories without ``.git`` and repositories whose ``origin`` remote is
    missing or not a GitHub-style URL are not candidates.

    Raises
    ------
    GitReadError
        If ``directory`` is a git repository whose config cannot be read.

    """
    checkout = GitCheckout.open(directory)
    if checkout is None:
        log_debug(logger, "input %s: not a git repository", directory.name)
        return None

    url = checkout.config().remote_url()
    if url is None:
        log_debug(logger, "input %s: no origin remote", directory.name)
        return None

    parsed = parse_github_remote(url)
    if parsed is None:
        log_debug(
            logger,
            "input %s: unrecognised origin URL %s",
            directory.name,
            redact_remote_url(url),
        )
        return None

    owner, repo = parsed
    return RepoCandidate(
        directory_name=directory.name, checkout=checkout, owner=owner, repo=repo
    )


def _matches(candidate: RepoCandidate, owner: str, repo: str) -> bool:
    # GitHub owner and repository names are case-insensitive.
    return (
        candidate.owner.casefold() == owner.casefold()
        and candidate.repo.casefold() == repo.casefold()
    )


def resolve_inputs(root: Path, source: Source, params: PutParams) -> ResolvedInputs:
    """Select the repository directory and the chat message file.

    Parameters
    ----------
    root
        Directory holding the step's input directories.
    source
        Validated resource configuration naming the target repository.
    params
        Validated step parameters, possibly naming ``chat_message_file``.

    Returns
    -------
    ResolvedInputs
        The matching repository and, if requested, the message file path.

    Raises
    ------
    ResolutionError
        If zero or several directories match the repository, or the
        ``chat_message_file`` directory is absent.
    GitReadError
        If a git repository among the inputs has unreadable metadata.

    """
    input_dirs = collect_input_dirs(root)
    log_debug(logger, "input directories: %s", input_dirs)

    matches: list[RepoCandidate] = []
    for name in input_dirs:
        candidate = inspect_candidate(root / name)
        if candidate is None:
            continue
        if _matches(candidate, source.owner, source.repo):
            matches.append(candidate)
        else:
            log_debug(
                logger,
                "input %s: remote %s/%s does not match",
                name,
                candidate.owner,
                candidate.repo,
            )

    if not matches:
        raise ResolutionError.missing_repo_dir(input_dirs, source.owner, source.repo)
    if len(matches) > 1:
        raise ResolutionError.too_many_repo_dirs(
            input_dirs, source.owner, source.repo
        )
    repo_candidate = matches[0]

    chat_message_path: Path | None = None
    if params.chat_message_file:
        msg_dir, msg_file = split_chat_message_file(params.chat_message_file)
        if msg_dir not in input_dirs.without(repo_candidate.directory_name):
            raise ResolutionError.chat_dir_not_found(
                input_dirs, params.chat_message_file
            )
        chat_message_path = root / msg_dir / msg_file

    return ResolvedInputs(repo=repo_candidate, chat_message_path=chat_message_path)
