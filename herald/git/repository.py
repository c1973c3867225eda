"""Read commit identity from a git checkout without running git.

Concourse's git resource leaves a regular checkout in each input directory.
Herald only needs ``HEAD``, the ref it points at, and the ``origin`` remote,
all of which can be read straight from the on-disk layout. Nothing here ever
writes to the repository.
"""

from __future__ import annotations

import dataclasses as dc
import re
from pathlib import Path

from herald.errors import GitReadError, describe_read_error

from .config import GitConfig, read_git_config

_SYMREF_PREFIX = "ref: "
_BRANCH_PREFIX = "refs/heads/"
_GITDIR_PREFIX = "gitdir:"
_SHA_PATTERN = re.compile(r"^[0-9a-f]{40}(?:[0-9a-f]{24})?$")


@dc.dataclass(frozen=True, slots=True)
class GitCommit:
    """The commit a checkout's ``HEAD`` resolves to.

    Attributes
    ----------
    sha
        Full hexadecimal object name.
    branch
        Branch name when ``HEAD`` is a branch checkout; ``None`` when detached.

    """

    sha: str
    branch: str | None = None


def _check_sha(value: str, *, source: str) -> str:
    if not _SHA_PATTERN.match(value):
        raise GitReadError.invalid_sha(source, value)
    return value


@dc.dataclass(frozen=True, slots=True)
class GitCheckout:
    """Paths of a git working tree and its repository directories.

    ``git_dir`` holds the per-worktree files (``HEAD``); ``common_dir`` holds
    the shared ones (``config``, ``refs``, ``packed-refs``). They are the same
    directory except in linked worktrees.
    """

    work_tree: Path
    git_dir: Path
    common_dir: Path

    @classmethod
    def open(cls, work_tree: Path) -> GitCheckout | None:
        """Return the checkout rooted at ``work_tree``, or ``None`` if not a repo.

        Raises
        ------
        GitReadError
            If ``.git`` is a file that does not point at a git directory.

        """
        dot_git = work_tree / ".git"
        if dot_git.is_dir():
            git_dir = dot_git
        elif dot_git.is_file():
            git_dir = cls._follow_gitdir_file(dot_git)
        else:
            return None
        return cls(
            work_tree=work_tree,
            git_dir=git_dir,
            common_dir=cls._common_dir(git_dir),
        )

    @staticmethod
    def _follow_gitdir_file(dot_git: Path) -> Path:
        """Resolve a ``gitdir: <path>`` file as used by worktrees and submodules."""
        try:
            content = dot_git.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise GitReadError.gitdir_file(
                dot_git, describe_read_error(exc, dot_git)
            ) from exc
        if not content.startswith(_GITDIR_PREFIX):
            raise GitReadError.gitdir_file(dot_git, f"unexpected content {content!r}")
        target = Path(content.removeprefix(_GITDIR_PREFIX).strip())
        if not target.is_absolute():
            target = dot_git.parent / target
        if not target.is_dir():
            raise GitReadError.gitdir_file(dot_git, f"{target} is not a directory")
        return target

    @staticmethod
    def _common_dir(git_dir: Path) -> Path:
        commondir_file = git_dir / "commondir"
        if not commondir_file.is_file():
            return git_dir
        try:
            common = Path(commondir_file.read_text(encoding="utf-8").strip())
        except (OSError, UnicodeDecodeError) as exc:
            raise GitReadError.commondir_unreadable(commondir_file, exc) from exc
        return common if common.is_absolute() else git_dir / common

    def config(self) -> GitConfig:
        """Return the repository configuration."""
        return read_git_config(self.common_dir / "config")

    def head_commit(self) -> GitCommit:
        """Resolve ``HEAD`` to a commit.

        A symbolic ``HEAD`` is resolved through the loose ref file, falling
        back to ``packed-refs``; a detached ``HEAD`` already holds the SHA.

        Raises
        ------
        GitReadError
            Naming the stage that failed: reading ``HEAD``, parsing it, or
            reading the branch's SHA.

        """
        head_path = self.git_dir / "HEAD"
        try:
            head = head_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise GitReadError.head_unreadable(head_path, exc) from exc

        if head.startswith(_SYMREF_PREFIX):
            ref = head.removeprefix(_SYMREF_PREFIX).strip()
            branch = (
                ref.removeprefix(_BRANCH_PREFIX)
                if ref.startswith(_BRANCH_PREFIX)
                else None
            )
            return GitCommit(sha=self._resolve_ref(ref), branch=branch)

        if _SHA_PATTERN.match(head):
            return GitCommit(sha=head)
        raise GitReadError.head_malformed(head)

    def _resolve_ref(self, ref: str) -> str:
        """Return the SHA ``ref`` points at, trying loose then packed refs."""
        # Per-worktree refs live in git_dir; shared ones in common_dir.
        loose_path = self.common_dir / ref
        for candidate in dict.fromkeys((self.git_dir / ref, loose_path)):
            try:
                content = candidate.read_text(encoding="utf-8").strip()
            except FileNotFoundError:
                continue
            except (OSError, UnicodeDecodeError) as exc:
                raise GitReadError.branch_sha_unreadable(candidate, exc) from exc
            return _check_sha(content, source=f"ref {ref}")

        packed = self._packed_ref(ref)
        if packed is not None:
            return _check_sha(packed, source=f"packed-refs {ref}")

        missing = FileNotFoundError(2, "No such file or directory")
        raise GitReadError.branch_sha_unreadable(loose_path, missing)

    def _packed_ref(self, ref: str) -> str | None:
        """Return the SHA recorded for ``ref`` in ``packed-refs``, if any."""
        try:
            lines = (self.common_dir / "packed-refs").read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise GitReadError.branch_sha_unreadable(
                self.common_dir / "packed-refs", exc
            ) from exc
        for line in lines.splitlines():
            # Skip the header comment and "^<sha>" peeled-tag lines.
            if not line or line[0] in "#^":
                continue
            sha, _, name = line.partition(" ")
            if name.strip() == ref:
                return sha
        return None


def read_head_commit(work_tree: Path) -> GitCommit:
    """Resolve the commit checked out in ``work_tree``.

    Raises
    ------
    GitReadError
        If ``work_tree`` is not a git checkout or its metadata is unreadable.

    """
    checkout = GitCheckout.open(work_tree)
    if checkout is None:
        missing = FileNotFoundError(2, "No such file or directory")
        raise GitReadError.head_unreadable(work_tree / ".git" / "HEAD", missing)
    return checkout.head_commit()


__all__ = ["GitCheckout", "GitCommit", "read_head_commit"]
