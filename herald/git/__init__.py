"""On-disk git metadata readers that do not depend on a git binary."""

from __future__ import annotations

from .config import GitConfig, parse_git_config, read_git_config
from .remote import parse_github_remote, redact_remote_url
from .repository import GitCheckout, GitCommit, read_head_commit

__all__ = [
    "GitCheckout",
    "GitCommit",
    "GitConfig",
    "parse_git_config",
    "parse_github_remote",
    "read_git_config",
    "read_head_commit",
    "redact_remote_url",
]
