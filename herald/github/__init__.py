"""GitHub commit status API client."""

from __future__ import annotations

from .client import (
    API_URL_ENV_VAR,
    DEFAULT_API_URL,
    CommitStatus,
    GitHubStatusClient,
    GitHubStatusConfig,
)

__all__ = [
    "API_URL_ENV_VAR",
    "DEFAULT_API_URL",
    "CommitStatus",
    "GitHubStatusClient",
    "GitHubStatusConfig",
]
