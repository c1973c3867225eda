"""Client for the GitHub commit status REST API.

See https://docs.github.com/en/rest/commits/statuses for the endpoint.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx
import msgspec

from herald.errors import GitHubStatusError
from herald.logging import get_logger, log_debug

DEFAULT_API_URL = "https://api.github.com"
API_URL_ENV_VAR = "HERALD_GITHUB_API"

_HTTP_UNAUTHORIZED = 401
_HTTP_NOT_FOUND = 404
_HTTP_ERROR_STATUS_THRESHOLD = 400
# GitHub rejects longer status descriptions.
_MAX_DESCRIPTION_LENGTH = 140

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubStatusConfig:
    """Configuration for the GitHub commit status client.

    Attributes
    ----------
    api_url
        Base URL of the GitHub REST API. GitHub Enterprise and tests point
        this elsewhere through ``HERALD_GITHUB_API``.
    timeout_s
        Request timeout in seconds.
    user_agent
        ``User-Agent`` header sent with every request.

    """

    api_url: str = DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "herald/0.1"

    @property
    def is_overridden(self) -> bool:
        """Return True when ``api_url`` is not GitHub's public API."""
        return self.api_url != DEFAULT_API_URL

    @classmethod
    def from_env(cls) -> GitHubStatusConfig:
        """Build configuration, honouring the ``HERALD_GITHUB_API`` override."""
        api_url = os.environ.get(API_URL_ENV_VAR, "").strip()
        if not api_url:
            return cls()
        return cls(api_url=api_url.rstrip("/"))


class CommitStatus(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Request body of ``POST /repos/{owner}/{repo}/statuses/{sha}``."""

    state: typ.Literal["pending", "success", "failure", "error"]
    target_url: str = ""
    description: str = ""
    context: str = ""


class _ErrorBody(msgspec.Struct):
    message: str = ""


def _error_detail(response: httpx.Response) -> str:
    """Return GitHub's ``message`` field from an error response, if any."""
    try:
        return msgspec.json.decode(response.content, type=_ErrorBody).message
    except msgspec.DecodeError:
        return ""


class GitHubStatusClient:
    """Create commit statuses for one repository.

    Parameters
    ----------
    config
        API endpoint configuration.
    token
        GitHub access token with ``repo:status`` scope.
    http_client
        Optional ``httpx.Client``; tests inject one backed by
        ``httpx.MockTransport``.

    """

    def __init__(
        self,
        config: GitHubStatusConfig,
        token: str,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialise the client with its configuration and credentials."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.timeout_s)
        self._headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": config.user_agent,
        }

    def close(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GitHubStatusClient:
        """Return the client for use as a context manager."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close owned resources on exit."""
        self.close()

    def create_status(
        self, owner: str, repo: str, sha: str, status: CommitStatus
    ) -> None:
        """Set ``status`` on commit ``sha`` of ``owner/repo``.

        Raises
        ------
        GitHubStatusError
            Distinguishing rejected credentials, an unknown repository or
            commit, other HTTP errors, and network failures.

        """
        if len(status.description) > _MAX_DESCRIPTION_LENGTH:
            truncated = status.description[: _MAX_DESCRIPTION_LENGTH - 3] + "..."
            status = msgspec.structs.replace(status, description=truncated)
        url = f"{self._config.api_url}/repos/{owner}/{repo}/statuses/{sha}"
        log_debug(
            logger, "POST %s state=%s context=%s", url, status.state, status.context
        )
        try:
            response = self._client.post(
                url,
                content=msgspec.json.encode(status),
                headers={**self._headers, "Content-Type": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise GitHubStatusError.timeout() from exc
        except httpx.RequestError as exc:
            raise GitHubStatusError.transport(type(exc).__name__) from exc

        log_debug(logger, "GitHub responded HTTP %d", response.status_code)
        self._check_response(response, slug=f"{owner}/{repo}", sha=sha)

    @staticmethod
    def _check_response(response: httpx.Response, *, slug: str, sha: str) -> None:
        status_code = response.status_code
        if status_code == _HTTP_UNAUTHORIZED:
            raise GitHubStatusError.authentication(status_code)
        if status_code == _HTTP_NOT_FOUND:
            raise GitHubStatusError.not_found(status_code, slug, sha)
        if status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubStatusError.http_error(status_code, _error_detail(response))
