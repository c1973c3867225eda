"""Client for Google Chat incoming webhooks.

A webhook URL carries its own ``key`` and ``token`` query parameters, which
makes the whole URL a secret: it is never logged nor put into error text.
"""

from __future__ import annotations

import urllib.parse

import httpx
import msgspec

from herald.errors import GoogleChatError
from herald.logging import get_logger, log_debug

_HTTP_ERROR_STATUS_THRESHOLD = 400
_DEFAULT_TIMEOUT_S = 20.0
_WEBHOOK_SCHEMES = frozenset({"http", "https"})
# Post into the thread named by threadKey, creating it on first use.
_REPLY_OPTION = "REPLY_MESSAGE_FALLBACK_TO_NEW_THREAD"

logger = get_logger(__name__)


class ChatMessage(msgspec.Struct, kw_only=True):
    """Request body of a webhook post."""

    text: str


def webhook_host(url: str) -> str:
    """Return only the host of ``url``, safe for logging."""
    return urllib.parse.urlsplit(url).hostname or "<invalid>"


class GoogleChatClient:
    """Post text messages to Google Chat spaces through webhooks.

    Parameters
    ----------
    timeout_s
        Request timeout in seconds.
    http_client
        Optional ``httpx.Client``; tests inject one backed by
        ``httpx.MockTransport``.

    """

    def __init__(
        self,
        *,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialise the client."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout_s)

    def close(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GoogleChatClient:
        """Return the client for use as a context manager."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close owned resources on exit."""
        self.close()

    def post_message(
        self, webhook_url: str, text: str, *, thread_key: str | None = None
    ) -> None:
        """Post ``text`` to the space behind ``webhook_url``.

        Parameters
        ----------
        webhook_url
            Incoming webhook URL, including its credentials.
        text
            Message text; Google Chat renders ``*bold*`` and ``<url|label>``.
        thread_key
            Messages sharing a key are grouped in one thread.

        Raises
        ------
        GoogleChatError
            On network failures or non-2xx responses.

        """
        try:
            url = httpx.URL(webhook_url)
        except httpx.InvalidURL as exc:
            raise GoogleChatError.invalid_webhook() from exc
        if url.scheme not in _WEBHOOK_SCHEMES or not url.host:
            raise GoogleChatError.invalid_webhook()
        if thread_key:
            url = url.copy_merge_params(
                {"threadKey": thread_key, "messageReplyOption": _REPLY_OPTION}
            )
        log_debug(
            logger,
            "posting chat message to %s (%d chars)",
            webhook_host(webhook_url),
            len(text),
        )
        try:
            response = self._client.post(
                url,
                content=msgspec.json.encode(ChatMessage(text=text)),
                headers={"Content-Type": "application/json; charset=UTF-8"},
            )
        except httpx.TimeoutException as exc:
            raise GoogleChatError.timeout() from exc
        except httpx.RequestError as exc:
            raise GoogleChatError.transport(exc) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GoogleChatError.http_error(response.status_code)
