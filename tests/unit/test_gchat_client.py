"""Unit tests for the Google Chat webhook client."""

from __future__ import annotations

import json

import httpx
import pytest

from herald.errors import GoogleChatError
from herald.gchat import GoogleChatClient, webhook_host
from tests.helpers.bodies import WEBHOOK


def _make_client(
    status: int = 200,
) -> tuple[GoogleChatClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code=status, json={"name": "spaces/AAA/m/1"})

    http_client = httpx.Client(transport=httpx.MockTransport(_handler))
    return GoogleChatClient(http_client=http_client), requests


def _failing_client(exc_type: type[httpx.RequestError]) -> GoogleChatClient:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise exc_type(f"failed talking to {request.url}", request=request)

    return GoogleChatClient(
        http_client=httpx.Client(transport=httpx.MockTransport(_handler))
    )


class TestPostMessage:
    """Tests for GoogleChatClient.post_message."""

    def test_posts_text_as_json(self) -> None:
        """The message body is a JSON object with the text."""
        client, requests = _make_client()

        client.post_message(WEBHOOK, "hello *world*")

        assert len(requests) == 1, "Expected one request."
        request = requests[0]
        assert request.method == "POST", "Expected a POST."
        assert json.loads(request.content) == {"text": "hello *world*"}, (
            "Expected the text payload."
        )
        assert request.headers["Content-Type"].startswith("application/json"), (
            "Expected a JSON content type."
        )

    def test_keeps_webhook_credentials(self) -> None:
        """The key and token query parameters reach Google."""
        client, requests = _make_client()

        client.post_message(WEBHOOK, "hi")

        assert str(requests[0].url) == WEBHOOK, "Expected the webhook URL unchanged."

    def test_thread_key_is_added_to_the_query(self) -> None:
        """Threaded messages carry the key and a reply option."""
        client, requests = _make_client()

        client.post_message(WEBHOOK, "hi", thread_key="pipe-8f3c2a1")

        params = requests[0].url.params
        assert params["threadKey"] == "pipe-8f3c2a1", "Expected the thread key."
        assert params["messageReplyOption"] == (
            "REPLY_MESSAGE_FALLBACK_TO_NEW_THREAD"
        ), "Expected replies to fall back to a new thread."
        assert params["key"] == "k", "Expected the webhook's own params kept."

    @pytest.mark.parametrize("status", [400, 403, 429, 500])
    def test_http_error(self, status: int) -> None:
        """Non-2xx responses report only the status code."""
        client, _ = _make_client(status)

        with pytest.raises(GoogleChatError) as excinfo:
            client.post_message(WEBHOOK, "hi")

        assert str(excinfo.value) == f"gchat: webhook: HTTP {status}", (
            "Expected the status code only."
        )
        assert excinfo.value.status_code == status, "Expected the status code kept."

    def test_timeout(self) -> None:
        """Timeouts are reported without the URL."""
        client = _failing_client(httpx.ConnectTimeout)

        with pytest.raises(GoogleChatError) as excinfo:
            client.post_message(WEBHOOK, "hi")

        assert str(excinfo.value) == "gchat: webhook: request timed out", (
            "Expected the timeout message."
        )

    def test_transport_error_hides_the_webhook(self) -> None:
        """The exception text mentions the URL, the error must not."""
        client = _failing_client(httpx.ConnectError)

        with pytest.raises(GoogleChatError) as excinfo:
            client.post_message(WEBHOOK, "hi")

        assert str(excinfo.value) == "gchat: webhook: network error: ConnectError", (
            "Expected only the exception class."
        )

    def test_unusable_url(self) -> None:
        """A webhook that is not an absolute HTTP URL is rejected before sending."""
        client, requests = _make_client()

        with pytest.raises(GoogleChatError, match="^gchat: webhook: not an http"):
            client.post_message("not a url", "hi")

        assert requests == [], "Expected nothing sent."


class TestWebhookHost:
    """Tests for webhook_host."""

    def test_returns_host_only(self) -> None:
        """Only the host is safe to log."""
        assert webhook_host(WEBHOOK) == "chat.googleapis.com", "Expected the host."

    def test_invalid_url(self) -> None:
        """URLs without a host render a placeholder."""
        assert webhook_host("nope") == "<invalid>", "Expected the placeholder."
