"""Google Chat sink: post a build message to a chat space.

Which message is sent:

- no webhook configured: nothing, the sink is disabled;
- ``chat_message`` or ``chat_message_file`` set: the custom text, always,
  optionally followed by the build summary;
- otherwise: the build summary, only for states listed in
  ``chat_notify_on_states`` (every state when the list is empty).
"""

from __future__ import annotations

import typing as typ

from herald.errors import GoogleChatError
from herald.logging import get_logger, log_debug, log_info
from herald.state import BuildState

if typ.TYPE_CHECKING:
    from herald.gchat import GoogleChatClient

    from .protocol import Notification

logger = get_logger(__name__)

_STATE_ICONS: dict[BuildState, str] = {
    BuildState.PENDING: "\N{LARGE YELLOW CIRCLE}",
    BuildState.SUCCESS: "\N{LARGE GREEN CIRCLE}",
    BuildState.FAILURE: "\N{LARGE RED CIRCLE}",
    BuildState.ERROR: "\N{LARGE ORANGE CIRCLE}",
}


def effective_webhook(notification: Notification) -> str:
    """Return the webhook to post to; ``params`` wins over ``source``."""
    return notification.params.gchat_webhook or notification.source.gchat_webhook


def has_custom_message(notification: Notification) -> bool:
    """Return True when the step supplies its own message text."""
    params = notification.params
    return bool(params.chat_message or params.chat_message_file)


def should_notify(notification: Notification) -> bool:
    """Return True when the build state is one the space wants to hear about.

    A custom message is always sent, whatever the state.
    """
    if has_custom_message(notification):
        return True
    states = notification.source.chat_notify_on_states
    return not states or notification.params.build_state in states


def append_summary(notification: Notification) -> bool:
    """Return whether to follow a custom message with the build summary."""
    override = notification.params.chat_append_summary
    if override is not None:
        return override
    return notification.source.chat_append_summary


def build_summary(notification: Notification) -> str:
    """Render the build summary block."""
    state = notification.params.build_state
    environment = notification.environment
    repo = notification.repo

    build = environment.build_name
    if environment.atc_external_url:
        build = f"<{environment.build_url()}|{environment.build_name}>"

    lines = [
        f"{_STATE_ICONS[state]} *{state.upper()}*",
        f"*pipeline:* {environment.pipeline_name}",
        f"*job:* {environment.job_name}",
        f"*build:* {build}",
        f"*commit:* {repo.slug}@{repo.short_sha}",
    ]
    if repo.branch:
        lines.append(f"*branch:* {repo.branch}")
    return "\n".join(lines)


def _read_message_file(notification: Notification) -> str:
    path = notification.chat_message_path
    if path is None:
        return ""
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise GoogleChatError.message_file(path, exc) from exc


def build_text(notification: Notification) -> str:
    """Return the full message text.

    Raises
    ------
    GoogleChatError
        If ``chat_message_file`` cannot be read.

    """
    parts = [
        part
        for part in (
            notification.params.chat_message.strip(),
            _read_message_file(notification),
        )
        if part
    ]
    if not parts:
        return build_summary(notification)
    if append_summary(notification):
        parts.append(build_summary(notification))
    return "\n\n".join(parts)


def thread_key(notification: Notification) -> str:
    """Return the key grouping all messages about one commit of a pipeline."""
    return f"{notification.environment.pipeline_name}-{notification.repo.short_sha}"


class GoogleChatSink:
    """Post the build message to a Google Chat space.

    Parameters
    ----------
    notification
        What to report.
    client
        Webhook client.

    """

    def __init__(self, notification: Notification, client: GoogleChatClient) -> None:
        """Initialise the sink."""
        self._notification = notification
        self._client = client

    def send(self) -> None:
        """Post the message, unless chat is disabled or the state is filtered.

        Raises
        ------
        GoogleChatError
            If the message file is unreadable or the post failed.

        """
        notification = self._notification
        webhook = effective_webhook(notification)
        if not webhook:
            log_debug(logger, "no gchat_webhook configured, skipping chat")
            return
        if not should_notify(notification):
            log_debug(
                logger,
                "state %s not in chat_notify_on_states, skipping chat",
                notification.params.build_state,
            )
            return

        text = build_text(notification)
        self._client.post_message(webhook, text, thread_key=thread_key(notification))
        log_info(
            logger, "chat message sent (state %s)", notification.params.build_state
        )
