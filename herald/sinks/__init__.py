"""Notification sinks and their dispatcher."""

from __future__ import annotations

from .dispatcher import SinkDispatcher, dispatch
from .github_status import GitHubCommitStatusSink, build_commit_status, status_context
from .google_chat import GoogleChatSink, build_summary, build_text, should_notify
from .protocol import Notification, Sinker

__all__ = [
    "GitHubCommitStatusSink",
    "GoogleChatSink",
    "Notification",
    "SinkDispatcher",
    "Sinker",
    "build_commit_status",
    "build_summary",
    "build_text",
    "dispatch",
    "should_notify",
    "status_context",
]
