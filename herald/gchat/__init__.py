"""Google Chat webhook client."""

from __future__ import annotations

from .client import ChatMessage, GoogleChatClient, webhook_host

__all__ = ["ChatMessage", "GoogleChatClient", "webhook_host"]
