"""Host runtime integrations."""

from .opencode import chat_headers, plugin

__all__ = ["chat_headers", "plugin"]
