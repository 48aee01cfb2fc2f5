"""Slack integration for the tap bot."""

from .adapter import SlackAdapter
from .commands import register_listeners
from .formatter import format_reply

__all__ = ["SlackAdapter", "format_reply", "register_listeners"]
