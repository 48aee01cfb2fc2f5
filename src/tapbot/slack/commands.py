"""Slack message listener for the tap channel.

Every message posted in the tap channel is handed to the command router.
Messages in other channels, edits and bot messages are ignored.
"""

import logging

from slack_bolt.async_app import AsyncApp

from tapbot.faucet.router import CommandRouter
from tapbot.observability.logging import clear_request_id, set_request_id

from .formatter import format_error, format_reply

logger = logging.getLogger(__name__)


def should_handle(event: dict, channel: str | None) -> bool:
    """Whether a message event is a user message in the tap channel."""
    if event.get("subtype") or event.get("bot_id"):
        return False
    if channel and event.get("channel") != channel:
        return False
    return bool(event.get("text"))


def register_listeners(app: AsyncApp, router: CommandRouter, channel: str | None = None) -> None:
    """Subscribe the router to Slack message events.

    Parameters
    ----------
    app : AsyncApp
        Slack Bolt async app instance.
    router : CommandRouter
        Router producing the replies.
    channel : str | None
        Tap channel ID. None listens everywhere the bot is invited.
    """

    @app.event("message")
    async def handle_message(event, say):
        """Handle a channel message."""
        if not should_handle(event, channel):
            return

        set_request_id(event.get("client_msg_id") or event.get("ts"))
        try:
            logger.info(
                "Received message",
                extra={"user_id": event.get("user"), "channel": event.get("channel")},
            )
            result = await router.dispatch(event["text"])
            if result is not None:
                await say(**format_reply(result))
        except Exception:
            logger.exception("Error handling message")
            await say(**format_error("An unexpected error occurred. Please try again."))
        finally:
            clear_request_id()
