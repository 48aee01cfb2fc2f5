"""Slack adapter for the tap bot.

Features:
- Socket Mode connection (no public webhook needed)
- Ready announcement in the tap channel
- Async lifecycle management
"""

import logging
from abc import ABC, abstractmethod

from pydantic import SecretStr
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

logger = logging.getLogger(__name__)

READY_MESSAGE = "faucet bot ready"


class PlatformAdapter(ABC):
    """Chat platform connection the bot listens on."""

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect from the platform."""
        ...

    @property
    @abstractmethod
    def app(self):
        """Underlying platform app instance."""
        ...


class SlackAdapter(PlatformAdapter):
    """Slack Bolt app connected over Socket Mode.

    Parameters
    ----------
    bot_token : SecretStr
        Slack bot token (xoxb-...).
    app_token : SecretStr
        Slack app-level token (xapp-...) for Socket Mode.
    channel : str | None
        Tap channel ID; receives the ready announcement.
    """

    def __init__(
        self,
        bot_token: SecretStr,
        app_token: SecretStr,
        channel: str | None = None,
    ):
        self._app_token = app_token
        self._channel = channel
        self._app = AsyncApp(token=bot_token.get_secret_value())
        self._handler: AsyncSocketModeHandler | None = None

    @property
    def app(self) -> AsyncApp:
        return self._app

    @property
    def is_running(self) -> bool:
        return self._handler is not None

    async def start(self) -> None:
        """Connect via Socket Mode and announce readiness."""
        if self.is_running:
            logger.warning("Slack adapter already running")
            return

        handler = AsyncSocketModeHandler(self._app, self._app_token.get_secret_value())
        logger.info("Starting Slack adapter via Socket Mode")
        try:
            await handler.connect_async()
        except Exception as e:
            logger.error("Failed to connect Slack adapter", extra={"error": str(e)})
            raise
        self._handler = handler
        logger.info("Slack adapter connected")

        if self._channel:
            await self._app.client.chat_postMessage(channel=self._channel, text=READY_MESSAGE)

    async def stop(self) -> None:
        """Disconnect from Slack."""
        if self._handler is None:
            return
        logger.info("Stopping Slack adapter")
        await self._handler.close_async()
        self._handler = None
        logger.info("Slack adapter stopped")
