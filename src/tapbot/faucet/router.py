"""Chat command routing.

A line of chat text is split on single spaces. The first token selects a
read-only command handler; a token that looks like an address starts a
transfer instead. Anything else gets no reply.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from tapbot.observability.metrics import COMMAND_DURATION, COMMANDS

logger = logging.getLogger(__name__)

TRANSFER_PREFIX = "0x"


class ErrorKind(str, Enum):
    """Classes of failure a command can report."""

    INVALID_INPUT = "invalid_input"
    PRECONDITION = "precondition"
    REJECTED = "rejected"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class CommandResult:
    """Reply text plus the error class, if the command failed."""

    text: str
    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: ErrorKind, text: str) -> "CommandResult":
        return cls(text=text, error=error)


class Command(str, Enum):
    """Recognized command keywords."""

    BALANCE = "$balance"
    HELP = "$help"
    DUMP_TXS = "$dump_txs"
    FAUCET_STATUS = "$faucet_status"
    FAUCET_ADDR = "$faucet_addr"
    TX_INFO = "$tx_info"


Handler = Callable[[list[str]], Awaitable[CommandResult]]


class CommandRouter:
    """Maps command keywords to handlers.

    Parameters
    ----------
    handlers : Mapping[Command, Handler]
        Handler for every command keyword.
    transfer : Handler
        Handler for a bare address, which requests funds.

    Raises
    ------
    ValueError
        If a command has no handler.
    """

    def __init__(self, handlers: Mapping[Command, Handler], transfer: Handler):
        missing = [command.value for command in Command if command not in handlers]
        if missing:
            raise ValueError(f"No handler for commands: {', '.join(missing)}")
        self._handlers = MappingProxyType(dict(handlers))
        self._transfer = transfer

    @property
    def handlers(self) -> Mapping[Command, Handler]:
        return self._handlers

    def resolve(self, tokens: list[str]) -> tuple[str, Handler] | None:
        """Pick the handler for a tokenized line.

        Returns
        -------
        tuple[str, Handler] | None
            Metric label and handler, or None if the line is not for the bot.
        """
        keyword = tokens[0]
        try:
            command = Command(keyword)
        except ValueError:
            if keyword.lower().startswith(TRANSFER_PREFIX):
                return "transfer", self._transfer
            return None
        return command.value.lstrip("$"), self._handlers[command]

    async def dispatch(self, line: str) -> CommandResult | None:
        """Run the command in a line of chat text.

        Parameters
        ----------
        line : str
            Raw message text.

        Returns
        -------
        CommandResult | None
            Handler result, or None when the line is ignored.
        """
        tokens = line.split(" ")
        resolved = self.resolve(tokens)
        if resolved is None:
            return None

        name, handler = resolved
        logger.info("Dispatching command", extra={"command": name, "args": tokens[1:]})

        with COMMAND_DURATION.labels(command=name).time():
            result = await handler(tokens)

        status = "ok" if result.ok else result.error.value
        COMMANDS.labels(command=name, status=status).inc()
        if not result.ok:
            logger.info(
                "Command failed",
                extra={"command": name, "error": status, "reply": result.text},
            )
        return result
