"""Tap service: read-only chat commands and router assembly."""

import logging

from tapbot.blockchain.client import NodeClient
from tapbot.core.address import from_hex, parse_address, to_hex
from tapbot.core.wallet import WalletProvider
from tapbot.observability.metrics import FAUCET_BALANCE, NODE_SYNCED

from .distributor import Disburser
from .formatter import (
    format_balance,
    format_faucet_status,
    format_help,
    format_transaction,
    format_transactions,
)
from .router import Command, CommandResult, CommandRouter, ErrorKind

logger = logging.getLogger(__name__)

# Records returned by $dump_txs
DUMP_MAX_RESULTS = 100

INVALID_ADDRESS_MESSAGE = (
    "invalid address, enter a valid wallet address (40 hex chars with 0x prefix)"
)


def _invalid(text: str) -> CommandResult:
    return CommandResult.failure(ErrorKind.INVALID_INPUT, text)


def _transport(call: str, error: Exception) -> CommandResult:
    logger.error("Node call failed", extra={"call": call, "error": str(error)}, exc_info=True)
    return CommandResult.failure(ErrorKind.TRANSPORT, f"failed to {call}: {error}")


class TapService:
    """Handlers for every chat command.

    Parameters
    ----------
    client : NodeClient
        Node used for all lookups.
    wallet : WalletProvider
        Faucet signing account.
    disburser : Disburser
        Workflow run for bare-address requests.
    """

    def __init__(self, client: NodeClient, wallet: WalletProvider, disburser: Disburser):
        self._client = client
        self._wallet = wallet
        self._disburser = disburser
        self._help_text = format_help(disburser.cooldown)

    def build_router(self) -> CommandRouter:
        """Bind each command keyword to its handler."""
        return CommandRouter(
            {
                Command.BALANCE: self.get_balance,
                Command.HELP: self.get_help,
                Command.DUMP_TXS: self.dump_txs,
                Command.FAUCET_STATUS: self.get_faucet_status,
                Command.FAUCET_ADDR: self.get_faucet_address,
                Command.TX_INFO: self.get_tx_info,
            },
            transfer=self.request_funds,
        )

    async def get_balance(self, tokens: list[str]) -> CommandResult:
        if len(tokens) < 2:
            return _invalid("account name not provided")
        address = parse_address(tokens[1])
        if address is None:
            return _invalid(INVALID_ADDRESS_MESSAGE)

        try:
            state = await self._client.account_state(address)
        except Exception as e:
            return _transport("read account state", e)
        return CommandResult(format_balance(address, state))

    async def get_help(self, tokens: list[str]) -> CommandResult:
        return CommandResult(self._help_text)

    async def get_faucet_status(self, tokens: list[str]) -> CommandResult:
        try:
            state = await self._client.account_state(self._wallet.address)
        except Exception as e:
            return _transport("read account state", e)
        try:
            status = await self._client.node_status()
        except Exception as e:
            return _transport("read node status", e)

        FAUCET_BALANCE.set(state.projected_balance)
        NODE_SYNCED.set(1 if status.is_synced else 0)
        return CommandResult(format_faucet_status(state, status))

    async def get_faucet_address(self, tokens: list[str]) -> CommandResult:
        return CommandResult(str(self._wallet.address))

    async def get_tx_info(self, tokens: list[str]) -> CommandResult:
        if len(tokens) < 2:
            return _invalid("transaction id not provided")
        try:
            tx_id = from_hex(tokens[1])
        except ValueError:
            return _invalid("invalid transaction id")
        if not tx_id:
            return _invalid("invalid transaction id")

        try:
            state, record = await self._client.transaction_state(tx_id, True)
        except Exception as e:
            return _transport("look up transaction", e)
        if record is None:
            return _invalid(f"transaction {to_hex(tx_id)} not found")
        return CommandResult(format_transaction(record, state))

    async def dump_txs(self, tokens: list[str]) -> CommandResult:
        if len(tokens) < 2:
            return _invalid("account name not provided")
        address = parse_address(tokens[1])
        if address is None:
            return _invalid(INVALID_ADDRESS_MESSAGE)

        try:
            records, total = await self._client.mesh_transactions(address, 0, DUMP_MAX_RESULTS)
        except Exception as e:
            return _transport("read transactions", e)
        if not records:
            return CommandResult(f"no transactions found for {address}")

        logger.debug("Dumping transactions", extra={"address": str(address), "total": total})
        return CommandResult(format_transactions(records))

    async def request_funds(self, tokens: list[str]) -> CommandResult:
        result = await self._disburser.disburse(tokens[0])
        return result.to_command_result()
