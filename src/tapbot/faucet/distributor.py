"""Faucet disbursement workflow.

A request for funds passes these gates in order, the first failure wins:

1. Node is reachable and synced
2. Destination address is well formed and exactly 42 characters
3. Faucet account snapshot (balance and nonce) can be read
4. Faucet can cover amount plus gas
5. Destination is not cooling down

Then the transfer is submitted, the node's answer is classified, and only
an accepted transfer starts the destination's cooldown.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from tapbot.blockchain.client import NodeClient
from tapbot.blockchain.types import TransactionState
from tapbot.core.address import ADDRESS_TEXT_LENGTH, Address, parse_address, to_hex
from tapbot.core.wallet import WalletProvider
from tapbot.observability.metrics import DISBURSEMENTS, FAUCET_BALANCE, FUNDS_DISBURSED

from .formatter import format_transfer_rejected, format_transfer_sent
from .rate_limiter import RateLimitStore, format_wait
from .router import CommandResult, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_GAS_PRICE = 50
DEFAULT_GAS_LIMIT = 21000


class DisbursementStatus(str, Enum):
    """Outcome of a disbursement attempt."""

    SUCCESS = "success"
    NODE_UNAVAILABLE = "node_unavailable"
    NODE_NOT_SYNCED = "node_not_synced"
    INVALID_ADDRESS = "invalid_address"
    ACCOUNT_UNAVAILABLE = "account_unavailable"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    COOLDOWN = "cooldown"
    TX_REJECTED = "tx_rejected"


ERROR_KINDS = {
    DisbursementStatus.NODE_UNAVAILABLE: ErrorKind.TRANSPORT,
    DisbursementStatus.NODE_NOT_SYNCED: ErrorKind.PRECONDITION,
    DisbursementStatus.INVALID_ADDRESS: ErrorKind.INVALID_INPUT,
    DisbursementStatus.ACCOUNT_UNAVAILABLE: ErrorKind.TRANSPORT,
    DisbursementStatus.INSUFFICIENT_FUNDS: ErrorKind.PRECONDITION,
    DisbursementStatus.COOLDOWN: ErrorKind.PRECONDITION,
    DisbursementStatus.TX_REJECTED: ErrorKind.REJECTED,
}


@dataclass
class DisbursementResult:
    """Result of a disbursement attempt."""

    success: bool
    status: DisbursementStatus
    message: str
    address: Address | None = None
    tx_id: bytes | None = None
    state: TransactionState | None = None

    @property
    def error_kind(self) -> ErrorKind | None:
        return ERROR_KINDS.get(self.status)

    def to_command_result(self) -> CommandResult:
        return CommandResult(text=self.message, error=self.error_kind)


def _failure(status: DisbursementStatus, message: str, **kwargs) -> DisbursementResult:
    return DisbursementResult(success=False, status=status, message=message, **kwargs)


class Disburser:
    """Sends the configured amount from the faucet account.

    All submissions from the faucet are serialized so two concurrent
    requests cannot read the same nonce. The rate-limit store is owned by
    this object and only written after the node accepted a transfer.

    Parameters
    ----------
    client : NodeClient
        Node used for status, account reads and submission.
    wallet : WalletProvider
        Faucet signing account.
    rate_limiter : RateLimitStore
        Per-destination cooldown store.
    amount : int
        Base units sent per request.
    cooldown : timedelta
        Minimum time between two transfers to one address.
    gas_price : int
        Gas price of every transfer. Also the fee reserve in the balance check.
    gas_limit : int
        Gas limit of every transfer.
    """

    def __init__(
        self,
        client: NodeClient,
        wallet: WalletProvider,
        rate_limiter: RateLimitStore,
        amount: int,
        cooldown: timedelta,
        gas_price: int = DEFAULT_GAS_PRICE,
        gas_limit: int = DEFAULT_GAS_LIMIT,
    ):
        self._client = client
        self._wallet = wallet
        self._rate_limiter = rate_limiter
        self._amount = amount
        self._cooldown = cooldown
        self._gas_price = gas_price
        self._gas_limit = gas_limit
        self._submit_lock = asyncio.Lock()

    @property
    def amount(self) -> int:
        return self._amount

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    async def check_node(self) -> DisbursementResult | None:
        """Return a failure result unless the node can take transactions."""
        try:
            status = await self._client.node_status()
        except Exception as e:
            logger.error("Node status unavailable", extra={"error": str(e)}, exc_info=True)
            return _failure(DisbursementStatus.NODE_UNAVAILABLE, f"node not available: {e}")

        if not status.is_synced:
            return _failure(DisbursementStatus.NODE_NOT_SYNCED, "node not synced")
        return None

    async def disburse(self, address_text: str) -> DisbursementResult:
        """Send funds to a user-supplied address.

        Parameters
        ----------
        address_text : str
            Destination exactly as the user typed it.

        Returns
        -------
        DisbursementResult
            Outcome with a user-facing message.
        """
        result = await self._disburse(address_text)
        DISBURSEMENTS.labels(status=result.status.value).inc()
        return result

    async def _disburse(self, address_text: str) -> DisbursementResult:
        if error := await self.check_node():
            return error

        # Longer text would be cut to its trailing 20 bytes, a different address
        destination = None
        if len(address_text) == ADDRESS_TEXT_LENGTH:
            destination = parse_address(address_text)
        if destination is None:
            return _failure(
                DisbursementStatus.INVALID_ADDRESS,
                "address is invalid, please enter a 42 digit address with 0x prefix",
            )

        key = str(destination)
        async with self._submit_lock, self._rate_limiter.hold(key):
            return await self._submit(destination, key)

    async def _submit(self, destination: Address, key: str) -> DisbursementResult:
        faucet = self._wallet.address
        try:
            account = await self._client.account_state(faucet)
        except Exception as e:
            logger.error("Faucet account unavailable", extra={"error": str(e)}, exc_info=True)
            return _failure(
                DisbursementStatus.ACCOUNT_UNAVAILABLE,
                f"failed to read faucet account: {e}",
                address=destination,
            )

        FAUCET_BALANCE.set(account.projected_balance)
        if account.projected_balance < self._amount + self._gas_price:
            logger.warning(
                "Faucet balance too low",
                extra={"balance": account.projected_balance, "amount": self._amount},
            )
            return _failure(
                DisbursementStatus.INSUFFICIENT_FUNDS, "insufficient funds", address=destination
            )

        if self._rate_limiter.is_blocked(key):
            message = f"account {key} requested funds too soon"
            remaining = self._rate_limiter.remaining(key)
            if remaining is not None:
                message = f"{message}. {format_wait(remaining)}"
            return _failure(DisbursementStatus.COOLDOWN, message, address=destination)

        logger.info(
            "New transaction",
            extra={"to": key, "nonce": account.projected_counter, "amount": self._amount},
        )
        try:
            receipt = await self._client.transfer(
                destination,
                account.projected_counter,
                self._amount,
                self._gas_price,
                self._gas_limit,
                self._wallet.get_account(),
            )
        except Exception as e:
            logger.error(
                "Transfer failed", extra={"to": key, "error": str(e)}, exc_info=True
            )
            return _failure(
                DisbursementStatus.TX_REJECTED, format_transfer_rejected(str(e)), address=destination
            )

        logger.info(
            "Transaction submitted",
            extra={"tx_id": to_hex(receipt.tx_id), "state": receipt.state.label},
        )
        if receipt.state.is_failure:
            return _failure(
                DisbursementStatus.TX_REJECTED,
                format_transfer_rejected(receipt.state.label),
                address=destination,
                tx_id=receipt.tx_id,
                state=receipt.state,
            )

        self._rate_limiter.record_success(key, self._cooldown)
        FUNDS_DISBURSED.inc(self._amount)
        return DisbursementResult(
            success=True,
            status=DisbursementStatus.SUCCESS,
            message=format_transfer_sent(destination, receipt.tx_id),
            address=destination,
            tx_id=receipt.tx_id,
            state=receipt.state,
        )
