"""Node client contract and its JSON-RPC implementation."""

import logging
from abc import ABC, abstractmethod

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3RPCError

from tapbot.core.address import Address, from_hex, to_hex
from tapbot.observability.metrics import RPC_DURATION

from .types import AccountState, NodeStatus, TransactionRecord, TransactionState, TransferReceipt

logger = logging.getLogger(__name__)

# Node error phrases that map to a definite transaction state
REJECTION_PHRASES = (
    ("insufficient funds", TransactionState.INSUFFICIENT_FUNDS),
    ("nonce too low", TransactionState.CONFLICTING),
    ("already known", TransactionState.CONFLICTING),
    ("known transaction", TransactionState.CONFLICTING),
    ("replacement transaction underpriced", TransactionState.CONFLICTING),
)


def classify_rejection(message: str) -> TransactionState | None:
    """Map a node error message to a transaction state.

    Parameters
    ----------
    message : str
        Error text returned by the node.

    Returns
    -------
    TransactionState | None
        The matching state, or None if the error is not a recognized
        rejection.
    """
    lowered = message.lower()
    for phrase, state in REJECTION_PHRASES:
        if phrase in lowered:
            return state
    return None


class NodeClient(ABC):
    """Capabilities the faucet needs from a blockchain node."""

    @abstractmethod
    async def node_status(self) -> NodeStatus:
        """Get node sync state, peer count and top layer."""
        ...

    @abstractmethod
    async def account_state(self, address: Address) -> AccountState:
        """Get current and projected state of an account."""
        ...

    @abstractmethod
    async def transfer(
        self,
        recipient: Address,
        nonce: int,
        amount: int,
        gas_price: int,
        gas_limit: int,
        account: LocalAccount,
    ) -> TransferReceipt:
        """Sign and submit a coin transfer.

        Parameters
        ----------
        recipient : Address
            Destination address.
        nonce : int
            Sender nonce to use.
        amount : int
            Amount in base units.
        gas_price : int
            Gas price in base units.
        gas_limit : int
            Maximum gas for the transaction.
        account : LocalAccount
            Signing account of the sender.

        Returns
        -------
        TransferReceipt
            Transaction id and the state reported by the node.
        """
        ...

    @abstractmethod
    async def transaction_state(
        self, tx_id: bytes, include_tx: bool = True
    ) -> tuple[TransactionState, TransactionRecord | None]:
        """Look up a transaction by id.

        Returns
        -------
        tuple[TransactionState, TransactionRecord | None]
            State of the transaction, and its details if requested and
            known to the node.
        """
        ...

    @abstractmethod
    async def mesh_transactions(
        self, address: Address, offset: int, max_results: int
    ) -> tuple[list[TransactionRecord], int]:
        """List transactions sent from or to an address.

        Returns
        -------
        tuple[list[TransactionRecord], int]
            One page of records and the total number of matches.
        """
        ...


class Web3NodeClient(NodeClient):
    """Node client speaking Ethereum JSON-RPC through web3.

    Parameters
    ----------
    rpc_url : str
        HTTP(S) URL of the node.
    history_blocks : int
        Number of most recent blocks scanned for an address history.
    """

    def __init__(self, rpc_url: str, history_blocks: int = 1000):
        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._history_blocks = history_blocks

    async def node_status(self) -> NodeStatus:
        with RPC_DURATION.labels(operation="node_status").time():
            syncing = await self._w3.eth.syncing
            peers = await self._w3.net.peer_count
            top = await self._w3.eth.block_number
        return NodeStatus(is_synced=syncing is False, connected_peers=peers, top_layer=top)

    async def account_state(self, address: Address) -> AccountState:
        checksum = AsyncWeb3.to_checksum_address(str(address))
        with RPC_DURATION.labels(operation="account_state").time():
            current = await self._w3.eth.get_balance(checksum, "latest")
            projected = await self._w3.eth.get_balance(checksum, "pending")
            counter = await self._w3.eth.get_transaction_count(checksum, "pending")
        return AccountState(
            current_balance=current,
            projected_balance=projected,
            projected_counter=counter,
        )

    async def transfer(
        self,
        recipient: Address,
        nonce: int,
        amount: int,
        gas_price: int,
        gas_limit: int,
        account: LocalAccount,
    ) -> TransferReceipt:
        tx = {
            "to": AsyncWeb3.to_checksum_address(str(recipient)),
            "value": amount,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": await self._w3.eth.chain_id,
        }
        signed = account.sign_transaction(tx)

        with RPC_DURATION.labels(operation="transfer").time():
            try:
                tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            except Web3RPCError as e:
                state = classify_rejection(str(e))
                if state is None:
                    raise
                logger.warning(
                    "Transfer rejected by node",
                    extra={"tx_id": to_hex(bytes(signed.hash)), "state": state.name},
                )
                return TransferReceipt(tx_id=bytes(signed.hash), state=state)

        logger.info(
            "Transfer submitted",
            extra={"tx_id": to_hex(bytes(tx_hash)), "to": str(recipient), "nonce": nonce},
        )
        return TransferReceipt(tx_id=bytes(tx_hash), state=TransactionState.SUBMITTED)

    async def transaction_state(
        self, tx_id: bytes, include_tx: bool = True
    ) -> tuple[TransactionState, TransactionRecord | None]:
        with RPC_DURATION.labels(operation="transaction_state").time():
            try:
                tx = await self._w3.eth.get_transaction(tx_id)
            except TransactionNotFound:
                return TransactionState.UNSPECIFIED, None

            if tx["blockNumber"] is None:
                state = TransactionState.SUBMITTED
            else:
                receipt = await self._w3.eth.get_transaction_receipt(tx_id)
                if receipt["status"] == 1:
                    state = TransactionState.PROCESSED
                else:
                    state = TransactionState.REJECTED

        return state, _to_record(tx) if include_tx else None

    async def mesh_transactions(
        self, address: Address, offset: int, max_results: int
    ) -> tuple[list[TransactionRecord], int]:
        matches: list[TransactionRecord] = []
        with RPC_DURATION.labels(operation="mesh_transactions").time():
            top = await self._w3.eth.block_number
            bottom = max(0, top - self._history_blocks + 1)
            for number in range(top, bottom - 1, -1):
                block = await self._w3.eth.get_block(number, full_transactions=True)
                for tx in block["transactions"]:
                    record = _to_record(tx)
                    if address in (record.sender, record.receiver):
                        matches.append(record)

        return matches[offset : offset + max_results], len(matches)


def _to_record(tx) -> TransactionRecord:
    """Convert a web3 transaction dict to a record."""
    receiver = tx.get("to")
    return TransactionRecord(
        tx_id=bytes(tx["hash"]),
        sender=Address(from_hex(tx["from"])),
        receiver=Address(from_hex(receiver)) if receiver else Address.from_bytes(b""),
        amount=tx["value"],
        fee=tx["gas"] * (tx.get("gasPrice") or 0),
        layer=tx.get("blockNumber"),
    )
