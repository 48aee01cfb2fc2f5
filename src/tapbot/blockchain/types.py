"""Data returned by the node client."""

from dataclasses import dataclass
from enum import IntEnum

from tapbot.core.address import Address


class TransactionState(IntEnum):
    """Node-reported transaction state, ordered by progress."""

    UNSPECIFIED = 0
    REJECTED = 1
    INSUFFICIENT_FUNDS = 2
    CONFLICTING = 3
    SUBMITTED = 4
    MESH = 5
    PROCESSED = 6

    @property
    def label(self) -> str:
        """Human-readable outcome label."""
        return TRANSACTION_STATE_LABELS[self]

    @property
    def is_failure(self) -> bool:
        """True for states the node will never turn into a transfer."""
        return self <= TransactionState.CONFLICTING


TRANSACTION_STATE_LABELS = {
    TransactionState.UNSPECIFIED: "Unspecified state",
    TransactionState.REJECTED: "Rejected",
    TransactionState.INSUFFICIENT_FUNDS: "Insufficient funds",
    TransactionState.CONFLICTING: "Conflicting",
    TransactionState.SUBMITTED: "Submitted to the network",
    TransactionState.MESH: "On the mesh but not yet processed",
    TransactionState.PROCESSED: "Processed",
}


@dataclass(frozen=True)
class NodeStatus:
    """Node health summary."""

    is_synced: bool
    connected_peers: int
    top_layer: int


@dataclass(frozen=True)
class AccountState:
    """Account balances and nonce.

    Attributes
    ----------
    current_balance : int
        Balance in base units at the last finalized state.
    projected_balance : int
        Balance including not-yet-finalized transactions.
    projected_counter : int
        Next nonce including not-yet-finalized transactions.
    """

    current_balance: int
    projected_balance: int
    projected_counter: int


@dataclass(frozen=True)
class TransferReceipt:
    """Outcome of a transfer submission."""

    tx_id: bytes
    state: TransactionState


@dataclass(frozen=True)
class TransactionRecord:
    """A coin transfer as seen by the node."""

    tx_id: bytes
    sender: Address
    receiver: Address
    amount: int
    fee: int
    layer: int | None = None
