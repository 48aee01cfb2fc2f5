"""Blockchain node access for the tap bot."""

from .client import NodeClient, Web3NodeClient
from .types import AccountState, NodeStatus, TransactionRecord, TransactionState, TransferReceipt

__all__ = [
    "AccountState",
    "NodeClient",
    "NodeStatus",
    "TransactionRecord",
    "TransactionState",
    "TransferReceipt",
    "Web3NodeClient",
]
