"""Plain-text summaries of node and account data.

Inputs are assumed to be validated already; these functions never fail on
well-typed data and always render the same text for the same input.
"""

from datetime import timedelta

from tapbot.blockchain.types import AccountState, NodeStatus, TransactionRecord, TransactionState
from tapbot.core.address import Address, to_hex

SENT_MARKER = "💸"
REJECTED_MARKER = "🚫"


def format_balance(address: Address, state: AccountState) -> str:
    return f"account {address} balance {state.current_balance}"


def format_faucet_status(state: AccountState, status: NodeStatus) -> str:
    """Faucet balance alongside node health."""
    return (
        f"Balance: {state.projected_balance}\n"
        f"Synced: {status.is_synced}\n"
        f"Peers: {status.connected_peers}\n"
        f"Layer: {status.top_layer}"
    )


def format_transaction(record: TransactionRecord, state: TransactionState) -> str:
    """Single transaction as shown by ``$tx_info``."""
    return (
        f"tx info: from: {record.sender}\n"
        f"to {record.receiver}\n"
        f"amount {record.amount}\n"
        f"fee {record.fee}\n"
        f"status {state.label}"
    )


def format_mesh_transaction(record: TransactionRecord) -> str:
    """One block of a ``$dump_txs`` listing."""
    layer = record.layer if record.layer is not None else "pending"
    return (
        "tx info:\n"
        f"from: {record.sender}\n"
        f"to: {record.receiver}\n"
        f"amount: {record.amount}\n"
        f"fee: {record.fee}\n"
        f"layer: {layer}\n"
    )


def format_transactions(records: list[TransactionRecord]) -> str:
    return "".join(format_mesh_transaction(record) for record in records)


def format_transfer_sent(address: Address, tx_id: bytes) -> str:
    return f"{SENT_MARKER} transferred funds to {address}\ntxID: {to_hex(tx_id)}"


def format_transfer_rejected(reason: str) -> str:
    return f"{REJECTED_MARKER} tx rejected by node, {reason}"


def format_help(cooldown: timedelta) -> str:
    """Help text listing every command."""
    minutes = int(cooldown.total_seconds() // 60)
    if minutes >= 1:
        interval = f"{minutes} minutes"
    else:
        interval = f"{int(cooldown.total_seconds())} seconds"
    return (
        "*List of available commands:*\n"
        "1. Request coins through the tap - send your address (42 characters with 0x prefix)\n"
        f"_You can request coins to the same address no more than once every {interval}_\n"
        "\n"
        "Transfer replies:\n"
        f"{SENT_MARKER} - the bot sent a transaction to your address, "
        "it may not be confirmed yet\n"
        f"{REJECTED_MARKER} - the node refused the transaction, make another request\n"
        "\n"
        "2. `$faucet_status` - current status of the node the faucet is running on\n"
        "3. `$faucet_addr` - show the tap address\n"
        "4. `$tx_info <TX_ID>` - sender, receiver, amount, fee and status of a transaction\n"
        "5. `$balance <ADDRESS>` - show address balance\n"
        "6. `$dump_txs <ADDRESS>` - list recent transactions of an address\n"
        "7. `$help` - show this message"
    )
