"""Prometheus metrics for the tap bot.

Metrics:
- tap_commands_total: Counter of dispatched chat commands by command and status
- tap_disbursements_total: Counter of disbursement attempts by outcome
- tap_funds_disbursed_total: Counter of base units sent from the faucet
- tap_faucet_balance: Gauge of the faucet's projected balance
- tap_node_synced: Gauge, 1 when the node reported itself synced
- tap_command_duration_seconds: Histogram of command handling duration
- tap_rpc_duration_seconds: Histogram of node RPC call duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
COMMANDS = Counter(
    "tap_commands_total",
    "Total number of dispatched chat commands",
    ["command", "status"],
)

DISBURSEMENTS = Counter(
    "tap_disbursements_total",
    "Total disbursement attempts",
    ["status"],
)

FUNDS_DISBURSED = Counter(
    "tap_funds_disbursed_total",
    "Total base units sent from the faucet",
)

# Gauges
FAUCET_BALANCE = Gauge(
    "tap_faucet_balance",
    "Projected faucet balance in base units",
)

NODE_SYNCED = Gauge(
    "tap_node_synced",
    "1 if the node reported itself synced on the last check",
)

# Histograms
COMMAND_DURATION = Histogram(
    "tap_command_duration_seconds",
    "Chat command handling duration",
    ["command"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

RPC_DURATION = Histogram(
    "tap_rpc_duration_seconds",
    "Node RPC call duration",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
