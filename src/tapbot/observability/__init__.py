"""Observability module for the tap bot."""

from .health import HealthCheck, HealthServer, HealthStatus, NodeSyncCheck
from .logging import clear_request_id, configure_logging, get_logger, set_request_id
from .metrics import (
    COMMAND_DURATION,
    COMMANDS,
    DISBURSEMENTS,
    FAUCET_BALANCE,
    FUNDS_DISBURSED,
    NODE_SYNCED,
    RPC_DURATION,
)

__all__ = [
    # Health
    "HealthCheck",
    "HealthServer",
    "HealthStatus",
    "NodeSyncCheck",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "set_request_id",
    # Metrics
    "COMMAND_DURATION",
    "COMMANDS",
    "DISBURSEMENTS",
    "FAUCET_BALANCE",
    "FUNDS_DISBURSED",
    "NODE_SYNCED",
    "RPC_DURATION",
]
