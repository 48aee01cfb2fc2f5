"""Faucet components for the tap bot."""

from .distributor import DisbursementResult, DisbursementStatus, Disburser
from .rate_limiter import RateLimitStore
from .router import Command, CommandResult, CommandRouter, ErrorKind
from .service import TapService

__all__ = [
    "Command",
    "CommandResult",
    "CommandRouter",
    "DisbursementResult",
    "DisbursementStatus",
    "Disburser",
    "ErrorKind",
    "RateLimitStore",
    "TapService",
]
