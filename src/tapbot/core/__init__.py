"""Core tap bot components."""

from .address import Address, from_hex, parse_address, to_hex
from .wallet import EnvironmentWallet, WalletProvider

__all__ = [
    "Address",
    "EnvironmentWallet",
    "WalletProvider",
    "from_hex",
    "parse_address",
    "to_hex",
]
