"""Pytest configuration and fixtures for tapbot tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from tapbot.blockchain.types import AccountState, NodeStatus, TransactionState, TransferReceipt
from tapbot.core.wallet import EnvironmentWallet

# Well-known test key (DO NOT USE IN PRODUCTION)
TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_ADDRESS = "0xfcad0b19bb29d4674531d6f115237e16afce377c"
RECIPIENT = "0x742d35cc6634c0532925a3b844bc9e7595f8fe00"
TX_ID = bytes.fromhex("ab" * 32)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear tapbot-related environment variables before each test."""
    env_prefixes = ("TAP_", "SLACK_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def wallet():
    """Faucet wallet built from the test key."""
    return EnvironmentWallet(private_key=SecretStr(TEST_PRIVATE_KEY))


@pytest.fixture
def client():
    """Node client mock: synced node, well funded faucet, accepting transfers."""
    node = MagicMock()
    node.node_status = AsyncMock(
        return_value=NodeStatus(is_synced=True, connected_peers=8, top_layer=1200)
    )
    node.account_state = AsyncMock(
        return_value=AccountState(current_balance=90_000, projected_balance=100_000, projected_counter=7)
    )
    node.transfer = AsyncMock(
        return_value=TransferReceipt(tx_id=TX_ID, state=TransactionState.PROCESSED)
    )
    node.transaction_state = AsyncMock()
    node.mesh_transactions = AsyncMock(return_value=([], 0))
    return node


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
