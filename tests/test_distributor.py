"""Tests for the disbursement workflow."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from conftest import RECIPIENT, TEST_ADDRESS, TX_ID

from tapbot.blockchain.types import AccountState, NodeStatus, TransactionState, TransferReceipt
from tapbot.faucet.distributor import DisbursementResult, DisbursementStatus, Disburser
from tapbot.faucet.rate_limiter import RateLimitStore
from tapbot.faucet.router import ErrorKind

COOLDOWN = timedelta(minutes=5)


@pytest.fixture
def store(clock):
    return RateLimitStore(clock=clock)


@pytest.fixture
def disburser(client, wallet, store):
    return Disburser(
        client=client,
        wallet=wallet,
        rate_limiter=store,
        amount=1000,
        cooldown=COOLDOWN,
        gas_price=50,
        gas_limit=21000,
    )


class TestDisbursementResult:
    """Tests for DisbursementResult."""

    def test_error_kind_mapping(self):
        result = DisbursementResult(
            success=False, status=DisbursementStatus.COOLDOWN, message="too soon"
        )
        assert result.error_kind == ErrorKind.PRECONDITION
        assert result.to_command_result().error == ErrorKind.PRECONDITION

    def test_success_has_no_error_kind(self):
        result = DisbursementResult(success=True, status=DisbursementStatus.SUCCESS, message="ok")
        assert result.error_kind is None
        assert result.to_command_result().ok

    def test_every_failure_status_is_classified(self):
        for status in DisbursementStatus:
            if status is DisbursementStatus.SUCCESS:
                continue
            result = DisbursementResult(success=False, status=status, message="x")
            assert result.error_kind is not None


class TestNodeGate:
    """Node health is checked before anything else."""

    @pytest.mark.asyncio
    async def test_unsynced_node(self, disburser, client):
        client.node_status.return_value = NodeStatus(
            is_synced=False, connected_peers=3, top_layer=10
        )

        result = await disburser.disburse(RECIPIENT)

        assert result.success is False
        assert result.status == DisbursementStatus.NODE_NOT_SYNCED
        assert result.message == "node not synced"
        client.account_state.assert_not_called()
        client.transfer.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreachable_node(self, disburser, client):
        client.node_status.side_effect = ConnectionError("connection refused")

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.NODE_UNAVAILABLE
        assert result.message == "node not available: connection refused"
        assert result.error_kind == ErrorKind.TRANSPORT
        client.account_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_check_node_passes(self, disburser):
        assert await disburser.check_node() is None


class TestAddressGate:
    """Destination address validation."""

    @pytest.mark.asyncio
    async def test_too_short(self, disburser, client):
        result = await disburser.disburse("0x1234")

        assert result.status == DisbursementStatus.INVALID_ADDRESS
        assert "address is invalid" in result.message
        client.account_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_too_long_not_truncated(self, disburser, client, store):
        """Extra leading digits are rejected instead of cut to the last 20 bytes."""
        result = await disburser.disburse("0xdead" + RECIPIENT[2:])

        assert result.status == DisbursementStatus.INVALID_ADDRESS
        assert "address is invalid" in result.message
        client.account_state.assert_not_called()
        client.transfer.assert_not_called()
        assert store.blocked_until(RECIPIENT) is None

    @pytest.mark.asyncio
    async def test_not_hex(self, disburser, client):
        result = await disburser.disburse("0x" + "g" * 40)

        assert result.status == DisbursementStatus.INVALID_ADDRESS
        client.transfer.assert_not_called()

    @pytest.mark.asyncio
    async def test_zero_address(self, disburser, client):
        result = await disburser.disburse("0x" + "0" * 40)

        assert result.status == DisbursementStatus.INVALID_ADDRESS
        assert result.error_kind == ErrorKind.INVALID_INPUT


class TestBalanceGate:
    """Faucet balance must cover amount plus gas."""

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, disburser, client, store):
        client.account_state.return_value = AccountState(
            current_balance=500, projected_balance=500, projected_counter=1
        )

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.INSUFFICIENT_FUNDS
        assert result.message == "insufficient funds"
        client.transfer.assert_not_called()
        assert store.blocked_until(RECIPIENT) is None

    @pytest.mark.asyncio
    async def test_exact_balance_is_enough(self, disburser, client):
        client.account_state.return_value = AccountState(
            current_balance=0, projected_balance=1050, projected_counter=1
        )

        result = await disburser.disburse(RECIPIENT)

        assert result.success is True

    @pytest.mark.asyncio
    async def test_one_short(self, disburser, client):
        client.account_state.return_value = AccountState(
            current_balance=0, projected_balance=1049, projected_counter=1
        )

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.INSUFFICIENT_FUNDS

    @pytest.mark.asyncio
    async def test_faucet_account_read_fails(self, disburser, client):
        client.account_state.side_effect = TimeoutError("timed out")

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.ACCOUNT_UNAVAILABLE
        assert "timed out" in result.message
        client.transfer.assert_not_called()

    @pytest.mark.asyncio
    async def test_faucet_account_read_once(self, disburser, client):
        await disburser.disburse(RECIPIENT)

        client.account_state.assert_called_once()
        assert str(client.account_state.call_args.args[0]) == TEST_ADDRESS


class TestSubmission:
    """Successful and rejected submissions."""

    @pytest.mark.asyncio
    async def test_success(self, disburser, client, store, clock, wallet):
        result = await disburser.disburse(RECIPIENT)

        assert result.success is True
        assert result.status == DisbursementStatus.SUCCESS
        assert RECIPIENT in result.message
        assert "0x" + TX_ID.hex() in result.message
        assert result.message.startswith("💸")
        assert result.tx_id == TX_ID
        assert result.state == TransactionState.PROCESSED
        assert store.is_blocked(RECIPIENT)
        assert store.blocked_until(RECIPIENT) == clock.now + COOLDOWN.total_seconds()

    @pytest.mark.asyncio
    async def test_transfer_arguments(self, disburser, client, wallet):
        await disburser.disburse(RECIPIENT)

        recipient, nonce, amount, gas_price, gas_limit, account = client.transfer.call_args.args
        assert str(recipient) == RECIPIENT
        assert nonce == 7
        assert amount == 1000
        assert gas_price == 50
        assert gas_limit == 21000
        assert account is wallet.get_account()

    @pytest.mark.asyncio
    async def test_mixed_case_address_uses_canonical_key(self, disburser, store):
        await disburser.disburse(RECIPIENT.upper().replace("0X", "0x"))

        assert store.is_blocked(RECIPIENT)

    @pytest.mark.asyncio
    async def test_submitted_counts_as_accepted(self, disburser, client, store):
        client.transfer.return_value = TransferReceipt(TX_ID, TransactionState.SUBMITTED)

        result = await disburser.disburse(RECIPIENT)

        assert result.success is True
        assert store.is_blocked(RECIPIENT)

    @pytest.mark.asyncio
    async def test_conflicting_reported_by_label(self, disburser, client, store):
        client.transfer.return_value = TransferReceipt(TX_ID, TransactionState.CONFLICTING)

        result = await disburser.disburse(RECIPIENT)

        assert result.success is False
        assert result.status == DisbursementStatus.TX_REJECTED
        assert result.message == "🚫 tx rejected by node, Conflicting"
        assert "3" not in result.message
        assert store.blocked_until(RECIPIENT) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state",
        [
            TransactionState.UNSPECIFIED,
            TransactionState.REJECTED,
            TransactionState.INSUFFICIENT_FUNDS,
        ],
    )
    async def test_failure_states_do_not_start_cooldown(self, disburser, client, store, state):
        client.transfer.return_value = TransferReceipt(TX_ID, state)

        result = await disburser.disburse(RECIPIENT)

        assert result.error_kind == ErrorKind.REJECTED
        assert state.label in result.message
        assert store.blocked_until(RECIPIENT) is None

    @pytest.mark.asyncio
    async def test_client_error_is_rejection(self, disburser, client, store):
        client.transfer.side_effect = RuntimeError("gas too low")

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.TX_REJECTED
        assert result.message == "🚫 tx rejected by node, gas too low"
        assert store.blocked_until(RECIPIENT) is None


class TestCooldownGate:
    """Per-destination cooldown."""

    @pytest.mark.asyncio
    async def test_second_request_too_soon(self, disburser, client, clock):
        await disburser.disburse(RECIPIENT)
        clock.advance(60)

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.COOLDOWN
        assert f"account {RECIPIENT} requested funds too soon" in result.message
        assert "Please wait 4 minutes" in result.message
        assert client.transfer.call_count == 1

    @pytest.mark.asyncio
    async def test_blocked_address_never_submits(self, disburser, client, store):
        store.record_success(RECIPIENT, timedelta(hours=1))

        result = await disburser.disburse(RECIPIENT)

        assert result.status == DisbursementStatus.COOLDOWN
        client.transfer.assert_not_called()

    @pytest.mark.asyncio
    async def test_allowed_after_cooldown(self, disburser, client, clock):
        await disburser.disburse(RECIPIENT)
        clock.advance(COOLDOWN.total_seconds())

        result = await disburser.disburse(RECIPIENT)

        assert result.success is True
        assert client.transfer.call_count == 2

    @pytest.mark.asyncio
    async def test_other_address_unaffected(self, disburser, client):
        await disburser.disburse(RECIPIENT)

        result = await disburser.disburse("0x" + "1" * 40)

        assert result.success is True


class TestConcurrency:
    """Concurrent requests."""

    @pytest.mark.asyncio
    async def test_concurrent_same_address_sends_once(self, disburser, client):
        async def slow_transfer(*args):
            await asyncio.sleep(0.01)
            return TransferReceipt(TX_ID, TransactionState.SUBMITTED)

        client.transfer = AsyncMock(side_effect=slow_transfer)

        results = await asyncio.gather(
            disburser.disburse(RECIPIENT), disburser.disburse(RECIPIENT)
        )

        statuses = sorted(result.status.value for result in results)
        assert statuses == ["cooldown", "success"]
        assert client.transfer.call_count == 1

    @pytest.mark.asyncio
    async def test_submissions_serialized_across_addresses(self, disburser, client):
        """Nonce reads and submissions from the faucet never interleave."""
        events = []

        async def read_state(address):
            events.append("read")
            await asyncio.sleep(0)
            return AccountState(0, 100_000, len(events))

        async def transfer(*args):
            events.append("send")
            await asyncio.sleep(0)
            return TransferReceipt(TX_ID, TransactionState.SUBMITTED)

        client.account_state = AsyncMock(side_effect=read_state)
        client.transfer = AsyncMock(side_effect=transfer)

        await asyncio.gather(
            disburser.disburse(RECIPIENT), disburser.disburse("0x" + "1" * 40)
        )

        assert events == ["read", "send", "read", "send"]
