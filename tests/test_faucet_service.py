"""Tests for Faucet Service module."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY

from drip.blockchain import PRIMARY
from drip.faucet.cooldown import COOLDOWN_WINDOW_MS, CooldownStore
from drip.faucet.dispatcher import Dispatcher, DispenseResult, DispenseStatus
from drip.faucet.registry import ContractTransfer, NativeTransfer, TokenConfig, TokenRegistry
from drip.faucet.service import (
    COOLDOWN_ACTIVE_MESSAGE,
    INVALID_ADDRESS_MESSAGE,
    TOKEN_UNSUPPORTED_MESSAGE,
    UNSUPPORTED_TOKEN_LABEL,
    FaucetService,
    RequestStatus,
    validate_address,
)

ADDRESS = "0x" + "A" * 40


@pytest.fixture
def registry():
    """Registry with ETH and USDC."""
    return TokenRegistry(
        [
            TokenConfig("ETH", Decimal("1.0"), NativeTransfer(10**18)),
            TokenConfig("USDC", Decimal("20"), ContractTransfer(MagicMock(), 20_000_000)),
        ]
    )


@pytest.fixture
def mock_dispatcher(registry):
    """Dispatcher mock that always succeeds."""
    dispatcher = MagicMock()
    dispatcher.registry = registry
    dispatcher.dispense = AsyncMock(
        return_value=DispenseResult(
            success=True,
            status=DispenseStatus.SUCCESS,
            tx_hash="0xabc",
            message="Sent 1.0 ETH TX hash: 0xabc.",
        )
    )
    return dispatcher


@pytest.fixture
def service(clock, mock_dispatcher):
    """Faucet service with a fake clock."""
    return FaucetService(CooldownStore(clock=clock), mock_dispatcher)


class TestValidateAddress:
    """Tests for validate_address function."""

    def test_valid_address(self):
        """validate_address accepts valid Ethereum address."""
        assert validate_address("0x1234567890123456789012345678901234567890") is True

    def test_valid_address_mixed_case(self):
        """validate_address accepts mixed case hex."""
        assert validate_address("0xAbCdEf1234567890123456789012345678901234") is True

    def test_invalid_no_prefix(self):
        """validate_address rejects address without 0x prefix."""
        assert validate_address("1234567890123456789012345678901234567890") is False

    def test_invalid_short(self):
        """validate_address rejects short address."""
        assert validate_address("0x123") is False

    def test_invalid_long(self):
        """validate_address rejects long address."""
        assert validate_address("0x12345678901234567890123456789012345678901") is False

    def test_invalid_non_hex(self):
        """validate_address rejects non-hex characters."""
        assert validate_address("0xGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGGG") is False

    def test_invalid_trailing_newline(self):
        """validate_address rejects a trailing newline."""
        assert validate_address("0x1234567890123456789012345678901234567890\n") is False

    def test_invalid_empty(self):
        """validate_address rejects empty string."""
        assert validate_address("") is False


class TestHandleRequest:
    """Tests for FaucetService.handle_request."""

    @pytest.mark.asyncio
    async def test_first_request_dispenses(self, service, mock_dispatcher):
        """First request for a pair reaches the dispatcher."""
        result = await service.handle_request("ETH", ADDRESS)

        assert result.success is True
        assert result.status == RequestStatus.SUCCESS
        assert result.tx_hash == "0xabc"
        assert "0xabc" in result.message
        mock_dispatcher.dispense.assert_awaited_once_with("ETH", ADDRESS)

    @pytest.mark.asyncio
    async def test_second_request_in_cooldown(self, service, mock_dispatcher):
        """An immediate repeat is refused without dispatching."""
        await service.handle_request("ETH", ADDRESS)
        result = await service.handle_request("ETH", ADDRESS)

        assert result.success is False
        assert result.status == RequestStatus.COOLDOWN_ACTIVE
        assert result.message == COOLDOWN_ACTIVE_MESSAGE
        assert mock_dispatcher.dispense.await_count == 1

    @pytest.mark.asyncio
    async def test_other_token_not_in_cooldown(self, service, mock_dispatcher):
        """Cooldown is per token."""
        await service.handle_request("ETH", ADDRESS)
        result = await service.handle_request("USDC", ADDRESS)

        assert result.status == RequestStatus.SUCCESS
        assert mock_dispatcher.dispense.await_count == 2

    @pytest.mark.asyncio
    async def test_allowed_after_window(self, service, clock, mock_dispatcher):
        """Exactly 24 hours later the pair may request again."""
        await service.handle_request("ETH", ADDRESS)
        clock.advance(COOLDOWN_WINDOW_MS)

        result = await service.handle_request("ETH", ADDRESS)

        assert result.status == RequestStatus.SUCCESS
        assert mock_dispatcher.dispense.await_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_token(self, service, mock_dispatcher):
        """Unknown tokens are refused and leave no cooldown entry."""
        result = await service.handle_request("DOGE", ADDRESS)

        assert result.status == RequestStatus.UNSUPPORTED_TOKEN
        assert result.message == TOKEN_UNSUPPORTED_MESSAGE
        assert service.cooldowns.get_last_sent(ADDRESS, "DOGE") is None
        assert len(service.cooldowns) == 0
        mock_dispatcher.dispense.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_symbols_share_metric_series(self, service):
        """Requests for many unknown symbols do not add metric series."""

        def request_series():
            return sum(
                len(metric.samples)
                for metric in REGISTRY.collect()
                if metric.name.startswith("drip_request")
            )

        await service.handle_request("JUNK", ADDRESS)
        before = request_series()

        for i in range(50):
            await service.handle_request(f"JUNK{i}", ADDRESS)

        assert request_series() == before
        assert (
            REGISTRY.get_sample_value(
                "drip_requests_total",
                {"token": UNSUPPORTED_TOKEN_LABEL, "status": "unsupported_token"},
            )
            >= 51
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "address", ["", "0x123", "not-an-address", "0x" + "g" * 40, "0x" + "a" * 40 + "\n"]
    )
    async def test_invalid_address(self, service, mock_dispatcher, address):
        """Malformed addresses never reach the dispatcher."""
        result = await service.handle_request("ETH", address)

        assert result.status == RequestStatus.INVALID_ADDRESS
        assert result.message == INVALID_ADDRESS_MESSAGE
        assert len(service.cooldowns) == 0
        mock_dispatcher.dispense.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_checked_before_address(self, service):
        """An unsupported token wins over an invalid address."""
        result = await service.handle_request("DOGE", "bad")

        assert result.status == RequestStatus.UNSUPPORTED_TOKEN

    @pytest.mark.asyncio
    async def test_lowercase_symbol(self, service, mock_dispatcher):
        """Symbols are matched case-insensitively."""
        result = await service.handle_request("eth", ADDRESS)

        assert result.status == RequestStatus.SUCCESS
        mock_dispatcher.dispense.assert_awaited_once_with("ETH", ADDRESS)

    @pytest.mark.asyncio
    async def test_failed_transfer_consumes_slot(self, service, mock_dispatcher):
        """A failed transfer still starts the cooldown."""
        mock_dispatcher.dispense.return_value = DispenseResult(
            success=False,
            status=DispenseStatus.TRANSFER_FAILED,
            tx_hash=None,
            message="insufficient funds",
        )

        first = await service.handle_request("ETH", ADDRESS)
        second = await service.handle_request("ETH", ADDRESS)

        assert first.status == RequestStatus.TRANSFER_FAILED
        assert first.message == "insufficient funds"
        assert second.status == RequestStatus.COOLDOWN_ACTIVE

    @pytest.mark.asyncio
    async def test_concurrent_requests_single_dispense(self, service, mock_dispatcher):
        """Concurrent requests for one pair dispense exactly once."""

        async def slow_dispense(symbol, address):
            await asyncio.sleep(0.01)
            return DispenseResult(True, DispenseStatus.SUCCESS, "0xabc", "ok")

        mock_dispatcher.dispense.side_effect = slow_dispense

        results = await asyncio.gather(
            *(service.handle_request("ETH", ADDRESS) for _ in range(5))
        )

        statuses = [r.status for r in results]
        assert statuses.count(RequestStatus.SUCCESS) == 1
        assert statuses.count(RequestStatus.COOLDOWN_ACTIVE) == 4
        assert mock_dispatcher.dispense.await_count == 1


class TestEndToEnd:
    """Scenario tests through a real Dispatcher."""

    @pytest.mark.asyncio
    async def test_eth_first_then_already_received(self, clock):
        """ETH twice: first sends with a hash, second is refused."""
        client = MagicMock()
        client.send_native = MagicMock(return_value="0x" + "ab" * 32)
        registry = TokenRegistry([TokenConfig("ETH", Decimal("1.0"), NativeTransfer(10**18))])
        service = FaucetService(CooldownStore(clock=clock), Dispatcher(registry, {PRIMARY: client}))

        first = await service.handle_request("ETH", ADDRESS)
        second = await service.handle_request("ETH", ADDRESS)

        assert first.message == f"Sent 1.0 ETH TX hash: 0x{'ab' * 32}."
        assert second.message == "Have already received tokens in last 24 hours."
        client.send_native.assert_called_once_with(ADDRESS, 10**18)

    @pytest.mark.asyncio
    async def test_contract_timeout_becomes_message(self, clock):
        """A contract transfer timing out is reported as text."""
        contract = MagicMock()
        contract.transfer = MagicMock(side_effect=TimeoutError("request timed out"))
        registry = TokenRegistry(
            [TokenConfig("USDC", Decimal("20"), ContractTransfer(contract, 20_000_000))]
        )
        service = FaucetService(CooldownStore(clock=clock), Dispatcher(registry, {}))

        result = await service.handle_request("USDC", ADDRESS)

        assert result.success is False
        assert result.status == RequestStatus.TRANSFER_FAILED
        assert result.message == "request timed out"


class TestLifecycle:
    """Tests for service start/stop."""

    @pytest.mark.asyncio
    async def test_start_stop_controls_sweep(self, service):
        """Starting the service starts the sweep; stopping stops it."""
        await service.start()
        assert service.is_running is True
        assert service.cooldowns.is_sweeping is True

        await service.stop()
        assert service.is_running is False
        assert service.cooldowns.is_sweeping is False

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, service):
        """Stopping an idle service is a no-op."""
        await service.stop()
        assert service.is_running is False

    def test_supported_tokens(self, service):
        """supported_tokens lists registry symbols."""
        assert service.supported_tokens == ["ETH", "USDC"]


class TestGetStatus:
    """Tests for FaucetService.get_status."""

    @pytest.mark.asyncio
    async def test_status_balances(self, clock):
        """Balances are reported per token."""
        client = MagicMock()
        client.wallet_address = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
        client.get_native_balance = MagicMock(return_value=Decimal("3.5"))
        contract = MagicMock()
        contract.client = client
        contract.balance_of = MagicMock(return_value=Decimal("1000"))
        registry = TokenRegistry(
            [
                TokenConfig("ETH", Decimal("1.0"), NativeTransfer(10**18)),
                TokenConfig("USDC", Decimal("20"), ContractTransfer(contract, 20_000_000)),
            ]
        )
        service = FaucetService(
            CooldownStore(clock=clock), Dispatcher(registry, {PRIMARY: client})
        )

        status = await service.get_status()

        assert status.healthy is True
        assert status.balances == {"ETH": Decimal("3.5"), "USDC": Decimal("1000")}
        assert status.tokens == ["ETH", "USDC"]

    @pytest.mark.asyncio
    async def test_status_empty_wallet(self, clock):
        """An empty balance marks the faucet unhealthy."""
        client = MagicMock()
        client.wallet_address = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
        client.get_native_balance = MagicMock(return_value=Decimal("0"))
        registry = TokenRegistry([TokenConfig("ETH", Decimal("1.0"), NativeTransfer(10**18))])
        service = FaucetService(
            CooldownStore(clock=clock), Dispatcher(registry, {PRIMARY: client})
        )

        status = await service.get_status()

        assert status.healthy is False
        assert "ETH" in status.message
