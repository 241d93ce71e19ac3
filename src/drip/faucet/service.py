"""Faucet Service for DRIP.

Coordinates the faucet components for one request:
- Token support and address checks
- Cooldown store (check and record under a per-pair lock)
- Dispatcher
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from drip.observability.metrics import REQUEST_DURATION, REQUESTS

from .cooldown import CooldownStore
from .dispatcher import Dispatcher, DispenseStatus
from .registry import ContractTransfer, NativeTransfer

logger = logging.getLogger(__name__)

# Ethereum address pattern: 0x followed by 40 hex characters
ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")

TOKEN_UNSUPPORTED_MESSAGE = "Token unsupported."
INVALID_ADDRESS_MESSAGE = "Invalid address"
COOLDOWN_ACTIVE_MESSAGE = "Have already received tokens in last 24 hours."

UNSUPPORTED_TOKEN_LABEL = "unsupported"


def validate_address(address: str) -> bool:
    """Validate Ethereum address format.

    Parameters
    ----------
    address : str
        Address to validate.

    Returns
    -------
    bool
        True if valid Ethereum address format.
    """
    return bool(ADDRESS_PATTERN.fullmatch(address))


class RequestStatus(str, Enum):
    """Outcome of a faucet request."""

    SUCCESS = "success"
    UNSUPPORTED_TOKEN = "unsupported_token"
    INVALID_ADDRESS = "invalid_address"
    COOLDOWN_ACTIVE = "cooldown_active"
    TRANSFER_FAILED = "transfer_failed"


@dataclass
class FaucetResult:
    """Result of a faucet request."""

    success: bool
    status: RequestStatus
    token: str
    tx_hash: str | None
    message: str


@dataclass
class FaucetStatus:
    """Current faucet status."""

    healthy: bool
    tokens: list[str]
    balances: dict[str, Decimal] = field(default_factory=dict)
    message: str = "Faucet operational"


class FaucetService:
    """Handles faucet requests end to end.

    Parameters
    ----------
    cooldowns : CooldownStore
        Per-(address, token) cooldown memory.
    dispatcher : Dispatcher
        Sends tokens.
    """

    def __init__(self, cooldowns: CooldownStore, dispatcher: Dispatcher):
        self._cooldowns = cooldowns
        self._dispatcher = dispatcher
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the faucet service is running."""
        return self._running

    @property
    def cooldowns(self) -> CooldownStore:
        """Cooldown store backing this service."""
        return self._cooldowns

    @property
    def supported_tokens(self) -> list[str]:
        """Symbols this faucet dispenses."""
        return self._dispatcher.registry.symbols

    async def start(self) -> None:
        """Start the faucet service and its cooldown sweep."""
        if self._running:
            logger.warning("Faucet service already running")
            return

        await self._cooldowns.start_sweeping()
        self._running = True
        logger.info("Faucet service started", extra={"tokens": self.supported_tokens})

    async def stop(self) -> None:
        """Stop the faucet service and its cooldown sweep."""
        if not self._running:
            return

        await self._cooldowns.stop_sweeping()
        self._running = False
        logger.info("Faucet service stopped")

    async def handle_request(self, token: str, address: str) -> FaucetResult:
        """Handle a request for ``token`` to be sent to ``address``.

        The cooldown is checked before any network call. The attempt is
        recorded before dispatch, so a failed transfer still uses up the
        pair's slot for the window.

        Parameters
        ----------
        token : str
            Requested token symbol.
        address : str
            Recipient address.

        Returns
        -------
        FaucetResult
            Result of the request; ``message`` is the response text.
        """
        start = time.perf_counter()
        symbol = token.upper()
        # Unknown symbols share one label so callers cannot mint new series
        label = symbol if symbol in self._dispatcher.registry else UNSUPPORTED_TOKEN_LABEL
        try:
            result = await self._handle(symbol, address)
        finally:
            REQUEST_DURATION.labels(token=label).observe(time.perf_counter() - start)

        REQUESTS.labels(token=label, status=result.status.value).inc()
        return result

    async def _handle(self, symbol: str, address: str) -> FaucetResult:
        if symbol not in self._dispatcher.registry:
            return self._reject(symbol, RequestStatus.UNSUPPORTED_TOKEN, TOKEN_UNSUPPORTED_MESSAGE)

        if not validate_address(address):
            return self._reject(symbol, RequestStatus.INVALID_ADDRESS, INVALID_ADDRESS_MESSAGE)

        async with self._cooldowns.lock(address, symbol):
            if not self._cooldowns.is_cooled_down(address, symbol):
                remaining = self._cooldowns.remaining(address, symbol)
                logger.info(
                    "Faucet request in cooldown",
                    extra={
                        "token": symbol,
                        "recipient": address,
                        "remaining_seconds": int(remaining.total_seconds()) if remaining else 0,
                    },
                )
                return self._reject(
                    symbol, RequestStatus.COOLDOWN_ACTIVE, COOLDOWN_ACTIVE_MESSAGE
                )
            self._cooldowns.record_sent(address, symbol)

        result = await self._dispatcher.dispense(symbol, address)
        if result.status == DispenseStatus.SUCCESS:
            status = RequestStatus.SUCCESS
        elif result.status == DispenseStatus.UNSUPPORTED_TOKEN:
            status = RequestStatus.UNSUPPORTED_TOKEN
        else:
            status = RequestStatus.TRANSFER_FAILED

        return FaucetResult(
            success=result.success,
            status=status,
            token=symbol,
            tx_hash=result.tx_hash,
            message=result.message,
        )

    def _reject(self, symbol: str, status: RequestStatus, message: str) -> FaucetResult:
        return FaucetResult(
            success=False,
            status=status,
            token=symbol,
            tx_hash=None,
            message=message,
        )

    async def get_status(self) -> FaucetStatus:
        """Get current faucet status including wallet balances per token.

        Returns
        -------
        FaucetStatus
            Current status of the faucet.
        """
        balances: dict[str, Decimal] = {}
        for token in self._dispatcher.registry:
            match token.transfer:
                case NativeTransfer():
                    client = self._dispatcher.client_for(token)
                    balances[token.symbol] = await asyncio.to_thread(
                        client.get_native_balance, client.wallet_address
                    )
                case ContractTransfer(contract=contract):
                    balances[token.symbol] = await asyncio.to_thread(
                        contract.balance_of, contract.client.wallet_address
                    )

        empty = [symbol for symbol, balance in balances.items() if balance <= 0]
        if empty:
            return FaucetStatus(
                healthy=False,
                tokens=self.supported_tokens,
                balances=balances,
                message=f"Faucet wallet empty for: {', '.join(empty)}",
            )
        return FaucetStatus(healthy=True, tokens=self.supported_tokens, balances=balances)
