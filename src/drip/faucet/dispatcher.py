"""Dispatcher for DRIP faucet.

Routes a token symbol to its payout mechanism:
- Native tokens are sent as a plain value transfer
- Issued tokens are sent through the bound contract's ``transfer``

Chain failures never escape ``dispense``; they come back as a result
carrying the failure text.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from drip.blockchain import ChainClient
from drip.observability.metrics import TOKENS_DISTRIBUTED, TRANSACTION_DURATION

from .registry import ContractTransfer, NativeTransfer, TokenConfig, TokenRegistry

logger = logging.getLogger(__name__)


class DispenseStatus(str, Enum):
    """Dispense outcome."""

    SUCCESS = "success"
    UNSUPPORTED_TOKEN = "unsupported_token"
    TRANSFER_FAILED = "transfer_failed"


@dataclass
class DispenseResult:
    """Result of a dispense attempt."""

    success: bool
    status: DispenseStatus
    tx_hash: str | None
    message: str


class Dispatcher:
    """Sends the configured amount of a token to an address.

    Parameters
    ----------
    registry : TokenRegistry
        Supported tokens.
    clients : Mapping[str, ChainClient]
        Chain clients keyed by chain name. Native transfers use the client
        of the token's chain.
    """

    def __init__(self, registry: TokenRegistry, clients: Mapping[str, ChainClient]):
        self._registry = registry
        self._clients = dict(clients)

    @property
    def registry(self) -> TokenRegistry:
        """Token registry used for lookups."""
        return self._registry

    async def dispense(self, symbol: str, address: str) -> DispenseResult:
        """Send ``symbol`` to ``address``.

        Submits exactly one transaction and returns once the node has accepted
        it. Block confirmation is not awaited.

        Parameters
        ----------
        symbol : str
            Token symbol.
        address : str
            Recipient address, already validated by the caller.

        Returns
        -------
        DispenseResult
            Success with the transaction hash, or the failure message.
        """
        token = self._registry.lookup(symbol)
        if token is None:
            return DispenseResult(
                success=False,
                status=DispenseStatus.UNSUPPORTED_TOKEN,
                tx_hash=None,
                message=f"Unsupported token {symbol}.",
            )

        try:
            tx_hash = await self._submit(token, address)
        except Exception as e:
            logger.error(
                "Dispense failed",
                extra={
                    "token": token.symbol,
                    "chain": token.chain,
                    "recipient": address,
                    "error": str(e),
                },
                exc_info=True,
            )
            return DispenseResult(
                success=False,
                status=DispenseStatus.TRANSFER_FAILED,
                tx_hash=None,
                message=str(e) or type(e).__name__,
            )

        TOKENS_DISTRIBUTED.labels(token=token.symbol).inc(float(token.display_amount))
        logger.info(
            "Token dispensed",
            extra={
                "token": token.symbol,
                "chain": token.chain,
                "recipient": address,
                "amount": token.amount_text,
                "tx_hash": tx_hash,
            },
        )
        return DispenseResult(
            success=True,
            status=DispenseStatus.SUCCESS,
            tx_hash=tx_hash,
            message=f"Sent {token.amount_text} {token.symbol} TX hash: {tx_hash}.",
        )

    async def _submit(self, token: TokenConfig, address: str) -> str:
        """Submit the transfer for ``token`` off the event loop."""
        match token.transfer:
            case NativeTransfer(amount_wei=amount_wei):
                client = self.client_for(token)
                with TRANSACTION_DURATION.labels(kind="native").time():
                    return await asyncio.to_thread(client.send_native, address, amount_wei)
            case ContractTransfer(contract=contract, amount=amount):
                with TRANSACTION_DURATION.labels(kind="contract").time():
                    return await asyncio.to_thread(contract.transfer, address, amount)
            case _:
                raise TypeError(f"Unknown transfer kind for {token.symbol}: {token.transfer!r}")

    def client_for(self, token: TokenConfig) -> ChainClient:
        """Client whose wallet pays out ``token``."""
        client = self._clients.get(token.chain)
        if client is None:
            raise RuntimeError(f"No client configured for chain {token.chain!r}")
        return client
