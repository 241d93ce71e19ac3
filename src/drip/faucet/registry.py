"""Token Registry for DRIP faucet.

Maps token symbols to how they are paid out:
- NativeTransfer: value transfer in the chain's base currency
- ContractTransfer: ``transfer(to, amount)`` on an issued-token contract

The registry is built once at startup and never mutated.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from web3 import Web3

from drip.blockchain import PRIMARY, SECONDARY, ChainClient, TokenContract
from drip.config import DripConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NativeTransfer:
    """Pay out in the chain's base currency."""

    amount_wei: int


@dataclass(frozen=True)
class ContractTransfer:
    """Pay out through an issued-token contract."""

    contract: TokenContract
    amount: int  # Smallest token unit


TransferKind = NativeTransfer | ContractTransfer


@dataclass(frozen=True)
class TokenConfig:
    """Dispatch metadata for one token symbol.

    Attributes
    ----------
    symbol : str
        Upper-case token symbol.
    display_amount : Decimal
        Amount sent per request, in human units.
    transfer : TransferKind
        How the token is paid out.
    chain : str
        Name of the chain whose wallet signs the transfer.
    """

    symbol: str
    display_amount: Decimal
    transfer: TransferKind
    chain: str = PRIMARY

    @property
    def amount_text(self) -> str:
        """Amount in fixed-point notation, never exponent form."""
        return f"{self.display_amount:f}"


class TokenRegistry:
    """Read-only lookup of supported tokens.

    Parameters
    ----------
    tokens : list[TokenConfig]
        Token configurations; symbols must be unique.

    Raises
    ------
    ValueError
        If a symbol appears twice.
    """

    def __init__(self, tokens: list[TokenConfig]):
        entries: dict[str, TokenConfig] = {}
        for token in tokens:
            symbol = token.symbol.upper()
            if symbol in entries:
                raise ValueError(f"Duplicate token symbol: {symbol}")
            entries[symbol] = token
        self._tokens: Mapping[str, TokenConfig] = MappingProxyType(entries)

    def lookup(self, symbol: str) -> TokenConfig | None:
        """Return the configuration for ``symbol``, or None if unsupported."""
        return self._tokens.get(symbol.upper())

    @property
    def symbols(self) -> list[str]:
        """Supported symbols in registration order."""
        return list(self._tokens)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper() in self._tokens

    def __iter__(self) -> Iterator[TokenConfig]:
        return iter(self._tokens.values())

    def __len__(self) -> int:
        return len(self._tokens)


def build_registry(config: DripConfig, clients: Mapping[str, ChainClient]) -> TokenRegistry:
    """Build the registry from configuration and the per-chain clients.

    Parameters
    ----------
    config : DripConfig
        Validated service configuration.
    clients : Mapping[str, ChainClient]
        Clients keyed by chain name; must contain the primary chain, and the
        secondary chain when one is configured.

    Returns
    -------
    TokenRegistry
        The immutable registry.
    """
    tokens = [
        TokenConfig(
            symbol=config.native_symbol,
            display_amount=config.native_amount,
            transfer=NativeTransfer(amount_wei=Web3.to_wei(config.native_amount, "ether")),
            chain=PRIMARY,
        )
    ]

    if config.token_contract_address:
        contract = TokenContract(
            clients[PRIMARY],
            config.token_contract_address,
            decimals=config.token_decimals,
        )
        tokens.append(
            TokenConfig(
                symbol=config.token_symbol,
                display_amount=Decimal(config.token_amount) / (Decimal(10) ** config.token_decimals),
                transfer=ContractTransfer(contract=contract, amount=config.token_amount),
                chain=PRIMARY,
            )
        )

    if config.has_secondary_chain:
        tokens.append(
            TokenConfig(
                symbol=config.secondary_native_symbol,
                display_amount=config.secondary_native_amount,
                transfer=NativeTransfer(
                    amount_wei=Web3.to_wei(config.secondary_native_amount, "ether")
                ),
                chain=SECONDARY,
            )
        )

    registry = TokenRegistry(tokens)
    logger.info("Token registry built", extra={"tokens": registry.symbols})
    return registry
