"""Configuration management for DRIP using Pydantic Settings."""

import re
from decimal import Decimal
from enum import Enum

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PRIVATE_KEY_PATTERN = re.compile(r"(0x)?[0-9a-fA-F]{64}")
CONTRACT_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


def _check_private_key(value: SecretStr | None, name: str) -> SecretStr | None:
    if value is None:
        return None
    if not PRIVATE_KEY_PATTERN.fullmatch(value.get_secret_value().strip()):
        # Never echo the key itself
        raise ValueError(f"{name} must be 32 bytes of hex (optionally 0x-prefixed)")
    return SecretStr(value.get_secret_value().strip())


class DripConfig(BaseSettings):
    """DRIP service configuration loaded from environment variables.

    Validation happens at construction time so that a missing RPC endpoint or a
    malformed signing key stops the process before any request is served.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        hide_input_in_errors=True,
    )

    # Primary network
    rpc_endpoint: str = Field(alias="DRIP_RPC_ENDPOINT", min_length=1)
    block_explorer_url: str | None = Field(default=None, alias="DRIP_BLOCK_EXPLORER_URL")

    # Primary wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="DRIP_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(default=None, alias="DRIP_WALLET_PRIVATE_KEY_FILE")

    # Secondary network (optional)
    secondary_rpc_endpoint: str | None = Field(default=None, alias="DRIP_SECONDARY_RPC_ENDPOINT")
    secondary_wallet_private_key: SecretStr | None = Field(
        default=None, alias="DRIP_SECONDARY_WALLET_PRIVATE_KEY"
    )
    secondary_block_explorer_url: str | None = Field(
        default=None, alias="DRIP_SECONDARY_BLOCK_EXPLORER_URL"
    )

    # Tokens
    native_symbol: str = Field(default="ETH", alias="DRIP_NATIVE_SYMBOL", min_length=1)
    native_amount: Decimal = Field(default=Decimal("1.0"), alias="DRIP_NATIVE_AMOUNT", gt=0)
    secondary_native_symbol: str = Field(
        default="MATIC", alias="DRIP_SECONDARY_NATIVE_SYMBOL", min_length=1
    )
    secondary_native_amount: Decimal = Field(
        default=Decimal("1.0"), alias="DRIP_SECONDARY_NATIVE_AMOUNT", gt=0
    )
    token_symbol: str = Field(default="USDC", alias="DRIP_TOKEN_SYMBOL", min_length=1)
    token_contract_address: str | None = Field(default=None, alias="DRIP_TOKEN_CONTRACT_ADDRESS")
    token_amount: int = Field(default=20_000_000, alias="DRIP_TOKEN_AMOUNT", gt=0)
    token_decimals: int = Field(default=6, alias="DRIP_TOKEN_DECIMALS", ge=0, le=36)

    # HTTP server
    host: str = Field(default="0.0.0.0", alias="DRIP_HOST")  # noqa: S104
    port: int = Field(default=7500, alias="DRIP_PORT", ge=1, le=65535)

    # Cooldown sweep
    sweep_interval_hours: float = Field(default=24.0, alias="DRIP_SWEEP_INTERVAL_HOURS", gt=0)

    # Observability
    log_level: str = Field(default="INFO", alias="DRIP_LOG_LEVEL")
    log_format: LogFormat = Field(default=LogFormat.JSON, alias="DRIP_LOG_FORMAT")
    debug: bool = Field(default=False, alias="DEBUG")

    @field_validator("wallet_private_key")
    @classmethod
    def _validate_wallet_key(cls, value: SecretStr | None) -> SecretStr | None:
        return _check_private_key(value, "DRIP_WALLET_PRIVATE_KEY")

    @field_validator("secondary_wallet_private_key")
    @classmethod
    def _validate_secondary_key(cls, value: SecretStr | None) -> SecretStr | None:
        return _check_private_key(value, "DRIP_SECONDARY_WALLET_PRIVATE_KEY")

    @field_validator("token_contract_address")
    @classmethod
    def _validate_contract_address(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        if not CONTRACT_ADDRESS_PATTERN.fullmatch(value):
            raise ValueError(f"Invalid token contract address: {value}")
        return value

    @field_validator("debug", mode="before")
    @classmethod
    def _debug_when_set(cls, value: object) -> bool:
        # Any non-empty value turns it on
        if isinstance(value, str):
            return bool(value.strip())
        return bool(value)

    @field_validator("native_symbol", "secondary_native_symbol", "token_symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _validate_wallets(self) -> "DripConfig":
        if self.wallet_private_key is None and not self.wallet_private_key_file:
            raise ValueError(
                "No wallet configured. Set DRIP_WALLET_PRIVATE_KEY or DRIP_WALLET_PRIVATE_KEY_FILE"
            )
        if self.secondary_rpc_endpoint and self.secondary_wallet_private_key is None:
            raise ValueError(
                "DRIP_SECONDARY_RPC_ENDPOINT is set but DRIP_SECONDARY_WALLET_PRIVATE_KEY is not"
            )

        symbols = [self.native_symbol]
        if self.token_contract_address:
            symbols.append(self.token_symbol)
        if self.secondary_rpc_endpoint:
            symbols.append(self.secondary_native_symbol)
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate token symbols configured: {', '.join(duplicates)}")
        return self

    @property
    def has_secondary_chain(self) -> bool:
        """Whether a secondary network is configured."""
        return bool(self.secondary_rpc_endpoint)
