"""Faucet components for DRIP."""

from .cooldown import COOLDOWN_WINDOW_MS, CooldownStore
from .dispatcher import Dispatcher, DispenseResult, DispenseStatus
from .registry import (
    ContractTransfer,
    NativeTransfer,
    TokenConfig,
    TokenRegistry,
    build_registry,
)
from .service import FaucetResult, FaucetService, FaucetStatus, RequestStatus, validate_address

__all__ = [
    "COOLDOWN_WINDOW_MS",
    "ContractTransfer",
    "CooldownStore",
    "Dispatcher",
    "DispenseResult",
    "DispenseStatus",
    "FaucetResult",
    "FaucetService",
    "FaucetStatus",
    "NativeTransfer",
    "RequestStatus",
    "TokenConfig",
    "TokenRegistry",
    "build_registry",
    "validate_address",
]
