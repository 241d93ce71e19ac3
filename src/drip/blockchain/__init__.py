"""Blockchain integration for DRIP."""

from .client import ChainClient, build_clients
from .contracts import ERC20_ABI, TokenContract
from .networks import PRIMARY, SECONDARY, NetworkInfo, build_networks

__all__ = [
    "ERC20_ABI",
    "PRIMARY",
    "SECONDARY",
    "ChainClient",
    "NetworkInfo",
    "TokenContract",
    "build_clients",
    "build_networks",
]
