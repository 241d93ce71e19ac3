"""Core DRIP components."""

from .wallet import EnvironmentWallet, WalletProvider, generate_key_file, load_wallet

__all__ = [
    "EnvironmentWallet",
    "WalletProvider",
    "generate_key_file",
    "load_wallet",
]
