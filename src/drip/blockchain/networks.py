"""Network descriptions for DRIP.

Network values come from the environment; nothing is hardcoded per chain.
"""

from dataclasses import dataclass

from drip.config import DripConfig

PRIMARY = "primary"
SECONDARY = "secondary"


@dataclass
class NetworkInfo:
    """A configured chain.

    Attributes
    ----------
    name : str
        Chain name used to bind tokens to clients ("primary", "secondary").
    rpc_endpoint : str
        The RPC endpoint URL.
    block_explorer_url : str | None
        Optional block explorer URL for transaction links.
    """

    name: str
    rpc_endpoint: str
    block_explorer_url: str | None = None

    def get_tx_url(self, tx_hash: str) -> str | None:
        """Block explorer URL for a transaction, or None without an explorer."""
        if self.block_explorer_url:
            return f"{self.block_explorer_url.rstrip('/')}/tx/{tx_hash}"
        return None

    def get_address_url(self, address: str) -> str | None:
        """Block explorer URL for an address, or None without an explorer."""
        if self.block_explorer_url:
            return f"{self.block_explorer_url.rstrip('/')}/address/{address}"
        return None


def build_networks(config: DripConfig) -> dict[str, NetworkInfo]:
    """Describe every configured chain, keyed by chain name."""
    networks = {
        PRIMARY: NetworkInfo(
            name=PRIMARY,
            rpc_endpoint=config.rpc_endpoint,
            block_explorer_url=config.block_explorer_url,
        )
    }
    if config.has_secondary_chain:
        networks[SECONDARY] = NetworkInfo(
            name=SECONDARY,
            rpc_endpoint=config.secondary_rpc_endpoint,
            block_explorer_url=config.secondary_block_explorer_url,
        )
    return networks
