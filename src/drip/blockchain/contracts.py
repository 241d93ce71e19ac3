"""Issued-token contract handles."""

import logging
from decimal import Decimal

from web3 import Web3

from .client import ChainClient

logger = logging.getLogger(__name__)

# Minimal ERC20 surface used by the faucet
ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class TokenContract:
    """ERC20 contract bound to the client (and wallet) that pays from it.

    Parameters
    ----------
    client : ChainClient
        Client for the chain the contract lives on.
    address : str
        Contract address.
    decimals : int
        Token decimals, used only for display.
    """

    def __init__(self, client: ChainClient, address: str, decimals: int = 18):
        self._client = client
        self._address = Web3.to_checksum_address(address)
        self._decimals = decimals
        self._contract = client.w3.eth.contract(address=self._address, abi=ERC20_ABI)

    @property
    def address(self) -> str:
        """Checksummed contract address."""
        return self._address

    @property
    def client(self) -> ChainClient:
        """Client whose wallet signs transfers."""
        return self._client

    def transfer(self, to: str, amount: int) -> str:
        """Submit ``transfer(to, amount)`` from the faucet wallet.

        Parameters
        ----------
        to : str
            Recipient address.
        amount : int
            Amount in the token's smallest unit.

        Returns
        -------
        str
            Transaction hash.
        """
        call = self._contract.functions.transfer(Web3.to_checksum_address(to), amount)
        return self._client.send_contract_call(call)

    def balance_of(self, address: str) -> Decimal:
        """Token balance of ``address`` in display units."""
        raw = self._contract.functions.balanceOf(Web3.to_checksum_address(address)).call()
        return Decimal(raw) / (Decimal(10) ** self._decimals)
