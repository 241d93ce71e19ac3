"""Web3 client wrapper for DRIP faucet operations."""

import logging
import threading
from decimal import Decimal
from typing import Any

from web3 import Web3
from web3.contract.contract import ContractFunction

from drip.config import DripConfig
from drip.core.wallet import WalletProvider, load_wallet

from .networks import PRIMARY, SECONDARY

logger = logging.getLogger(__name__)

NATIVE_TRANSFER_GAS = 21000
CONTRACT_CALL_GAS = 100000


class ChainClient:
    """One JSON-RPC endpoint paired with the wallet that signs on it.

    Parameters
    ----------
    rpc_endpoint : str
        The JSON-RPC endpoint URL.
    wallet : WalletProvider
        The wallet provider for signing transactions.
    name : str
        Name of the chain this client is bound to ("primary", "secondary").
    """

    def __init__(self, rpc_endpoint: str, wallet: WalletProvider, name: str = PRIMARY):
        self._w3 = Web3(Web3.HTTPProvider(rpc_endpoint))
        self._wallet = wallet
        self._name = name
        # Serializes nonce lookup through submission for this wallet
        self._send_lock = threading.Lock()

    @property
    def name(self) -> str:
        """Chain name this client is bound to."""
        return self._name

    @property
    def w3(self) -> Web3:
        """Underlying Web3 instance."""
        return self._w3

    @property
    def connected(self) -> bool:
        """Check if connected to the RPC endpoint."""
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        """Chain ID reported by the connected node."""
        return self._w3.eth.chain_id

    @property
    def wallet_address(self) -> str:
        """Checksummed faucet wallet address."""
        return self._wallet.address

    def get_native_balance(self, address: str) -> Decimal:
        """Get the native coin balance of an address in ether units.

        Parameters
        ----------
        address : str
            The address to query.

        Returns
        -------
        Decimal
            Balance in ether units.
        """
        checksum_address = Web3.to_checksum_address(address)
        wei = self._w3.eth.get_balance(checksum_address)
        return Decimal(str(self._w3.from_wei(wei, "ether")))

    def send_native(self, to: str, amount_wei: int) -> str:
        """Submit a native coin transfer.

        Only waits for the node to accept the transaction, not for it to be mined.

        Parameters
        ----------
        to : str
            The recipient address.
        amount_wei : int
            Amount in wei.

        Returns
        -------
        str
            The 0x-prefixed transaction hash.
        """
        checksum_to = Web3.to_checksum_address(to)

        with self._send_lock:
            tx = {
                "to": checksum_to,
                "value": amount_wei,
                "gas": NATIVE_TRANSFER_GAS,
                "gasPrice": self._w3.eth.gas_price,
                "nonce": self._w3.eth.get_transaction_count(self._wallet.address, "pending"),
                "chainId": self._w3.eth.chain_id,
            }
            signed = self._wallet.get_account().sign_transaction(tx)
            tx_hash = Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

        logger.info(
            "Native transfer submitted",
            extra={"chain": self._name, "tx_hash": tx_hash, "to": checksum_to, "wei": amount_wei},
        )
        return tx_hash

    def send_contract_call(self, call: ContractFunction, gas: int = CONTRACT_CALL_GAS) -> str:
        """Sign and submit a state-changing contract call from the faucet wallet.

        Parameters
        ----------
        call : ContractFunction
            A bound contract function, e.g. ``contract.functions.transfer(to, amount)``.
        gas : int
            Gas limit for the call.

        Returns
        -------
        str
            The 0x-prefixed transaction hash.
        """
        with self._send_lock:
            tx: dict[str, Any] = call.build_transaction(
                {
                    "from": self._wallet.address,
                    "gas": gas,
                    "gasPrice": self._w3.eth.gas_price,
                    "nonce": self._w3.eth.get_transaction_count(self._wallet.address, "pending"),
                    "chainId": self._w3.eth.chain_id,
                }
            )
            signed = self._wallet.get_account().sign_transaction(tx)
            tx_hash = Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

        logger.info(
            "Contract call submitted",
            extra={"chain": self._name, "tx_hash": tx_hash, "function": call.fn_name},
        )
        return tx_hash


def build_clients(config: DripConfig) -> dict[str, ChainClient]:
    """Create one client per configured chain, keyed by chain name.

    Parameters
    ----------
    config : DripConfig
        Validated service configuration.

    Returns
    -------
    dict[str, ChainClient]
        The primary client, plus the secondary one when configured.
    """
    clients = {
        PRIMARY: ChainClient(
            config.rpc_endpoint,
            load_wallet(config.wallet_private_key, config.wallet_private_key_file),
            name=PRIMARY,
        )
    }
    if config.has_secondary_chain:
        clients[SECONDARY] = ChainClient(
            config.secondary_rpc_endpoint,
            load_wallet(config.secondary_wallet_private_key, None),
            name=SECONDARY,
        )
    return clients
