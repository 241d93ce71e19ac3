"""Signing wallets for the faucet chains."""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class WalletProvider(ABC):
    """Source of the account that signs faucet transactions."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Return the signing account."""
        ...

    @property
    def address(self) -> str:
        """Checksummed address of the signing account."""
        return self.get_account().address


class EnvironmentWallet(WalletProvider):
    """Wallet whose private key comes from configuration.

    Parameters
    ----------
    private_key : SecretStr, optional
        The private key, usually read from an environment variable.
    private_key_file : str, optional
        Path to a file holding the private key.

    Raises
    ------
    ValueError
        If neither source is provided.
    FileNotFoundError
        If ``private_key_file`` does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            self._account = Account.from_key(private_key.get_secret_value())
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            self._account = Account.from_key(key_path.read_text().strip())
        else:
            raise ValueError("Either private_key or private_key_file must be provided")

    def get_account(self) -> LocalAccount:
        return self._account


def load_wallet(
    private_key: SecretStr | None,
    private_key_file: str | None,
) -> EnvironmentWallet:
    """Build a wallet, preferring an inline key over a key file."""
    if private_key is not None:
        if private_key_file:
            logger.warning(
                "Both private key and private key file set; using the private key",
                extra={"private_key_file": private_key_file},
            )
        return EnvironmentWallet(private_key=private_key)
    return EnvironmentWallet(private_key_file=private_key_file)


def generate_key_file(output_path: str) -> str:
    """Create a new account and write its key to ``output_path`` with mode 0600.

    The key is written to a temp file in the target directory and renamed into
    place, so a partially written key file never exists.

    Returns
    -------
    str
        Address of the generated account.
    """
    account = Account.create()

    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".drip-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)
        os.write(fd, account.key.hex().encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    return account.address
