"""Faucet signing material.

The faucet key is loaded once at startup and held read-only for the life of
the process. It can come from a raw private key, a key file, or a BIP-39
mnemonic.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

from tapbot.config import TapConfig
from tapbot.core.address import Address, from_hex

logger = logging.getLogger(__name__)

# Standard Ethereum derivation path, first account
DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"

Account.enable_unaudited_hdwallet_features()


class WalletProvider(ABC):
    """Source of the faucet's signing account."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Get the faucet account for signing.

        Returns
        -------
        LocalAccount
            The account instance for transaction signing.
        """
        ...

    @property
    def address(self) -> Address:
        """Faucet address derived from the signing key."""
        return Address(from_hex(self.get_account().address))


class EnvironmentWallet(WalletProvider):
    """Load the faucet key from configuration.

    Sources are tried in order: ``private_key``, ``private_key_file``,
    ``mnemonic``.

    Parameters
    ----------
    private_key : SecretStr, optional
        Hex encoded private key.
    private_key_file : str, optional
        Path to a file holding the hex encoded private key.
    mnemonic : SecretStr, optional
        BIP-39 mnemonic phrase.
    derivation_path : str
        HD path used with ``mnemonic``.

    Raises
    ------
    ValueError
        If no source is provided or the key is malformed.
    FileNotFoundError
        If private_key_file does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
        mnemonic: SecretStr | None = None,
        derivation_path: str = DEFAULT_DERIVATION_PATH,
    ):
        if private_key is not None:
            self._account = _account_from_hex(private_key.get_secret_value())
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            self._account = _account_from_hex(key_path.read_text().strip())
        elif mnemonic is not None:
            self._account = Account.from_mnemonic(
                mnemonic.get_secret_value(), account_path=derivation_path
            )
        else:
            raise ValueError("One of private_key, private_key_file or mnemonic must be provided")

    def get_account(self) -> LocalAccount:
        return self._account


def load_wallet(config: TapConfig) -> EnvironmentWallet:
    """Build the faucet wallet from whichever key source is configured.

    Raises
    ------
    ValueError
        If no key source is configured.
    """
    if not config.has_wallet:
        raise ValueError(
            "No wallet configured. Set TAP_WALLET_PRIVATE_KEY, "
            "TAP_WALLET_PRIVATE_KEY_FILE or TAP_WALLET_MNEMONIC"
        )
    sources = [config.wallet_private_key, config.wallet_private_key_file, config.wallet_mnemonic]
    if sum(source is not None for source in sources) > 1:
        logger.warning("Several wallet sources set; using the first of key, key file, mnemonic")
    return EnvironmentWallet(
        private_key=config.wallet_private_key,
        private_key_file=config.wallet_private_key_file,
        mnemonic=config.wallet_mnemonic,
    )


def _account_from_hex(key: str) -> LocalAccount:
    """Build an account from a hex key, with or without 0x prefix."""
    raw = from_hex(key)
    if len(raw) != 32:
        raise ValueError(f"Private key must be 32 bytes, got {len(raw)}")
    return Account.from_key(raw)
