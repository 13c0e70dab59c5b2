"""
Signing wallet

Wraps an eth_account LocalAccount so the private key stays in one place and
never shows up in repr() or logs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3

from utils.exceptions import ConfigurationError
from utils.helpers import normalize_private_key


@dataclass(frozen=True)
class Wallet:
    """Private key plus derived checksum address, immutable for the process"""

    address: str
    _account: LocalAccount = field(repr=False, compare=False)

    @classmethod
    def from_private_key(cls, private_key: str) -> "Wallet":
        key = normalize_private_key(private_key)
        try:
            account = Account.from_key(key)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to create account from private key: {e}",
                original_error=e
            )
        return cls(address=Web3.to_checksum_address(account.address), _account=account)

    @property
    def account(self) -> LocalAccount:
        return self._account

    @property
    def private_key(self) -> str:
        return Web3.to_hex(self._account.key)

    def sign_typed_data(self, full_message: Dict[str, Any]) -> str:
        """EIP-712 sign a full typed-data message, returns 0x-prefixed signature"""
        signable = encode_typed_data(full_message=full_message)
        signed = self._account.sign_message(signable)
        return Web3.to_hex(signed.signature)

    def sign_transaction(self, tx: Dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(tx)
        return signed.raw_transaction
