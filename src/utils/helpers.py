"""
Validators and small helpers shared by the core modules

Provides:
- Address and private key validation
- Clock helpers (injectable in tests)
- Token unit formatting
"""

import re
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Union

from utils.exceptions import ConfigurationError, ValidationError


_ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')
_PRIVATE_KEY_RE = re.compile(r'^[0-9a-fA-F]{64}$')


def validate_ethereum_address(address: str) -> bool:
    """
    Validate Ethereum/Polygon address format (0x prefixed hex).

    Raises:
        ValidationError: If address is malformed
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise ValidationError(
            "Invalid Ethereum address format",
            error_code='INVALID_ADDRESS_FORMAT',
            details={'address': str(address), 'expected_format': '0x + 40 hex chars'}
        )
    return True


def normalize_private_key(private_key: str) -> str:
    """
    Return the key as 0x-prefixed lowercase hex.

    Raises:
        ConfigurationError: If the key is not 32 bytes of hex
    """
    key = private_key.strip()
    if key.startswith(("0x", "0X")):
        key = key[2:]
    if not _PRIVATE_KEY_RE.match(key):
        raise ConfigurationError(
            "Invalid private key format. Must be a 64 character hex string."
        )
    return "0x" + key.lower()


def current_time_ms() -> int:
    """Wall clock in epoch milliseconds"""
    return time.time_ns() // 1_000_000


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def epoch_to_iso(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def format_units(raw: Union[int, str], decimals: int) -> str:
    """Convert an integer token amount into its decimal string"""
    value = Decimal(int(raw)) / (Decimal(10) ** decimals)
    return format(value.normalize(), 'f') if value else "0"
