"""
CLOB Credential Bootstrap

Turns a wallet into Level 2 (L2) API credentials for the Polymarket CLOB.

Polymarket uses two authentication levels:

L1 (Private Key): EIP-712 signature over a ClobAuth struct
  - Proves wallet control without an on-chain transaction
  - Only used here, to obtain L2 credentials

L2 (API Credentials): (key, secret, passphrase) triple
  - HMAC-signs every authenticated CLOB request
  - post_order(), get_order(), get_balance_allowance()

The issuance endpoints are keyed on (wallet, nonce). With the nonce pinned
to zero, deriving again returns the credential set already issued for the
wallet rather than rotating it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import aiohttp
from py_clob_client.clob_types import ApiCreds
from py_clob_client.endpoints import CREATE_API_KEY, DERIVE_API_KEY
from py_clob_client.headers.headers import POLY_ADDRESS, POLY_NONCE, POLY_SIGNATURE, POLY_TIMESTAMP

from config.constants import (
    API_TIMEOUT_SEC,
    CLOB_AUTH_DOMAIN_NAME,
    CLOB_AUTH_DOMAIN_VERSION,
    CLOB_AUTH_MESSAGE,
    CLOB_AUTH_NONCE,
    CLOB_AUTH_TYPES,
    POLYGON_CHAIN_ID,
)
from core.wallet import Wallet
from utils.logger import get_logger
from utils.exceptions import AuthenticationError


logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Opaque L2 credential triple bound to one wallet address"""

    key: str
    secret: str = field(repr=False)
    passphrase: str = field(repr=False)

    @classmethod
    def from_triple(cls, triple: Optional[tuple]) -> Optional["Credentials"]:
        """Complete (key, secret, passphrase) tuple → Credentials, anything else → None"""
        if not triple or len(triple) != 3 or not all(triple):
            return None
        return cls(key=triple[0], secret=triple[1], passphrase=triple[2])

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "Credentials":
        try:
            return cls(
                key=data['apiKey'],
                secret=data['secret'],
                passphrase=data['passphrase']
            )
        except (KeyError, TypeError) as e:
            raise AuthenticationError(
                f"Credential issuance returned an unexpected payload: missing {e}",
                response_data=data
            )

    def to_api_creds(self) -> ApiCreds:
        return ApiCreds(
            api_key=self.key,
            api_secret=self.secret,
            api_passphrase=self.passphrase
        )


def build_clob_auth_message(address: str, timestamp: str, nonce: int, chain_id: int) -> Dict[str, Any]:
    """Full EIP-712 typed data for the ClobAuth attestation"""
    return {
        "types": CLOB_AUTH_TYPES,
        "primaryType": "ClobAuth",
        "domain": {
            "name": CLOB_AUTH_DOMAIN_NAME,
            "version": CLOB_AUTH_DOMAIN_VERSION,
            "chainId": chain_id,
        },
        "message": {
            "address": address,
            "timestamp": timestamp,
            "nonce": nonce,
            "message": CLOB_AUTH_MESSAGE,
        },
    }


class CredentialBootstrap:
    """
    Derives or reuses CLOB API credentials for a wallet.
    Called at most once per process, from the session bootstrap.
    """

    def __init__(
        self,
        clob_api_url: str,
        chain_id: int = POLYGON_CHAIN_ID,
        timeout_sec: int = API_TIMEOUT_SEC,
        clock: Callable[[], float] = time.time
    ):
        self.clob_api_url = clob_api_url.rstrip('/')
        self.chain_id = chain_id
        self.timeout_sec = timeout_sec
        self._clock = clock

    async def derive_or_reuse(
        self,
        wallet: Wallet,
        cached: Optional[Credentials] = None
    ) -> Credentials:
        """
        Return cached credentials untouched, or derive them from a fresh
        L1 signature.

        Args:
            wallet: Signing wallet
            cached: Externally supplied triple (trusted, not re-validated)

        Raises:
            AuthenticationError: If signing or the issuance endpoint fails
        """
        if cached is not None:
            logger.info("Using existing API credentials")
            return cached

        logger.info(f"Deriving API credentials for wallet {wallet.address}")
        headers = self._sign_l1_headers(wallet)
        data = await self._request_credentials(headers)
        credentials = Credentials.from_response(data)
        logger.info(f"API credentials derived successfully - key: {credentials.key[:8]}...")
        return credentials

    def _sign_l1_headers(self, wallet: Wallet) -> Dict[str, str]:
        timestamp = str(int(self._clock()))
        typed_data = build_clob_auth_message(
            address=wallet.address,
            timestamp=timestamp,
            nonce=CLOB_AUTH_NONCE,
            chain_id=self.chain_id,
        )
        try:
            signature = wallet.sign_typed_data(typed_data)
        except Exception as e:
            raise AuthenticationError(
                f"Failed to sign CLOB auth message: {e}",
                error_code="SIGNING_FAILED",
                original_error=e
            )

        return {
            POLY_ADDRESS: wallet.address,
            POLY_SIGNATURE: signature,
            POLY_TIMESTAMP: timestamp,
            POLY_NONCE: str(CLOB_AUTH_NONCE),
        }

    async def _request_credentials(self, headers: Dict[str, str]) -> Dict[str, Any]:
        """
        Create-or-derive against the issuance endpoints: derive returns the
        key already bound to (wallet, nonce); create is only tried when
        nothing was issued yet.
        """
        derive_url = f"{self.clob_api_url}{DERIVE_API_KEY}"
        create_url = f"{self.clob_api_url}{CREATE_API_KEY}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(derive_url, headers=headers) as response:
                    if response.status == 200:
                        logger.debug("Derived existing API key")
                        return await response.json()
                    logger.info(
                        f"No API key to derive (HTTP {response.status}), creating one"
                    )

                async with session.post(create_url, headers=headers) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise AuthenticationError(
                            f"Credential issuance failed: HTTP {response.status}: {error_text[:200]}",
                            status_code=response.status,
                            response_data=error_text
                        )
                    return await response.json()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuthenticationError(
                f"Credential issuance request failed: {e}",
                original_error=e
            )
