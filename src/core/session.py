"""
Trading Session

The session is built exactly once, at startup:

    private key → Wallet
                → AllowanceReconciler.reconcile()     (on-chain approvals)
                → CredentialBootstrap.derive_or_reuse() (L2 credentials)
                → ClobClient(key, creds, signature_type, funder)

The result is one of two states:

    ReadySession          wallet + credentials + exchange client
    UninitializedSession  reason the bootstrap did not complete

Handlers receive the state object and call require(); an uninitialized
session fails fast and is never rebuilt lazily. Nothing mutates the session
after bootstrap, so it is shared across concurrent requests without locks.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from py_clob_client.client import ClobClient
from web3 import Web3

from config.aws_config import AWSConfig
from config.settings import TradingSettings
from core.allowances import AllowanceReconciler, ReconcileResult
from core.credentials import CredentialBootstrap, Credentials
from core.order_submitter import OrderSubmitter
from core.wallet import Wallet
from utils.logger import get_logger, log_error_with_context
from utils.exceptions import UninitializedSessionError
from utils.helpers import validate_ethereum_address


logger = get_logger(__name__)


@dataclass(frozen=True)
class ReadySession:
    wallet: Wallet
    credentials: Credentials = field(repr=False)
    clob_client: ClobClient = field(repr=False)
    signature_type: int = 0
    funder: Optional[str] = None
    allowances: Optional[ReconcileResult] = None

    is_ready = True

    def require(self) -> "ReadySession":
        return self

    @property
    def submitter(self) -> OrderSubmitter:
        return OrderSubmitter(self.clob_client, signature_type=self.signature_type)


@dataclass(frozen=True)
class UninitializedSession:
    reason: str

    is_ready = False

    def require(self) -> ReadySession:
        raise UninitializedSessionError(
            f"Client not initialized: {self.reason}. Please restart the server."
        )


SessionState = Union[ReadySession, UninitializedSession]


async def bootstrap_session(
    settings: TradingSettings,
    web3: Optional[Web3] = None,
    reconciler: Optional[AllowanceReconciler] = None,
    credential_bootstrap: Optional[CredentialBootstrap] = None,
    aws_config: Optional[AWSConfig] = None,
    clob_client_factory: Callable[..., ClobClient] = ClobClient
) -> SessionState:
    """
    Run the one-time startup sequence.

    Never raises: every failure is logged and returned as an
    UninitializedSession so read-only tools keep working.
    """
    if aws_config is None and settings.aws_secret_id:
        aws_config = AWSConfig(settings.aws_secret_id, settings.aws_region)

    try:
        private_key = settings.polymarket_private_key
        if not private_key and aws_config is not None:
            private_key = aws_config.get_wallet_private_key()
        if not private_key:
            logger.warning("POLYMARKET_PRIVATE_KEY not found - trading functions will not work")
            return UninitializedSession("POLYMARKET_PRIVATE_KEY not configured")

        logger.info("Initializing Polymarket client...")
        wallet = Wallet.from_private_key(private_key)
        funder = settings.funder_address or wallet.address
        validate_ethereum_address(funder)

        if reconciler is None:
            web3 = web3 or Web3(Web3.HTTPProvider(
                settings.polygon_rpc_url,
                request_kwargs={'timeout': settings.api_timeout_sec}
            ))
            reconciler = AllowanceReconciler(
                web3,
                gas_price_gwei=settings.gas_price_gwei,
                gas_limit=settings.gas_limit,
                chain_id=settings.chain_id,
                receipt_timeout_sec=settings.tx_receipt_timeout_sec
            )
        allowances = await reconciler.reconcile(wallet)

        cached = Credentials.from_triple(settings.cached_credentials)
        if cached is None and aws_config is not None:
            cached = Credentials.from_triple(aws_config.get_api_credentials())
        if cached is None and settings.has_partial_credentials:
            logger.warning("Incomplete CLOB credentials supplied, ignoring them and deriving")

        credential_bootstrap = credential_bootstrap or CredentialBootstrap(
            settings.clob_api_url,
            chain_id=settings.chain_id,
            timeout_sec=settings.api_timeout_sec
        )
        credentials = await credential_bootstrap.derive_or_reuse(wallet, cached)

        if cached is None and aws_config is not None and settings.persist_derived_credentials:
            aws_config.update_api_credentials(
                credentials.key, credentials.secret, credentials.passphrase
            )

        clob_client = clob_client_factory(
            settings.clob_api_url,
            chain_id=settings.chain_id,
            key=wallet.private_key,
            creds=credentials.to_api_creds(),
            signature_type=settings.signature_type,
            funder=funder
        )

    except Exception as e:
        log_error_with_context(
            logger, "Failed to initialize Polymarket client", e,
            hint="Check POLYMARKET_PRIVATE_KEY and network connection"
        )
        logger.warning("Server will start but trading functions will not work")
        return UninitializedSession(f"startup failed: {e}")

    session = ReadySession(
        wallet=wallet,
        credentials=credentials,
        clob_client=clob_client,
        signature_type=settings.signature_type,
        funder=funder,
        allowances=allowances
    )
    logger.info(f"✅ Polymarket client initialized successfully - Wallet: {wallet.address}")

    try:
        balance = await session.submitter.get_collateral_balance()
        logger.info(f"USDC Balance: {balance.get('balance')}")
    except Exception as e:
        logger.info(f"Could not fetch balance at startup: {e}")

    return session
