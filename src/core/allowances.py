"""
On-chain Allowance Reconciler

Before the CTF Exchange can settle orders for a wallet, three approvals must
be in place on Polygon:

    1. USDC.approve(CTF, MAX)               → split/merge collateral
    2. USDC.approve(CTF_EXCHANGE, MAX)      → BUY orders move USDC
    3. CTF.setApprovalForAll(EXCHANGE, true) → SELL orders move outcome tokens

Reconciliation reads all three facts (concurrently), then submits one
transaction per missing approval. Transactions from one signer share one
nonce sequence, so they go through SignerTransactionQueue and each receipt is
awaited before the next transaction is built.

Safe to run on every startup: a fully approved wallet costs three reads and
zero transactions.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3

from config.constants import (
    APPROVAL_GAS_LIMIT,
    APPROVAL_GAS_PRICE_GWEI,
    CTF_ABI,
    CTF_CONTRACT_ADDRESS,
    CTF_EXCHANGE_ADDRESS,
    ERC20_ABI,
    MAX_UINT256,
    POLYGON_CHAIN_ID,
    TX_RECEIPT_TIMEOUT_SEC,
    USDC_ADDRESS,
)
from core.wallet import Wallet
from utils.logger import get_logger
from utils.exceptions import TransactionError, UpstreamError


logger = get_logger(__name__)

NOTHING_NEEDED_MESSAGE = "All allowances already sufficient"
SUBMITTED_MESSAGE = "Allowances set successfully"


@dataclass(frozen=True)
class AllowanceState:
    """Snapshot of the three approval facts, read fresh on every call"""

    usdc_ctf_allowance: int
    usdc_exchange_allowance: int
    ctf_exchange_approved: bool

    @property
    def usdc_ctf_sufficient(self) -> bool:
        return self.usdc_ctf_allowance > 0

    @property
    def usdc_exchange_sufficient(self) -> bool:
        return self.usdc_exchange_allowance > 0

    @property
    def is_sufficient(self) -> bool:
        return self.usdc_ctf_sufficient and self.usdc_exchange_sufficient and self.ctf_exchange_approved


@dataclass(frozen=True)
class ApprovalTransaction:
    step: str
    tx_hash: str

    def __str__(self) -> str:
        return f"{self.step}: {self.tx_hash}"


@dataclass
class ReconcileResult:
    transactions: List[ApprovalTransaction] = field(default_factory=list)

    @property
    def tx_hashes(self) -> List[str]:
        return [tx.tx_hash for tx in self.transactions]

    @property
    def submitted(self) -> bool:
        return bool(self.transactions)

    @property
    def message(self) -> str:
        return SUBMITTED_MESSAGE if self.submitted else NOTHING_NEEDED_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'transactions': [str(tx) for tx in self.transactions],
            'message': self.message,
        }


class SignerTransactionQueue:
    """
    Strictly sequential transaction submission for one signer on one chain.

    Each submit() holds the queue until its receipt is confirmed, so the
    nonce read for the next transaction already accounts for this one.
    asyncio.Lock wakes waiters in FIFO order, which keeps submission order.
    """

    def __init__(
        self,
        web3: Web3,
        wallet: Wallet,
        chain_id: int = POLYGON_CHAIN_ID,
        receipt_timeout_sec: int = TX_RECEIPT_TIMEOUT_SEC
    ):
        self.web3 = web3
        self.wallet = wallet
        self.chain_id = chain_id
        self.receipt_timeout_sec = receipt_timeout_sec
        self._lock = asyncio.Lock()

    async def submit(
        self,
        step: str,
        build_tx: Callable[[Dict[str, Any]], Dict[str, Any]],
        tx_params: Dict[str, Any]
    ) -> ApprovalTransaction:
        """
        Build, sign, send and confirm one transaction.

        Args:
            step: Label for logs and the result list
            build_tx: contract_function.build_transaction
            tx_params: gas / gasPrice; from, nonce and chainId are filled in here

        Raises:
            TransactionError: On RPC failure, revert or receipt timeout
        """
        async with self._lock:
            tx_hash: Optional[str] = None
            try:
                nonce = await asyncio.to_thread(
                    self.web3.eth.get_transaction_count,
                    self.wallet.address,
                    'pending'
                )
                tx = build_tx({
                    **tx_params,
                    'from': self.wallet.address,
                    'nonce': nonce,
                    'chainId': self.chain_id,
                })
                raw_tx = self.wallet.sign_transaction(tx)
                sent = await asyncio.to_thread(self.web3.eth.send_raw_transaction, raw_tx)
                tx_hash = Web3.to_hex(sent)
                logger.info(f"{step} transaction sent: {tx_hash} (nonce {nonce})")

                receipt = await asyncio.to_thread(
                    self.web3.eth.wait_for_transaction_receipt,
                    sent,
                    timeout=self.receipt_timeout_sec
                )
            except Exception as e:
                raise TransactionError(
                    f"{step} transaction failed: {e}",
                    tx_hash=tx_hash,
                    original_error=e
                )

            if receipt['status'] != 1:
                gas_limit = tx.get('gas')
                if gas_limit is not None and receipt.get('gasUsed') == gas_limit:
                    reason = "reverted (out of gas)"
                else:
                    reason = "reverted"
                raise TransactionError(
                    f"{step} transaction {reason}: {tx_hash}",
                    tx_hash=tx_hash,
                    error_code="TRANSACTION_REVERTED"
                )

            logger.info(f"✅ {step} confirmed in block {receipt.get('blockNumber')}")
            return ApprovalTransaction(step=step, tx_hash=tx_hash)


class AllowanceReconciler:
    """
    Checks and raises the USDC / CTF approvals a wallet needs before trading.
    """

    def __init__(
        self,
        web3: Web3,
        gas_price_gwei: int = APPROVAL_GAS_PRICE_GWEI,
        gas_limit: int = APPROVAL_GAS_LIMIT,
        chain_id: int = POLYGON_CHAIN_ID,
        receipt_timeout_sec: int = TX_RECEIPT_TIMEOUT_SEC
    ):
        self.web3 = web3
        self.gas_price_wei = Web3.to_wei(gas_price_gwei, 'gwei')
        self.gas_limit = gas_limit
        self.chain_id = chain_id
        self.receipt_timeout_sec = receipt_timeout_sec

        self.usdc = web3.eth.contract(
            address=Web3.to_checksum_address(USDC_ADDRESS),
            abi=ERC20_ABI
        )
        self.ctf = web3.eth.contract(
            address=Web3.to_checksum_address(CTF_CONTRACT_ADDRESS),
            abi=CTF_ABI
        )
        self.ctf_address = Web3.to_checksum_address(CTF_CONTRACT_ADDRESS)
        self.exchange_address = Web3.to_checksum_address(CTF_EXCHANGE_ADDRESS)

    async def read_state(self, owner: str) -> AllowanceState:
        """Read all three approval facts concurrently"""
        try:
            usdc_ctf, usdc_exchange, ctf_approved = await asyncio.gather(
                asyncio.to_thread(self.usdc.functions.allowance(owner, self.ctf_address).call),
                asyncio.to_thread(self.usdc.functions.allowance(owner, self.exchange_address).call),
                asyncio.to_thread(self.ctf.functions.isApprovedForAll(owner, self.exchange_address).call),
            )
        except Exception as e:
            raise UpstreamError(
                f"Failed to read allowance state for {owner}: {e}",
                original_error=e
            )

        state = AllowanceState(
            usdc_ctf_allowance=int(usdc_ctf),
            usdc_exchange_allowance=int(usdc_exchange),
            ctf_exchange_approved=bool(ctf_approved),
        )
        logger.debug(
            "Allowance state read",
            extra={
                'owner': owner,
                'usdc_ctf_sufficient': state.usdc_ctf_sufficient,
                'usdc_exchange_sufficient': state.usdc_exchange_sufficient,
                'ctf_exchange_approved': state.ctf_exchange_approved,
            }
        )
        return state

    async def reconcile(self, wallet: Wallet) -> ReconcileResult:
        """
        Submit one approval transaction per insufficient fact.

        Returns:
            ReconcileResult with the submitted transactions (empty when
            everything was already approved)

        Raises:
            UpstreamError: If the state cannot be read
            TransactionError: On the first failed transaction; later steps
                are not attempted
        """
        logger.info("Checking and setting allowances...")
        state = await self.read_state(wallet.address)
        queue = SignerTransactionQueue(
            self.web3,
            wallet,
            chain_id=self.chain_id,
            receipt_timeout_sec=self.receipt_timeout_sec
        )
        tx_params = {'gas': self.gas_limit, 'gasPrice': self.gas_price_wei}
        result = ReconcileResult()

        if not state.usdc_ctf_sufficient:
            logger.info("Setting USDC allowance for CTF...")
            result.transactions.append(await queue.submit(
                "CTF allowance",
                self.usdc.functions.approve(self.ctf_address, MAX_UINT256).build_transaction,
                tx_params
            ))

        if not state.usdc_exchange_sufficient:
            logger.info("Setting USDC allowance for Exchange...")
            result.transactions.append(await queue.submit(
                "Exchange allowance",
                self.usdc.functions.approve(self.exchange_address, MAX_UINT256).build_transaction,
                tx_params
            ))

        if not state.ctf_exchange_approved:
            logger.info("Setting Conditional Tokens approval for Exchange...")
            result.transactions.append(await queue.submit(
                "CTF approval",
                self.ctf.functions.setApprovalForAll(self.exchange_address, True).build_transaction,
                tx_params
            ))

        logger.info(result.message, extra={'tx_hashes': result.tx_hashes})
        return result
