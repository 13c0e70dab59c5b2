#!/usr/bin/env python3
"""
Set Exchange Allowances for the trading wallet

Runs the same reconciliation as server startup, standalone:
- USDC approve → Conditional Tokens (max uint256)
- USDC approve → CTF Exchange (max uint256)
- Conditional Tokens setApprovalForAll → CTF Exchange

Nothing is submitted for approvals that are already in place.

Usage:
    python scripts/set_allowances.py [--check]

    --check   only print the current state
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from web3 import Web3

from config.settings import get_settings
from core.allowances import AllowanceReconciler
from core.wallet import Wallet
from utils.exceptions import TradingToolsError
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


async def main(check_only: bool) -> bool:
    settings = get_settings()
    setup_logging(log_level=settings.log_level)

    if not settings.polymarket_private_key:
        logger.error("POLYMARKET_PRIVATE_KEY not set")
        return False

    wallet = Wallet.from_private_key(settings.polymarket_private_key)
    web3 = Web3(Web3.HTTPProvider(settings.polygon_rpc_url))
    reconciler = AllowanceReconciler(
        web3,
        gas_price_gwei=settings.gas_price_gwei,
        gas_limit=settings.gas_limit,
        chain_id=settings.chain_id,
        receipt_timeout_sec=settings.tx_receipt_timeout_sec
    )

    logger.info("=" * 80)
    logger.info(f"Allowance setup for {wallet.address}")
    logger.info("=" * 80)

    try:
        state = await reconciler.read_state(wallet.address)
        logger.info(f"USDC → CTF allowance:      {state.usdc_ctf_allowance}")
        logger.info(f"USDC → Exchange allowance: {state.usdc_exchange_allowance}")
        logger.info(f"CTF → Exchange approved:   {state.ctf_exchange_approved}")
        if check_only:
            return state.is_sufficient

        result = await reconciler.reconcile(wallet)
    except TradingToolsError as e:
        logger.error(f"Allowance setup failed: {e}")
        return False

    logger.info(result.message)
    for tx in result.transactions:
        logger.info(f"  {tx}")
    return True


if __name__ == "__main__":
    ok = asyncio.run(main('--check' in sys.argv[1:]))
    sys.exit(0 if ok else 1)
