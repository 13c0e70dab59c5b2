"""
Portfolio snapshot

Wallet USDC (on-chain), exchange-held collateral (CLOB) and open positions
(Data API) for the session wallet. Only the wallet balance read is fatal;
the other two degrade to placeholders so a partial view is still returned.
"""

from typing import Any, Dict, List, Optional

import asyncio
from web3 import Web3

from config.constants import ERC20_ABI, USDC_ADDRESS, USDC_DECIMALS
from core.gamma_client import MarketDataClient
from core.session import ReadySession
from utils.logger import get_logger
from utils.exceptions import UpstreamError
from utils.helpers import format_units


logger = get_logger(__name__)

UNAVAILABLE = "Unable to fetch"


def summarize_positions(positions: List[Dict[str, Any]]) -> Dict[str, float]:
    """Σ size·price and Σ unrealizedPnl over position records"""
    total_value = 0.0
    total_pnl = 0.0
    for position in positions:
        size = position.get('size')
        price = position.get('price')
        if size and price:
            total_value += float(size) * float(price)
        if position.get('unrealizedPnl'):
            total_pnl += float(position['unrealizedPnl'])
    return {'totalPositionValue': total_value, 'totalUnrealizedPnL': total_pnl}


class PortfolioService:
    def __init__(self, web3: Web3, market_data: MarketDataClient):
        self.market_data = market_data
        self.usdc = web3.eth.contract(
            address=Web3.to_checksum_address(USDC_ADDRESS),
            abi=ERC20_ABI
        )

    async def wallet_usdc_balance(self, address: str) -> str:
        try:
            raw, decimals = await asyncio.gather(
                asyncio.to_thread(self.usdc.functions.balanceOf(address).call),
                asyncio.to_thread(self.usdc.functions.decimals().call),
            )
        except Exception as e:
            raise UpstreamError(f"Failed to read USDC balance: {e}", original_error=e)
        return format_units(raw, decimals)

    async def snapshot(self, session: ReadySession) -> Dict[str, Any]:
        address = session.funder or session.wallet.address
        wallet_balance = await self.wallet_usdc_balance(address)

        exchange_balance: Optional[str]
        try:
            collateral = await session.submitter.get_collateral_balance()
            exchange_balance = format_units(collateral.get('balance', 0), USDC_DECIMALS)
        except Exception as e:
            logger.warning(f"Could not fetch exchange balance: {e}")
            exchange_balance = None

        positions: List[Dict[str, Any]] = []
        positions_error = None
        try:
            positions = await self.market_data.get_positions(address)
        except Exception as e:
            logger.warning(f"Could not fetch positions: {e}")
            positions_error = str(e)

        totals = summarize_positions(positions)
        if exchange_balance is not None:
            total_liquid = f"{float(wallet_balance) + float(exchange_balance):.6f}"
        else:
            total_liquid = "Unable to calculate"

        return {
            'walletAddress': address,
            'balances': {
                'usdcWalletBalance': wallet_balance,
                'usdcPolymarketBalance': exchange_balance if exchange_balance is not None else UNAVAILABLE,
                'totalLiquidBalance': total_liquid,
            },
            'positionsSummary': {
                'totalPositions': len(positions),
                'totalPositionValue': f"{totals['totalPositionValue']:.4f}",
                'totalUnrealizedPnL': f"{totals['totalUnrealizedPnL']:.4f}",
                'positionsError': positions_error,
            },
            'positions': positions,
        }
