"""
Tests for the portfolio snapshot
"""

import pytest
from unittest.mock import Mock

from core.portfolio import PortfolioService, summarize_positions
from utils.exceptions import UpstreamError


def make_service(market_data, balance=12_500_000, decimals=6):
    service = PortfolioService(Mock(), market_data)
    service.usdc = Mock()
    service.usdc.functions.balanceOf.return_value.call.return_value = balance
    service.usdc.functions.decimals.return_value.call.return_value = decimals
    return service


def test_summarize_positions():
    totals = summarize_positions([
        {'size': 10, 'price': 0.5, 'unrealizedPnl': 1.25},
        {'size': '4', 'price': '0.25', 'unrealizedPnl': '-0.5'},
        {'size': 3},
    ])
    assert totals['totalPositionValue'] == pytest.approx(6.0)
    assert totals['totalUnrealizedPnL'] == pytest.approx(0.75)


@pytest.mark.asyncio
class TestPortfolioService:
    async def test_snapshot(self, mock_market_data, ready_session):
        mock_market_data.get_positions.return_value = [{'size': 10, 'price': 0.5, 'unrealizedPnl': 1.25}]

        snapshot = await make_service(mock_market_data).snapshot(ready_session)

        assert snapshot['walletAddress'] == ready_session.wallet.address
        assert snapshot['balances'] == {
            'usdcWalletBalance': '12.5',
            'usdcPolymarketBalance': '2.5',
            'totalLiquidBalance': '15.000000',
        }
        assert snapshot['positionsSummary'] == {
            'totalPositions': 1,
            'totalPositionValue': '5.0000',
            'totalUnrealizedPnL': '1.2500',
            'positionsError': None,
        }
        mock_market_data.get_positions.assert_awaited_once_with(ready_session.wallet.address)

    async def test_exchange_balance_unavailable(self, mock_market_data, ready_session, mock_clob_client):
        mock_clob_client.get_balance_allowance.side_effect = RuntimeError("401")

        snapshot = await make_service(mock_market_data).snapshot(ready_session)

        assert snapshot['balances']['usdcPolymarketBalance'] == 'Unable to fetch'
        assert snapshot['balances']['totalLiquidBalance'] == 'Unable to calculate'

    async def test_positions_error_recorded(self, mock_market_data, ready_session):
        mock_market_data.get_positions.side_effect = UpstreamError("GET /positions returned 500", status_code=500)

        snapshot = await make_service(mock_market_data).snapshot(ready_session)

        assert snapshot['positions'] == []
        assert snapshot['positionsSummary']['totalPositions'] == 0
        assert '500' in snapshot['positionsSummary']['positionsError']

    async def test_wallet_balance_failure_is_fatal(self, mock_market_data, ready_session):
        service = make_service(mock_market_data)
        service.usdc.functions.balanceOf.return_value.call.side_effect = ConnectionError("rpc down")

        with pytest.raises(UpstreamError, match="USDC balance"):
            await service.snapshot(ready_session)
