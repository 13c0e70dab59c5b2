"""
Test Configuration Module
Provides fixtures and shared test utilities
"""

import pytest
import json
import sys
import os
from unittest.mock import AsyncMock, Mock

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from core.credentials import Credentials
from core.gamma_client import MarketDataClient
from core.session import ReadySession
from core.wallet import Wallet


TEST_PRIVATE_KEY = '0x' + '1' * 64
TEST_ADDRESS = '0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A'

YES_TOKEN = '71321045679252212594626385532706912750332728571942532289631379312455583992563'
NO_TOKEN = '52114319501245915516055106046884209969926127482827954674443846427813813222426'


@pytest.fixture
def wallet():
    """Real signing wallet over a throwaway key"""
    return Wallet.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture
def credentials():
    return Credentials(key='test-key', secret='test-secret', passphrase='test-pass')


@pytest.fixture
def sample_market():
    """Gamma /markets record as returned for a slug lookup"""
    return {
        'id': '253591',
        'question': 'Will BTC reach $100k by EOY?',
        'slug': 'will-btc-reach-100k-by-eoy',
        'endDate': '2026-12-31T12:00:00Z',
        'clobTokenIds': json.dumps([YES_TOKEN, NO_TOKEN]),
        'orderPriceMinTickSize': 0.001,
    }


@pytest.fixture
def mock_market_data(sample_market):
    """MarketDataClient double that answers every slug with sample_market"""
    market_data = Mock(spec=MarketDataClient)
    market_data.get_markets_by_slug = AsyncMock(return_value=[sample_market])
    market_data.list_markets = AsyncMock(return_value=[sample_market])
    market_data.get_positions = AsyncMock(return_value=[])
    market_data.close = AsyncMock()
    return market_data


@pytest.fixture
def mock_clob_client():
    """Synchronous ClobClient double (the submitter runs it in a thread)"""
    client = Mock()
    client.create_order.return_value = 'signed-limit-order'
    client.create_market_order.return_value = 'signed-market-order'
    client.post_order.return_value = {'success': True, 'orderID': '0xabc123', 'status': 'live'}
    client.get_balance_allowance.return_value = {'balance': '2500000', 'allowance': '0'}
    return client


@pytest.fixture
def ready_session(wallet, credentials, mock_clob_client):
    return ReadySession(
        wallet=wallet,
        credentials=credentials,
        clob_client=mock_clob_client,
        signature_type=0,
        funder=wallet.address
    )
