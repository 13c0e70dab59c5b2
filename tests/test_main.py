"""
Tests for the MCP tool server
"""

import asyncio
import json
import pytest
from unittest.mock import Mock, patch

from mcp.shared.memory import create_connected_server_and_client_session

from config.settings import TradingSettings
from core.session import UninitializedSession
from main import ToolServer, build_mcp_server, call_tool, tool_definitions
from tools.envelope import ToolResult
from tools.trading_tools import TradingTools


@pytest.fixture
def tools(mock_market_data):
    return TradingTools(UninitializedSession("no key"), mock_market_data, Mock())


@pytest.fixture
def server(mock_market_data, tools):
    server = ToolServer(TradingSettings(_env_file=None, polymarket_private_key=None, aws_secret_id=None))
    server.market_data = mock_market_data
    server.tools = tools
    server.mcp_server = build_mcp_server(tools)
    return server


def envelope(content) -> dict:
    assert len(content) == 1
    assert content[0].type == 'text'
    return json.loads(content[0].text)


def test_one_definition_per_registered_tool(tools):
    definitions = tool_definitions(tools)

    assert sorted(d.name for d in definitions) == sorted(tools.registry)
    order = next(d for d in definitions if d.name == 'getOrder')
    assert 'orderId' in order.inputSchema['properties']


@pytest.mark.asyncio
class TestCallTool:
    async def test_result_is_json_envelope(self, tools):
        data = envelope(await call_tool(tools, 'getAllMarkets', {'limit': 3}))
        assert data['status'] == 'success'

    async def test_missing_arguments_treated_as_empty(self, tools):
        data = envelope(await call_tool(tools, 'getMarketDetails', None))

        assert data['status'] == 'error'
        assert data['code'] == 'VALIDATION_ERROR'

    async def test_unknown_tool(self, tools):
        data = envelope(await call_tool(tools, 'noSuchTool', {}))
        assert data['code'] == 'UNKNOWN_TOOL'

    async def test_session_state_error_passes_through(self, tools):
        data = envelope(await call_tool(tools, 'getOrder', {'orderId': '0xabc'}))
        assert data['code'] == 'SESSION_UNINITIALIZED'


@pytest.mark.asyncio
class TestToolServer:
    async def test_client_lists_and_calls_tools(self, server):
        async with create_connected_server_and_client_session(server.mcp_server) as client:
            listing = await client.list_tools()
            result = await client.call_tool('getMarketDetails', {'marketSlug': 'x'})

        assert len(listing.tools) == len(server.tools.registry)
        assert result.isError is False
        assert envelope(result.content)['status'] == 'success'

    async def test_calls_are_not_serialized(self, server):
        released = asyncio.Event()

        async def fake_call(name, arguments):
            if name == 'placeMarketOrder':
                await released.wait()
            else:
                released.set()
            return ToolResult.success(tool=name)

        with patch.object(server.tools, 'call', side_effect=fake_call):
            async with create_connected_server_and_client_session(server.mcp_server) as client:
                slow, fast = await asyncio.wait_for(
                    asyncio.gather(
                        client.call_tool('placeMarketOrder', {}),
                        client.call_tool('getAllMarkets', {}),
                    ),
                    timeout=5
                )

        assert envelope(slow.content)['tool'] == 'placeMarketOrder'
        assert envelope(fast.content)['tool'] == 'getAllMarkets'

    async def test_close_releases_http_session(self, server, mock_market_data):
        await server.close()
        mock_market_data.close.assert_awaited_once()
