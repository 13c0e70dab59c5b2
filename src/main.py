"""
Main Entry Point for the Polymarket trading tools
MCP server on stdin/stdout

Each registered trading tool is exposed as one MCP tool. A call returns a
single text content block holding the tool's JSON result envelope.
Requests are dispatched concurrently by the MCP server loop, so a slow
order submission never holds up a market lookup.

stdout carries only protocol messages; all logging goes to stderr.
"""

import os
import sys
import asyncio
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from web3 import Web3

# Add src to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.settings import TradingSettings, get_settings
from core.gamma_client import MarketDataClient
from core.session import bootstrap_session
from tools.trading_tools import TradingTools
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

SERVER_NAME = "Polymarket MCP"
SERVER_VERSION = "1.0.0"

def tool_definitions(tools: TradingTools) -> List[types.Tool]:
    return [
        types.Tool(
            name=entry['name'],
            description=entry['description'],
            inputSchema=entry['inputSchema'],
        )
        for entry in tools.list_tools()
    ]

async def call_tool(
    tools: TradingTools,
    name: str,
    arguments: Optional[Dict[str, Any]]
) -> List[types.TextContent]:
    """Run one tool and wrap its result envelope as MCP text content"""
    logger.debug(f"Tool call: {name}")
    result = await tools.call(name, arguments or {})
    return [types.TextContent(type="text", text=result.to_json())]

def build_mcp_server(tools: TradingTools) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return tool_definitions(tools)

    # Input models validate arguments and answer with the error envelope
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        return await call_tool(tools, name, arguments)

    return server

class ToolServer:
    """
    Owns the process-wide resources: settings, the one session state,
    the HTTP session for market data, and the tool surface.
    """

    def __init__(self, settings: TradingSettings):
        self.settings = settings
        self.web3 = Web3(Web3.HTTPProvider(
            settings.polygon_rpc_url,
            request_kwargs={'timeout': settings.api_timeout_sec}
        ))
        self.market_data = MarketDataClient(
            settings.gamma_api_url,
            settings.data_api_url,
            timeout_sec=settings.api_timeout_sec
        )
        self.tools: Optional[TradingTools] = None
        self.mcp_server: Optional[Server] = None

    async def initialize(self) -> None:
        session = await bootstrap_session(self.settings, web3=self.web3)
        self.tools = TradingTools(session, self.market_data, self.web3)
        self.mcp_server = build_mcp_server(self.tools)
        logger.info(
            f"Tool server ready ({len(self.tools.registry)} tools, "
            f"trading {'enabled' if session.is_ready else 'disabled'})"
        )

    async def serve(self) -> None:
        logger.info("Polymarket trading tools listening on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.mcp_server.run(
                read_stream,
                write_stream,
                self.mcp_server.create_initialization_options()
            )
        logger.info("stdin closed, shutting down")

    async def close(self) -> None:
        await self.market_data.close()

async def run() -> None:
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        structured=settings.structured_logging
    )

    logger.info("Starting Polymarket trading tools...")
    server = ToolServer(settings)
    try:
        await server.initialize()
        await server.serve()
    finally:
        await server.close()

def main() -> None:
    """Console script entry point"""
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
