"""
Trading Tools

The six operations exposed to tool callers:

    getAllMarkets      read-only   Gamma markets starting today
    getMarketDetails   read-only   one Gamma market by slug
    placeMarketOrder   trading     FOK / FAK by notional amount
    placeLimitOrder    trading     GTC / GTD by price and size
    getOrder           trading     order status by id
    getPortfolio       trading     balances and positions

Each tool is an error boundary: input is parsed with pydantic, any exception
is converted to ToolResult.error, and nothing escapes to the transport.
Trading tools check the session before doing any work.
"""

import functools
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from web3 import Web3

from config.constants import DEFAULT_EXPIRATION_MINUTES, DEFAULT_MARKET_LIST_LIMIT
from core.gamma_client import MarketDataClient
from core.order_builder import OrderBuilder
from core.order_resolver import OrderResolver
from core.portfolio import PortfolioService
from core.session import SessionState
from tools.envelope import ToolResult
from utils.logger import get_logger, log_error_with_context
from utils.exceptions import NotFoundError, TradingToolsError
from utils.helpers import epoch_to_iso


logger = get_logger(__name__)


# ============================================================================
# INPUT MODELS
# ============================================================================

class ToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='forbid')


class ListMarketsInput(ToolInput):
    limit: int = Field(default=DEFAULT_MARKET_LIST_LIMIT, ge=1, le=500)


class MarketDetailsInput(ToolInput):
    market_slug: str = Field(alias='marketSlug', min_length=1)


class InstrumentInput(ToolInput):
    market_slug: Optional[str] = Field(default=None, alias='marketSlug')
    outcome: Optional[Literal["YES", "NO"]] = None
    token_id: Optional[str] = Field(default=None, alias='tokenID')
    side: Literal["BUY", "SELL"]
    tick_size: Optional[str] = Field(default=None, alias='tickSize')


class PlaceMarketOrderInput(InstrumentInput):
    amount: float
    order_type: Literal["FOK", "FAK"] = Field(alias='orderType')


class PlaceLimitOrderInput(InstrumentInput):
    price: float
    size: float
    order_type: Literal["GTC", "GTD"] = Field(alias='orderType')
    expiration_minutes: float = Field(default=DEFAULT_EXPIRATION_MINUTES, alias='expirationMinutes')


class GetOrderInput(ToolInput):
    order_id: str = Field(alias='orderId', min_length=1)


class EmptyInput(ToolInput):
    pass


def _format_pydantic_error(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get('loc', ())) or "input"
        parts.append(f"{location}: {item.get('msg')}")
    return "Invalid input - " + "; ".join(parts)


def tool(name: str, input_model: Type[ToolInput]):
    """Register a TradingTools method as a tool and wrap it in the error boundary"""

    def decorator(func: Callable[..., Awaitable[Dict[str, Any]]]):
        @functools.wraps(func)
        async def wrapper(self, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
            try:
                params = input_model.model_validate(arguments or {})
                payload = await func(self, params)
                return ToolResult.success(**payload)
            except PydanticValidationError as e:
                logger.warning(f"{name}: rejected input: {e.error_count()} error(s)")
                return ToolResult.error(_format_pydantic_error(e), "VALIDATION_ERROR")
            except TradingToolsError as e:
                log_error_with_context(logger, f"{name} failed", e, tool=name)
                return ToolResult.error(e.message, e.error_code)
            except Exception as e:
                log_error_with_context(logger, f"{name} failed unexpectedly", e, tool=name)
                return ToolResult.error(str(e) or type(e).__name__, getattr(e, 'code', None))

        wrapper.tool_name = name
        wrapper.input_model = input_model
        return wrapper

    return decorator


class TradingTools:
    """
    Tool surface over one session state.

    The session state is created once by bootstrap_session and handed in;
    tools never try to rebuild it.
    """

    def __init__(
        self,
        session: SessionState,
        market_data: MarketDataClient,
        web3: Web3,
        resolver: Optional[OrderResolver] = None,
        builder: Optional[OrderBuilder] = None,
        portfolio: Optional[PortfolioService] = None
    ):
        self.session = session
        self.market_data = market_data
        self.resolver = resolver or OrderResolver(market_data)
        self.builder = builder or OrderBuilder()
        self.portfolio = portfolio or PortfolioService(web3, market_data)

        self.registry: Dict[str, Callable[..., Awaitable[ToolResult]]] = {}
        for attr in dir(type(self)):
            method = getattr(self, attr)
            if callable(method) and hasattr(method, 'tool_name'):
                self.registry[method.tool_name] = method

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        handler = self.registry.get(name)
        if handler is None:
            return ToolResult.error(f"Unknown tool: {name}", "UNKNOWN_TOOL")
        return await handler(arguments)

    # ------------------------------------------------------------------
    # read-only
    # ------------------------------------------------------------------

    @tool("getAllMarkets", ListMarketsInput)
    async def list_markets(self, params: ListMarketsInput) -> Dict[str, Any]:
        """Get markets starting today, up to limit"""
        today = datetime.now(timezone.utc).date().isoformat()
        markets = await self.market_data.list_markets(limit=params.limit, start_date_min=today)
        return {'count': len(markets), 'date_filter': today, 'markets': markets}

    @tool("getMarketDetails", MarketDetailsInput)
    async def get_market_details(self, params: MarketDetailsInput) -> Dict[str, Any]:
        """Get one market by its slug"""
        markets = await self.market_data.get_markets_by_slug(params.market_slug)
        if not markets:
            raise NotFoundError(f"Market not found: {params.market_slug}", error_code="MARKET_NOT_FOUND")
        return {'market': markets[0]}

    # ------------------------------------------------------------------
    # trading
    # ------------------------------------------------------------------

    @tool("placeMarketOrder", PlaceMarketOrderInput)
    async def place_market_order(self, params: PlaceMarketOrderInput) -> Dict[str, Any]:
        """Place a FOK or FAK market order by USDC amount (BUY) or shares (SELL)"""
        session = self.session.require()
        instrument = await self.resolver.resolve(
            token_id=params.token_id,
            market_slug=params.market_slug,
            outcome=params.outcome,
            tick_size=params.tick_size
        )
        order = self.builder.build_market_order(
            instrument.token_id, params.amount, params.side, params.order_type
        )

        logger.info(
            f"Placing {params.order_type} {params.side} order for ${params.amount}"
            + (f" on {params.outcome}" if params.outcome else "")
        )
        response = await session.submitter.submit(order, instrument.tick_size)

        return {
            'market': instrument.market_info.to_dict() if instrument.market_info else None,
            'orderResponse': response,
            'orderDetails': {
                'outcome': params.outcome or "Unknown (using direct tokenID)",
                'tokenID': order.token_id,
                'amount': order.amount,
                'side': order.side.value,
                'orderType': order.order_type.value,
                'tickSize': instrument.tick_size,
                'inputMethod': instrument.input_method,
            },
        }

    @tool("placeLimitOrder", PlaceLimitOrderInput)
    async def place_limit_order(self, params: PlaceLimitOrderInput) -> Dict[str, Any]:
        """Place a GTC or GTD limit order"""
        session = self.session.require()
        instrument = await self.resolver.resolve(
            token_id=params.token_id,
            market_slug=params.market_slug,
            outcome=params.outcome,
            tick_size=params.tick_size
        )
        order = self.builder.build_limit_order(
            instrument.token_id,
            params.price,
            params.size,
            params.side,
            params.order_type,
            expiration_minutes=params.expiration_minutes
        )

        logger.info(
            f"Placing {params.order_type} {params.side} limit order: "
            f"{params.size} shares at ${params.price}"
            + (f" on {params.outcome}" if params.outcome else "")
        )
        response = await session.submitter.submit(order, instrument.tick_size)

        return {
            'market': instrument.market_info.to_dict() if instrument.market_info else None,
            'orderResponse': response,
            'orderDetails': {
                'outcome': params.outcome or "Unknown (using direct tokenID)",
                'tokenID': order.token_id,
                'price': order.price,
                'size': order.size,
                'side': order.side.value,
                'orderType': order.order_type.value,
                'tickSize': instrument.tick_size,
                'totalCost': f"{order.total_cost:.4f}",
                'expiration': epoch_to_iso(order.expiration) if order.expiration else "No expiration (GTC)",
                'inputMethod': instrument.input_method,
            },
        }

    @tool("getOrder", GetOrderInput)
    async def get_order(self, params: GetOrderInput) -> Dict[str, Any]:
        """Get status and fill details of an order"""
        session = self.session.require()
        logger.info(f"Fetching order details for: {params.order_id}")
        order = await session.submitter.get_order(params.order_id)

        size = float(order.get('original_size') or order.get('size') or 0)
        matched = float(order.get('size_matched') or 0)
        return {
            'orderId': params.order_id,
            'order': {
                'id': order.get('id'),
                'market': order.get('market'),
                'side': order.get('side'),
                'price': order.get('price'),
                'size': size,
                'sizeMatched': matched,
                'remainingSize': size - matched,
                'status': order.get('status'),
                'orderType': order.get('order_type'),
                'createdAt': order.get('created_at'),
                'tokenId': order.get('asset_id') or order.get('token_id'),
                'expiration': order.get('expiration'),
                'outcome': order.get('outcome'),
            },
        }

    @tool("getPortfolio", EmptyInput)
    async def get_portfolio(self, params: EmptyInput) -> Dict[str, Any]:
        """Get wallet and exchange USDC balances with open positions"""
        session = self.session.require()
        return {'portfolio': await self.portfolio.snapshot(session)}

    def list_tools(self) -> List[Dict[str, Any]]:
        """Name, description and JSON schema of every registered tool"""
        listing = []
        for name, handler in sorted(self.registry.items()):
            doc = (handler.__doc__ or "").strip()
            listing.append({
                'name': name,
                'description': doc.splitlines()[0] if doc else name,
                'inputSchema': handler.input_model.model_json_schema(by_alias=True),
            })
        return listing
