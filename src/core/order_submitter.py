"""
Order Submitter

Hands built orders to py-clob-client for EIP-712 order signing and posting.
Order signatures are off-chain, so concurrent submissions never contend for
an on-chain nonce.

All blocking SDK calls run in a worker thread (asyncio.to_thread).
"""

from typing import Any, Dict, Optional, Union

import asyncio
from py_clob_client.client import ClobClient
from py_clob_client.clob_types import (
    AssetType,
    BalanceAllowanceParams,
    MarketOrderArgs,
    OrderArgs,
    OrderType,
    PartialCreateOrderOptions,
)
from py_clob_client.exceptions import PolyApiException

from core.orders import LimitOrder, MarketOrder
from utils.logger import get_logger, log_order_event
from utils.exceptions import NotFoundError, UpstreamError


logger = get_logger(__name__)


def _upstream_error(action: str, e: Exception) -> UpstreamError:
    """Keep the exchange's status code when it gave one"""
    if isinstance(e, PolyApiException):
        return UpstreamError(
            f"{action} failed: {e.error_msg}",
            status_code=e.status_code,
            response_data=e.error_msg,
            original_error=e
        )
    return UpstreamError(f"{action} failed: {e}", original_error=e)


class OrderSubmitter:
    """Signs and posts orders through an authenticated ClobClient"""

    def __init__(self, clob_client: ClobClient, signature_type: Optional[int] = None):
        self.clob_client = clob_client
        self.signature_type = signature_type

    async def submit(
        self,
        order: Union[MarketOrder, LimitOrder],
        tick_size: str
    ) -> Dict[str, Any]:
        """
        Sign the order with the session wallet and post it.

        Args:
            order: Built MarketOrder or LimitOrder
            tick_size: Price granularity the exchange validates against

        Returns:
            Exchange acknowledgement (orderID, status, ...)

        Raises:
            UpstreamError: Signing or posting failed
        """
        options = PartialCreateOrderOptions(tick_size=tick_size)
        # OrderType is a plain namespace of string constants, not an Enum
        order_type = getattr(OrderType, order.order_type.value)

        if isinstance(order, MarketOrder):
            args = MarketOrderArgs(
                token_id=order.token_id,
                amount=order.amount,
                side=order.side.value,
                order_type=order_type,
            )
            create = self.clob_client.create_market_order
        else:
            args = OrderArgs(
                token_id=order.token_id,
                price=order.price,
                size=order.size,
                side=order.side.value,
                expiration=order.expiration or 0,
            )
            create = self.clob_client.create_order

        try:
            signed_order = await asyncio.to_thread(create, args, options)
        except Exception as e:
            logger.error(f"Failed to sign {order.order_type.value} order: {e}")
            raise _upstream_error("Order signing", e)

        try:
            response = await asyncio.to_thread(
                self.clob_client.post_order,
                signed_order,
                order_type
            )
        except Exception as e:
            logger.error(f"Failed to post {order.order_type.value} order: {e}")
            raise _upstream_error("Order submission", e)

        log_order_event(
            logger, 'ORDER_POSTED',
            order_id=(response or {}).get('orderID'),
            token_id=order.token_id,
            side=order.side.value,
            order_type=order.order_type.value,
            tick_size=tick_size
        )
        return response

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: Exchange knows no such order
            UpstreamError: Lookup failed
        """
        try:
            order = await asyncio.to_thread(self.clob_client.get_order, order_id)
        except PolyApiException as e:
            if e.status_code == 404:
                raise NotFoundError(f"Order not found: {order_id}", error_code="ORDER_NOT_FOUND")
            raise _upstream_error("Order lookup", e)
        except Exception as e:
            raise _upstream_error("Order lookup", e)

        if not order:
            raise NotFoundError(f"Order not found: {order_id}", error_code="ORDER_NOT_FOUND")
        return order

    async def get_collateral_balance(self) -> Dict[str, Any]:
        """Exchange-side USDC balance and allowance (raw 6-decimal units)"""
        params = BalanceAllowanceParams(
            asset_type=AssetType.COLLATERAL,
            signature_type=self.signature_type if self.signature_type is not None else -1,
        )
        try:
            return await asyncio.to_thread(self.clob_client.get_balance_allowance, params)
        except Exception as e:
            raise _upstream_error("Balance lookup", e)
