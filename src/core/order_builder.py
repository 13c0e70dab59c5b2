"""
Order Builder

Assembles market orders (FOK / FAK, sized by notional amount) and limit
orders (GTC / GTD, explicit price and size) from resolved parameters.

GTD expiration is absolute, in epoch seconds:

    expiration = floor((now_ms + minutes * 60_000 + 10_000) / 1000)

The extra 10 seconds cover signing and submission latency.
"""

import math
from typing import Callable, Optional, Union

from config.constants import DEFAULT_EXPIRATION_MINUTES, EXPIRATION_BUFFER_MS
from core.orders import (
    LimitOrder,
    LimitOrderType,
    MarketOrder,
    MarketOrderType,
    Side,
    validate_positive,
)
from utils.helpers import current_time_ms
from utils.exceptions import ValidationError


def _enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field_name} '{value}'. Must be one of: {allowed}")


class OrderBuilder:
    """Builds validated, immutable orders; the clock is injectable for tests"""

    def __init__(self, clock_ms: Callable[[], int] = current_time_ms):
        self._clock_ms = clock_ms

    def build_market_order(
        self,
        token_id: str,
        amount: float,
        side: Union[Side, str],
        order_type: Union[MarketOrderType, str] = MarketOrderType.FOK
    ) -> MarketOrder:
        return MarketOrder(
            token_id=token_id,
            amount=amount,
            side=_enum(Side, side, "side"),
            order_type=_enum(MarketOrderType, order_type, "orderType"),
        )

    def build_limit_order(
        self,
        token_id: str,
        price: float,
        size: float,
        side: Union[Side, str],
        order_type: Union[LimitOrderType, str] = LimitOrderType.GTC,
        expiration_minutes: Optional[float] = DEFAULT_EXPIRATION_MINUTES
    ) -> LimitOrder:
        """
        Args:
            expiration_minutes: Lifetime of a GTD order; ignored for GTC

        Raises:
            ValidationError: Bad price/size/side/type, or non-positive
                expiration minutes on a GTD order
        """
        order_type = _enum(LimitOrderType, order_type, "orderType")

        expiration = None
        if order_type is LimitOrderType.GTD:
            if expiration_minutes is None:
                raise ValidationError("GTD orders require expirationMinutes")
            validate_positive(expiration_minutes, "expirationMinutes")
            expiration = self.compute_expiration(expiration_minutes)

        return LimitOrder(
            token_id=token_id,
            price=price,
            size=size,
            side=_enum(Side, side, "side"),
            order_type=order_type,
            expiration=expiration,
        )

    def compute_expiration(self, expiration_minutes: float) -> int:
        """Absolute expiry in epoch seconds, including the latency buffer"""
        now_ms = self._clock_ms()
        return math.floor((now_ms + expiration_minutes * 60_000 + EXPIRATION_BUFFER_MS) / 1000)
