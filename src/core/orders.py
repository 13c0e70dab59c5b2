"""
Order model

Orders are built fresh per request and never mutated. Value types validate
once at construction, so everything downstream can trust them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from config.constants import VALID_TICK_SIZES
from utils.exceptions import ValidationError


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"


class MarketOrderType(str, Enum):
    """Kill policy for market orders"""
    FOK = "FOK"  # fill entirely or cancel
    FAK = "FAK"  # fill what is available, cancel the rest


class LimitOrderType(str, Enum):
    """Time class for limit orders"""
    GTC = "GTC"  # good until cancelled
    GTD = "GTD"  # good until expiration


# ============================================================================
# VALUE TYPES
# ============================================================================

def validate_tick_size(tick_size: Any) -> str:
    """Normalize to the exchange's string form ("0.01") and check it is supported"""
    text = str(tick_size).strip()
    if text not in VALID_TICK_SIZES:
        raise ValidationError(
            f"Unsupported tick size '{text}'. Must be one of {sorted(VALID_TICK_SIZES)}",
            error_code="INVALID_TICK_SIZE"
        )
    return text


def validate_price(price: float) -> float:
    """Outcome prices live strictly between 0 and 1"""
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError(f"Price must be numeric, got {type(price).__name__}")
    if not 0 < price < 1:
        raise ValidationError(
            f"Price must be between 0 and 1 (exclusive), got {price}",
            error_code="INVALID_PRICE"
        )
    return float(price)


def validate_positive(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be numeric, got {type(value).__name__}")
    if value <= 0:
        raise ValidationError(
            f"{name} must be positive, got {value}",
            error_code=f"INVALID_{name.upper()}"
        )
    return float(value)


# ============================================================================
# ORDERS
# ============================================================================

@dataclass(frozen=True)
class MarketOrder:
    """Immediate order sized by notional USD amount (BUY) or shares (SELL)"""

    token_id: str
    amount: float
    side: Side
    order_type: MarketOrderType

    def __post_init__(self):
        if not self.token_id:
            raise ValidationError("token_id must be a non-empty string")
        validate_positive(self.amount, "amount")
        if not isinstance(self.order_type, MarketOrderType):
            raise ValidationError(f"Market orders must be FOK or FAK, got {self.order_type}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tokenID': self.token_id,
            'amount': self.amount,
            'side': self.side.value,
            'orderType': self.order_type.value,
        }


@dataclass(frozen=True)
class LimitOrder:
    """
    Resting order with explicit price and size.
    Expiration (epoch seconds) is set iff order_type is GTD.
    """

    token_id: str
    price: float
    size: float
    side: Side
    order_type: LimitOrderType
    expiration: Optional[int] = None

    def __post_init__(self):
        if not self.token_id:
            raise ValidationError("token_id must be a non-empty string")
        validate_price(self.price)
        validate_positive(self.size, "size")
        if not isinstance(self.order_type, LimitOrderType):
            raise ValidationError(f"Limit orders must be GTC or GTD, got {self.order_type}")
        if self.order_type is LimitOrderType.GTD and self.expiration is None:
            raise ValidationError("GTD orders require an expiration")
        if self.order_type is LimitOrderType.GTC and self.expiration is not None:
            raise ValidationError("GTC orders cannot carry an expiration")

    @property
    def total_cost(self) -> float:
        return self.price * self.size

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'tokenID': self.token_id,
            'price': self.price,
            'size': self.size,
            'side': self.side.value,
            'orderType': self.order_type.value,
        }
        if self.expiration is not None:
            data['expiration'] = self.expiration
        return data
