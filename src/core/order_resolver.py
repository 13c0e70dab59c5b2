"""
Order Resolver

Turns a trade request into the instrument the CLOB understands:

    tokenID                  → used verbatim, tick size = override or 0.01
    marketSlug + outcome     → Gamma lookup, YES = clobTokenIds[0],
                               NO = clobTokenIds[1], tick size from the market

The raw-token fallback tick size is a guess; markets quoting in 0.001 will
reject prices that are not multiples of it.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from config.constants import DEFAULT_TICK_SIZE, OUTCOME_TOKEN_INDEX
from core.gamma_client import MarketDataClient
from core.orders import Outcome, validate_tick_size
from utils.logger import get_logger
from utils.exceptions import NotFoundError, UpstreamError, ValidationError


logger = get_logger(__name__)


@dataclass(frozen=True)
class MarketInfo:
    question: str
    slug: str
    end_date: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'question': self.question,
            'slug': self.slug,
            'endDate': self.end_date,
        }


@dataclass(frozen=True)
class ResolvedInstrument:
    token_id: str
    tick_size: str
    market_info: Optional[MarketInfo] = None
    outcome: Optional[Outcome] = None

    @property
    def input_method(self) -> str:
        return "Market slug + outcome" if self.market_info else "Direct tokenID"


def parse_outcome_tokens(raw: Union[str, List[str], None], slug: str) -> List[str]:
    """clobTokenIds arrives as a JSON-encoded string; tolerate a plain list too"""
    tokens = raw
    if isinstance(raw, str):
        try:
            tokens = json.loads(raw)
        except json.JSONDecodeError as e:
            raise UpstreamError(
                f"Market {slug} has malformed clobTokenIds: {e}",
                error_code="INVALID_MARKET_DATA"
            )
    if not isinstance(tokens, list) or len(tokens) != 2:
        raise UpstreamError(
            f"Market {slug} does not have exactly two outcome tokens",
            error_code="INVALID_MARKET_DATA",
            details={'clobTokenIds': raw}
        )
    return [str(token) for token in tokens]


class OrderResolver:
    """Resolves raw token ids or market references into token id + tick size"""

    def __init__(self, market_data: MarketDataClient):
        self.market_data = market_data

    async def resolve(
        self,
        token_id: Optional[str] = None,
        market_slug: Optional[str] = None,
        outcome: Optional[Union[Outcome, str]] = None,
        tick_size: Optional[str] = None
    ) -> ResolvedInstrument:
        """
        Args:
            token_id: Direct CLOB token id (alternative to slug + outcome)
            market_slug: Gamma market slug
            outcome: YES or NO (required with market_slug)
            tick_size: Override, only honoured on the token_id path

        Raises:
            ValidationError: Neither or both instrument forms supplied
            NotFoundError: Slug matches no market
            UpstreamError: Gamma failure or malformed market data
        """
        has_token = bool(token_id)
        has_reference = bool(market_slug) and outcome is not None
        partial_reference = bool(market_slug) != (outcome is not None)

        if has_token and (market_slug or outcome is not None):
            raise ValidationError(
                "Provide either tokenID or marketSlug + outcome, not both "
                f"(got tokenID and {'marketSlug' if market_slug else 'outcome'})",
                error_code="CONFLICTING_INSTRUMENT"
            )
        if not has_token and not has_reference:
            missing = "outcome" if market_slug else "marketSlug" if partial_reference else "tokenID or marketSlug + outcome"
            raise ValidationError(
                f"Either provide tokenID directly, or provide both marketSlug and outcome (missing {missing})",
                error_code="MISSING_INSTRUMENT"
            )

        if has_token:
            final_tick = validate_tick_size(tick_size) if tick_size else DEFAULT_TICK_SIZE
            logger.info(f"Using provided tokenID: {token_id} with tickSize: {final_tick}")
            return ResolvedInstrument(token_id=token_id, tick_size=final_tick)

        try:
            outcome = Outcome(outcome)
        except ValueError:
            raise ValidationError(f"Outcome must be YES or NO, got {outcome}")
        return await self._resolve_market(market_slug, outcome)

    async def _resolve_market(self, slug: str, outcome: Outcome) -> ResolvedInstrument:
        logger.info(f"Fetching market details for: {slug}")
        markets = await self.market_data.get_markets_by_slug(slug)
        if not markets:
            raise NotFoundError(f"Market not found: {slug}", error_code="MARKET_NOT_FOUND")

        market = markets[0]
        tokens = parse_outcome_tokens(market.get('clobTokenIds'), slug)
        token_id = tokens[OUTCOME_TOKEN_INDEX[outcome.value]]

        raw_tick = market.get('orderPriceMinTickSize')
        if raw_tick is None:
            raise UpstreamError(
                f"Market {slug} has no orderPriceMinTickSize",
                error_code="INVALID_MARKET_DATA"
            )
        tick_size = validate_tick_size(raw_tick)

        info = MarketInfo(
            question=market.get('question', ''),
            slug=slug,
            end_date=market.get('endDate')
        )
        logger.info(
            f"Market: {info.question} | Token ID ({outcome.value}): {token_id} | Tick Size: {tick_size}"
        )
        return ResolvedInstrument(
            token_id=token_id,
            tick_size=tick_size,
            market_info=info,
            outcome=outcome
        )
