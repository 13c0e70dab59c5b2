"""
Read-only Polymarket HTTP collaborators

- Gamma API: market metadata (question, endDate, clobTokenIds, tick size)
- Data API: wallet positions

Neither needs authentication, so both work without a trading session.
"""

from typing import Any, Dict, List, Optional

import asyncio
import aiohttp

from config.constants import (
    API_TIMEOUT_SEC,
    DEFAULT_MARKET_LIST_LIMIT,
    POLYMARKET_DATA_API_URL,
    POLYMARKET_GAMMA_API_URL,
    POSITIONS_PAGE_LIMIT,
)
from utils.logger import get_logger
from utils.exceptions import UpstreamError


logger = get_logger(__name__)


class MarketDataClient:
    """
    Thin aiohttp wrapper over the Gamma and Data APIs.
    The HTTP session is created on first use; call close() on shutdown.
    """

    def __init__(
        self,
        gamma_api_url: str = POLYMARKET_GAMMA_API_URL,
        data_api_url: str = POLYMARKET_DATA_API_URL,
        timeout_sec: int = API_TIMEOUT_SEC
    ):
        self.gamma_api_url = gamma_api_url.rstrip('/')
        self.data_api_url = data_api_url.rstrip('/')
        self.timeout_sec = timeout_sec
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_sec),
                headers={
                    "User-Agent": "Polymarket-Tools/1.0",
                    "Accept": "application/json"
                }
            )
        return self._session

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        logger.debug(f"GET {url} params={params}")
        try:
            async with self._get_session().get(url, params=params) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise UpstreamError(
                        f"GET {url} returned {response.status}: {error_text[:200]}",
                        status_code=response.status,
                        response_data=error_text
                    )
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"GET {url} failed: {e}", original_error=e)

    async def get_markets_by_slug(self, slug: str) -> List[Dict[str, Any]]:
        """All markets matching the slug (normally zero or one)"""
        markets = await self._get_json(f"{self.gamma_api_url}/markets", {'slug': slug})
        return markets or []

    async def list_markets(
        self,
        limit: int = DEFAULT_MARKET_LIST_LIMIT,
        start_date_min: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {'limit': limit}
        if start_date_min:
            params['start_date_min'] = start_date_min
        markets = await self._get_json(f"{self.gamma_api_url}/markets", params)
        return markets or []

    async def get_positions(self, address: str) -> List[Dict[str, Any]]:
        """Open positions above one share, largest first"""
        positions = await self._get_json(
            f"{self.data_api_url}/positions",
            {
                'sizeThreshold': 1,
                'limit': POSITIONS_PAGE_LIMIT,
                'sortDirection': 'DESC',
                'user': address,
            }
        )
        return positions if isinstance(positions, list) else []

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP session closed")
        self._session = None
