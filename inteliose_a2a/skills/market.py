"""
Market data from the DexScreener aggregator
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.dexscreener.com"

class MarketDataError(Exception):
    """The aggregator could not be reached or answered with an error"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

@dataclass
class MarketSnapshot:
    """The fields of a token's primary trading pair that the skills use"""
    name: str = "Unknown"
    symbol: str = "???"
    price_usd: Optional[str] = None
    volume_24h: Optional[float] = None
    liquidity_usd: Optional[float] = None
    market_cap: Optional[float] = None
    pair_created_at: Optional[float] = None  # epoch milliseconds
    price_change_24h: Optional[float] = None
    txns_24h: Optional[Dict[str, Any]] = field(default=None)

    @classmethod
    def from_pair(cls, pair: Dict[str, Any]) -> "MarketSnapshot":
        base_token = pair.get("baseToken") or {}
        return cls(
            name=base_token.get("name") or "Unknown",
            symbol=base_token.get("symbol") or "???",
            price_usd=pair.get("priceUsd"),
            volume_24h=(pair.get("volume") or {}).get("h24"),
            liquidity_usd=(pair.get("liquidity") or {}).get("usd"),
            market_cap=pair.get("marketCap"),
            pair_created_at=pair.get("pairCreatedAt"),
            price_change_24h=(pair.get("priceChange") or {}).get("h24"),
            txns_24h=(pair.get("txns") or {}).get("h24"),
        )

def format_price(price: Optional[str]) -> Optional[str]:
    if not price:
        return None
    try:
        return f"${float(price):.8f}"
    except (TypeError, ValueError):
        return None

def format_millions(amount: Optional[float]) -> Optional[str]:
    """USD amount rendered in millions, e.g. 1234567 -> $1.23M"""
    if not amount:
        return None
    return f"${amount / 1e6:.2f}M"

class MarketDataClient:
    """Fetches aggregated pair data for a token address"""

    def __init__(self, http: httpx.AsyncClient, *, base_url: str = DEFAULT_BASE_URL, timeout: float = 8.0):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch_snapshot(self, token_address: str) -> Optional[MarketSnapshot]:
        """
        Fetch the primary pair of a token

        Args:
            token_address: EVM or Solana token address

        Returns:
            MarketSnapshot, or None when the token has no listed pairs

        Raises:
            MarketDataError: On timeouts, transport failures and non-2xx answers
        """
        url = f"{self._base_url}/latest/dex/tokens/{token_address}"
        try:
            response = await self._http.get(url, timeout=self._timeout)
        except httpx.TimeoutException:
            raise MarketDataError(f"market data request timed out after {self._timeout}s")
        except httpx.HTTPError as e:
            raise MarketDataError(f"market data request failed: {e}")

        if response.is_error:
            raise MarketDataError(
                f"market data request returned HTTP {response.status_code}",
                status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError:
            raise MarketDataError("market data response was not valid JSON")

        pairs = payload.get("pairs") if isinstance(payload, dict) else None
        if not pairs:
            logger.info("No pairs listed for %s", token_address)
            return None
        return MarketSnapshot.from_pair(pairs[0])
