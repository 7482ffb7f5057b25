"""
CoinGecko API client.

Fetches spot prices, market summaries and sentiment/price-history data
used by the /price and /recommend commands.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from .errors import ServiceError
from .message_builder import MessageBuilder

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20.0
DEFAULT_CURRENCY = "usd"

PRICE_CHANGE_KEYS = (
    "price_change_percentage_7d",
    "price_change_percentage_14d",
    "price_change_percentage_30d",
    "price_change_percentage_60d",
)


def format_key_name(key: str) -> str:
    """Convert snake_case to Title Case, e.g. 'market_cap' -> 'Market Cap'."""
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))


def format_date(date_str: str) -> str:
    """Format an ISO timestamp as 'Jan 02, 2006 15:04:05'; unparseable input is returned trimmed."""
    date_str = date_str[:19]
    try:
        parsed = datetime.strptime(date_str, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return date_str
    return parsed.strftime("%b %d, %Y %H:%M:%S")


def format_large_number(num: float) -> str:
    """Format a number as billions, millions or thousands."""
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.2f} billion"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.2f} million"
    if num >= 1_000:
        return f"{num / 1_000:.2f} thousand"
    return f"{num:.2f}"


def format_market_value(key: str, value: Any) -> Optional[str]:
    """
    Format one field of a /coins/markets entry.

    Returns:
        Display string, or None if the field should be skipped
    """
    if value is None:
        return "N/A"

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if "percentage" in key:
            return f"{value:.2f}%"
        if any(part in key for part in ("market_cap", "volume", "valuation")):
            return format_large_number(value)
        if any(part in key for part in ("price", "ath", "atl", "high", "low")):
            return f"${value:.2f}"
        return f"{value:.0f}"

    if isinstance(value, str):
        if "image" in key:
            return None
        if "date" in key:
            return format_date(value)
        return value

    return str(value)


def format_market_data(data: dict[str, Any]) -> str:
    """Build the market summary text for a coin."""
    summary = MessageBuilder.build_market_header(
        str(data.get("name", "")), str(data.get("symbol", ""))
    )

    for key, value in data.items():
        formatted = format_market_value(key, value)
        if formatted is not None:
            summary += MessageBuilder.build_bullet(format_key_name(key), formatted)

    return summary


class CoinGeckoClient:
    """CoinGecko API client with connection reuse."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(
        self, path: str, params: dict[str, str], timeout: Optional[float] = None
    ) -> Any:
        """GET an endpoint and decode its JSON body."""
        client = await self._get_client()
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        try:
            response = await client.get(
                f"{self.base_url}{path}",
                params=params,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"CoinGecko {path} returned {e.response.status_code}")
            raise ServiceError(
                f"API request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"CoinGecko {path} request failed: {type(e).__name__}: {e}")
            raise ServiceError(f"API request failed: {e}") from e
        except ValueError as e:
            raise ServiceError(f"failed to parse response: {e}") from e

    async def get_price(
        self, coin: str, currency: str = "", timeout: Optional[float] = None
    ) -> float:
        """
        Get the spot price of a coin.

        Args:
            coin: CoinGecko coin id, e.g. "bitcoin"
            currency: Target currency (default: usd)
            timeout: Request timeout in seconds

        Returns:
            Price in the target currency

        Raises:
            ServiceError: If the request fails or the pair is unknown
        """
        coin = coin.lower()
        currency = currency.lower() or DEFAULT_CURRENCY

        data = await self._get_json(
            "/simple/price",
            {
                "ids": coin,
                "vs_currencies": currency,
                "include_market_cap": "false",
                "include_24hr_vol": "false",
                "include_24hr_change": "false",
                "include_last_updated_at": "false",
                "precision": "full",
            },
            timeout=timeout,
        )

        try:
            return float(data[coin][currency])
        except (KeyError, TypeError, ValueError):
            raise ServiceError(f"price data not found for {coin} in {currency}")

    async def get_market_summary(self, coin: str, timeout: Optional[float] = None) -> str:
        """
        Build a formatted market summary for a coin.

        Raises:
            ServiceError: If the request fails or the coin is unknown
        """
        coin = coin.lower()
        data = await self._get_json(
            "/coins/markets",
            {
                "vs_currency": DEFAULT_CURRENCY,
                "ids": coin,
                "order": "market_cap_desc",
                "locale": "en",
                "precision": "full",
            },
            timeout=timeout,
        )

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise ServiceError(f"no data found for cryptocurrency: {coin}")

        return format_market_data(data[0])

    async def get_sentiment_and_history(
        self, summary: str, coin: str, timeout: Optional[float] = None
    ) -> str:
        """
        Append community sentiment and price-change history to a summary.

        Raises:
            ServiceError: If the request fails
        """
        coin = coin.lower()
        data = await self._get_json(
            f"/coins/{coin}",
            {
                "localization": "false",
                "tickers": "true",
                "market_data": "true",
                "community_data": "true",
                "developer_data": "false",
            },
            timeout=timeout,
        )

        if not isinstance(data, dict):
            raise ServiceError(f"unexpected coin data for {coin}")

        result = summary
        for key in ("sentiment_votes_up_percentage", "sentiment_votes_down_percentage"):
            value = data.get(key)
            if isinstance(value, (int, float)):
                result += MessageBuilder.build_bullet(format_key_name(key), f"{value:.2f}%")

        market_data = data.get("market_data")
        if isinstance(market_data, dict):
            for key in PRICE_CHANGE_KEYS:
                value = market_data.get(key)
                if isinstance(value, (int, float)):
                    result += MessageBuilder.build_bullet(format_key_name(key), f"{value:.2f}%")

        return result
