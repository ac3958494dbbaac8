"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

import httpx

from app.config.coins import COIN_IDS
from app.services.quotes import Quote, QuoteSet

logger = logging.getLogger("crypto_wallet.coingecko")

COINGECKO_URL = "https://api.coingecko.com/api/v3"
USER_AGENT = "CryptoWallet/1.0"


class UpstreamError(Exception):
    """The market-data provider could not deliver a usable payload."""


class RateLimitedError(UpstreamError):
    """HTTP 429 from the provider."""


class CoinGeckoClient:
    """Thin async client over the handful of CoinGecko endpoints we use."""

    def __init__(
        self,
        base_url: str = COINGECKO_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers=headers,
            ) as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"CoinGecko request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Unable to reach CoinGecko: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError("Rate limited by CoinGecko API")
        if not response.is_success:
            raise UpstreamError(f"API request failed with status: {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("CoinGecko returned a non-JSON body") from exc

    async def simple_price(
        self,
        coin_ids: Iterable[str],
        include_market_data: bool = True,
    ) -> dict[str, Any]:
        """Raw /simple/price payload keyed by CoinGecko id."""

        params: dict[str, str] = {
            "ids": ",".join(coin_ids),
            "vs_currencies": "usd",
        }
        if include_market_data:
            params.update(
                {
                    "include_24hr_change": "true",
                    "include_market_cap": "true",
                    "include_24hr_vol": "true",
                }
            )

        data = await self._get_json("/simple/price", params)
        if not isinstance(data, dict):
            raise UpstreamError("Unexpected /simple/price payload")
        return data

    async def coin_price(self, coin_id: str) -> float | None:
        """Current USD price of one coin, or None when the provider has none."""

        data = await self.simple_price([coin_id], include_market_data=False)
        entry = data.get(coin_id)
        if not isinstance(entry, dict):
            return None
        price = _as_float(entry.get("usd"))
        return price if price > 0 else None

    async def trending(self) -> Any:
        return await self._get_json("/search/trending")

    async def fetch_quotes(self, basket: Mapping[str, str] = COIN_IDS) -> QuoteSet:
        """
        Fetch and normalize quotes for the basket.
        Raises UpstreamError when nothing usable survives normalization.
        """
        raw = await self.simple_price(basket.values())
        quotes = normalize_simple_prices(raw, basket)
        if not quotes:
            raise UpstreamError("No valid data received")
        logger.info("✅ fetched %d quotes from CoinGecko", len(quotes))
        return quotes


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    # NaN and inf would poison the cache and cannot be rendered as JSON
    if not math.isfinite(out):
        return 0.0
    return out


def normalize_simple_prices(raw: Any, basket: Mapping[str, str] = COIN_IDS) -> QuoteSet:
    """
    Map a /simple/price payload back to tickers.

    Missing numeric fields default to 0; coins with a non-positive price are dropped.
    """
    if not isinstance(raw, Mapping):
        raise UpstreamError("Malformed price payload")

    quotes: QuoteSet = {}
    for symbol, coin_id in basket.items():
        entry = raw.get(coin_id)
        if not isinstance(entry, Mapping):
            continue
        price = _as_float(entry.get("usd"))
        if price <= 0:
            continue
        quotes[symbol] = Quote(
            symbol=symbol,
            price=price,
            change24h=_as_float(entry.get("usd_24h_change")),
            market_cap=_as_float(entry.get("usd_market_cap")),
            volume=_as_float(entry.get("usd_24h_vol")),
        )
    return quotes
