from __future__ import annotations

import logging
from typing import Any, Dict, List

from app.services.coingecko import CoinGeckoClient, UpstreamError
from app.utils.cache import TTLCache

logger = logging.getLogger("crypto_wallet.trending")

FALLBACK_TRENDING: List[Dict[str, Any]] = [
    {"item": {"id": "bitcoin", "name": "Bitcoin", "symbol": "btc", "market_cap_rank": 1}},
    {"item": {"id": "ethereum", "name": "Ethereum", "symbol": "eth", "market_cap_rank": 2}},
    {"item": {"id": "solana", "name": "Solana", "symbol": "sol", "market_cap_rank": 5}},
    {"item": {"id": "cardano", "name": "Cardano", "symbol": "ada", "market_cap_rank": 8}},
    {"item": {"id": "polygon", "name": "Polygon", "symbol": "matic", "market_cap_rank": 15}},
]


def fallback_payload() -> Dict[str, Any]:
    return {"coins": [{"item": dict(entry["item"])} for entry in FALLBACK_TRENDING]}


class TrendingService:
    """CoinGecko trending coins with a TTL cache and a fixed fallback list."""

    def __init__(self, client: CoinGeckoClient, cache: TTLCache[Dict[str, Any]]) -> None:
        self.client = client
        self.cache = cache

    async def get_trending(self) -> Dict[str, Any]:
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            data = await self.client.trending()
        except UpstreamError as exc:
            logger.error("❌ error fetching trending data | err=%s", exc)
            return fallback_payload()

        if not isinstance(data, dict) or not data.get("coins"):
            logger.warning("⚠️ invalid trending data structure, using fallback")
            return fallback_payload()

        self.cache.write(data)
        return data
