# app/api/deps.py
from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from app.config.settings import Settings, get_settings
from app.services.coingecko import CoinGeckoClient
from app.services.price_feed import PriceFeed, build_price_feed
from app.services.trending import TrendingService
from app.utils.cache import TTLCache

# process-wide singletons; tests swap them through app.dependency_overrides
_feed: PriceFeed | None = None
_trending: TrendingService | None = None


def settings_dep() -> Settings:
    return get_settings()


def get_price_feed() -> PriceFeed:
    global _feed
    if _feed is None:
        _feed = build_price_feed()
    return _feed


def get_coingecko_client() -> CoinGeckoClient:
    s = get_settings()
    return CoinGeckoClient(base_url=s.COINGECKO_BASE_URL, timeout=s.PRICE_FETCH_TIMEOUT_SECONDS)


def get_trending_service() -> TrendingService:
    global _trending
    if _trending is None:
        s = get_settings()
        _trending = TrendingService(get_coingecko_client(), TTLCache(s.TRENDING_CACHE_TTL_SECONDS))
    return _trending


def reset_singletons() -> None:
    global _feed, _trending
    _feed = None
    _trending = None


def error_response(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    payload: dict[str, Any] = {"error": message}
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=payload)
