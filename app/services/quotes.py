from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from app.config.coins import COIN_PROFILES


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    change24h: float
    market_cap: float
    volume: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "price": self.price,
            "change24h": self.change24h,
            "marketCap": self.market_cap,
            "volume": self.volume,
        }

    def with_values(self, **changes: float) -> "Quote":
        return replace(self, **changes)


QuoteSet = Dict[str, Quote]


class PriceSource(str, Enum):
    """Where a served quote set came from."""

    LIVE = "live"
    CACHED = "cached"
    STALE = "stale"
    FALLBACK = "fallback"

    @property
    def degraded(self) -> bool:
        return self in (PriceSource.STALE, PriceSource.FALLBACK)


@dataclass(frozen=True)
class PriceSnapshot:
    quotes: QuoteSet
    source: PriceSource
    captured_at: Optional[float]

    def to_payload(self) -> Dict[str, Dict[str, float]]:
        return quote_set_to_dict(self.quotes)


def quote_set_to_dict(quotes: Mapping[str, Quote]) -> Dict[str, Dict[str, float]]:
    return {symbol: quote.to_dict() for symbol, quote in quotes.items()}


def quote_from_mapping(symbol: str, data: Mapping[str, Any]) -> Quote:
    return Quote(
        symbol=symbol,
        price=float(data.get("price", 0.0)),
        change24h=float(data.get("change24h", 0.0)),
        market_cap=float(data.get("marketCap", 0.0)),
        volume=float(data.get("volume", 0.0)),
    )


def fallback_quotes() -> QuoteSet:
    """Hardcoded last-resort quote set for the whole basket."""
    return {
        symbol: quote_from_mapping(symbol, profile["fallback"])
        for symbol, profile in COIN_PROFILES.items()
    }


FALLBACK_QUOTES: QuoteSet = fallback_quotes()
