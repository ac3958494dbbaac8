from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Tuple

from app.config.settings import Settings, get_settings
from app.services.coingecko import CoinGeckoClient, UpstreamError
from app.services.quotes import FALLBACK_QUOTES, PriceSnapshot, PriceSource, QuoteSet
from app.services.simulator import MovementSimulator
from app.utils.cache import TTLCache

logger = logging.getLogger("crypto_wallet.prices")

# cached value: (quotes, origin) where origin is LIVE or FALLBACK
CachedQuotes = Tuple[QuoteSet, PriceSource]
QuoteFetcher = Callable[[], Awaitable[QuoteSet]]


class PriceFeed:
    """
    Serves the basket's quotes without ever failing.

    1. fresh cache     -> simulated movement over the cached real values
    2. upstream fetch  -> cache it, return it unperturbed
    3. upstream failed -> simulate over the (expired) cache, or the fallback
                          table, which is then cached for the next TTL window

    The simulator always works from the last values written to the cache;
    simulated output is never written back.
    """

    def __init__(
        self,
        cache: TTLCache[CachedQuotes],
        fetch_quotes: QuoteFetcher,
        simulator: MovementSimulator,
        fallback: Optional[QuoteSet] = None,
    ) -> None:
        self.cache = cache
        self.fetch_quotes = fetch_quotes
        self.simulator = simulator
        self.fallback = dict(fallback if fallback is not None else FALLBACK_QUOTES)

    def _simulated(self, quotes: QuoteSet, source: PriceSource) -> PriceSnapshot:
        return PriceSnapshot(
            quotes=self.simulator.simulate(quotes),
            source=source,
            captured_at=self.cache.captured_at,
        )

    async def get_prices(self) -> PriceSnapshot:
        if self.cache.is_fresh():
            quotes, origin = self.cache.read()
            source = PriceSource.FALLBACK if origin is PriceSource.FALLBACK else PriceSource.CACHED
            logger.debug("📦 returning cached data with price simulation | source=%s", source.value)
            return self._simulated(quotes, source)

        try:
            quotes = await self.fetch_quotes()
        except UpstreamError as exc:
            logger.warning("⚠️ price fetch failed, using fallback path | err=%s", exc)
        else:
            self.cache.write((quotes, PriceSource.LIVE))
            logger.info("💾 cached %d live quotes | ttl_s=%s", len(quotes), self.cache.ttl)
            return PriceSnapshot(quotes=quotes, source=PriceSource.LIVE, captured_at=self.cache.captured_at)

        cached = self.cache.read()
        if cached is not None:
            quotes, origin = cached
            source = PriceSource.FALLBACK if origin is PriceSource.FALLBACK else PriceSource.STALE
            return self._simulated(quotes, source)

        # park the fallback table so requests inside the TTL skip the upstream call
        self.cache.write((self.fallback, PriceSource.FALLBACK))
        return self._simulated(self.fallback, PriceSource.FALLBACK)

    def status(self) -> dict:
        info = self.cache.info()
        cached = self.cache.read()
        info["origin"] = cached[1].value if cached is not None else None
        info["symbols"] = len(cached[0]) if cached is not None else 0
        return info


def build_price_feed(settings: Settings | None = None) -> PriceFeed:
    s = settings or get_settings()
    client = CoinGeckoClient(base_url=s.COINGECKO_BASE_URL, timeout=s.PRICE_FETCH_TIMEOUT_SECONDS)
    simulator = MovementSimulator(
        probability=s.SIMULATION_PROBABILITY,
        price_half_width=s.SIMULATION_PRICE_HALF_WIDTH,
        change_half_width=s.SIMULATION_CHANGE_HALF_WIDTH,
        market_cap_factor=s.SIMULATION_MARKET_CAP_FACTOR,
        volume_half_width=s.SIMULATION_VOLUME_HALF_WIDTH,
    )
    return PriceFeed(
        cache=TTLCache(s.PRICE_CACHE_TTL_SECONDS),
        fetch_quotes=client.fetch_quotes,
        simulator=simulator,
    )

