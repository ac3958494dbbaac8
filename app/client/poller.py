from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional

import httpx

from app.utils.time import utcnow

logger = logging.getLogger("crypto_wallet.client")

PRICES_PATH = "/api/crypto-prices"
TRENDING_PATH = "/api/crypto-news"


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def round_quote(quote: Any) -> Dict[str, float]:
    """
    Display rounding: 2 decimals (4 below $1) for price, 2 for the 24h change,
    whole dollars for market cap and volume.
    """
    if not isinstance(quote, Mapping):
        raise ValueError("Invalid data format received")
    price = float(quote["price"])
    return {
        "price": round(price, 4) if price < 1 else round(price, 2),
        "change24h": round(float(quote["change24h"]), 2),
        "marketCap": float(round(float(quote["marketCap"]))),
        "volume": float(round(float(quote["volume"]))),
    }


class PricePoller:
    """
    Polls GET /api/crypto-prices on a fixed interval and keeps the latest
    rounded quotes plus the server-reported price source.

    Every request carries a generation number; a response older than the
    last one applied is dropped, so a slow request cannot overwrite newer data.
    """

    def __init__(
        self,
        base_url: str,
        interval: float = 3600.0,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
        history_size: int = 50,
        on_update: Optional[Callable[["PricePoller"], None]] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.base_url = base_url
        self.interval = interval
        self.timeout = timeout
        self.history_size = history_size
        self.on_update = on_update
        self._transport = transport

        self.prices: Dict[str, Dict[str, float]] = {}
        self.source: Optional[str] = None
        self.captured_at: Optional[str] = None
        self.last_updated: Optional[datetime] = None
        self.error: Optional[str] = None
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.history: Dict[str, Deque[float]] = {}

        self._issued = 0
        self._applied = 0
        self._client: Optional[httpx.AsyncClient] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    # ----------------------------
    # state
    # ----------------------------
    @property
    def is_using_fallback(self) -> bool:
        """True when the server says it is serving stale or fallback data."""
        return self.source in ("stale", "fallback")

    @property
    def loading(self) -> bool:
        return self.last_updated is None and self.error is None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _record_history(self, prices: Mapping[str, Mapping[str, float]]) -> None:
        for symbol, quote in prices.items():
            series = self.history.setdefault(symbol, deque(maxlen=self.history_size))
            series.append(quote["price"])

    # ----------------------------
    # fetching
    # ----------------------------
    async def refresh(self) -> bool:
        """One fetch. Never raises for network or payload problems; returns True if applied."""
        self._issued += 1
        generation = self._issued
        client = self._ensure_client()

        try:
            response = await client.get(PRICES_PATH, headers={"Cache-Control": "no-cache"})
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict) or not data:
                raise ValueError("Invalid data format received")
            rounded = {symbol: round_quote(quote) for symbol, quote in data.items()}
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            if generation < self._applied:
                return False
            self._applied = generation
            self.error = str(exc) or exc.__class__.__name__
            self.connection_status = ConnectionStatus.DISCONNECTED
            logger.warning("⚠️ price poll failed | gen=%d | err=%s", generation, self.error)
            return False

        if generation < self._applied:
            logger.debug("discarding out-of-order price response | gen=%d < %d", generation, self._applied)
            return False

        self._applied = generation
        self.prices = rounded
        self.source = response.headers.get("X-Price-Source")
        self.captured_at = response.headers.get("X-Price-Captured-At")
        self.last_updated = utcnow()
        self.error = None
        self.connection_status = ConnectionStatus.CONNECTED
        self._record_history(rounded)

        if self.on_update is not None:
            try:
                self.on_update(self)
            except Exception:
                logger.exception("❌ price update callback failed | gen=%d", generation)
        return True

    async def fetch_trending(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Trending coins flattened from the {coins: [{item: ...}]} payload; [] on any failure."""
        client = self._ensure_client()
        try:
            response = await client.get(TRENDING_PATH)
            response.raise_for_status()
            coins = response.json().get("coins") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.error("❌ error fetching trending | err=%s", exc)
            return []
        if not isinstance(coins, list):
            logger.error("❌ unexpected trending payload | coins=%r", type(coins).__name__)
            return []

        out: List[Dict[str, Any]] = []
        for coin in coins:
            item = coin.get("item") if isinstance(coin, dict) else None
            if not isinstance(item, dict) or not item.get("name") or not item.get("symbol"):
                continue
            out.append(
                {
                    "id": item.get("id") or "",
                    "name": item["name"],
                    "symbol": item["symbol"],
                    "market_cap_rank": item.get("market_cap_rank") or None,
                    "thumb": item.get("thumb") or "",
                    "price_btc": item.get("price_btc") or 0,
                }
            )
        return out[:limit]

    # ----------------------------
    # lifecycle
    # ----------------------------
    async def _loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.refresh()

            # stop-aware sleep
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def start(self) -> None:
        if self.running:
            logger.warning("⚠️ price poller already started")
            return
        self.connection_status = ConnectionStatus.CONNECTING
        self._ensure_client()
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(self._stop_event))
        logger.info("✅ price poller started | interval_s=%s", self.interval)

    async def stop(self) -> None:
        """Cancel the pending tick and any in-flight request, then close the HTTP client."""
        if self._stop_event is not None:
            self._stop_event.set()

        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

        if self._client is not None:
            await self._client.aclose()

        self._task = None
        self._stop_event = None
        self._client = None
        self.connection_status = ConnectionStatus.DISCONNECTED
        logger.info("🛑 price poller stopped")

    async def __aenter__(self) -> "PricePoller":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
