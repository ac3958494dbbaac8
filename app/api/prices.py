from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse

from app.api.deps import get_price_feed, get_trending_service, settings_dep
from app.config.settings import Settings
from app.schemas.prices import PriceUpdate
from app.services.price_feed import PriceFeed
from app.services.quotes import PriceSnapshot
from app.services.trending import TrendingService
from app.utils.time import iso_z, iso_z_from_epoch, utcnow

logger = logging.getLogger("crypto_wallet.prices")

router = APIRouter(prefix="/api", tags=["prices"])


def _source_headers(snapshot: PriceSnapshot) -> dict[str, str]:
    headers = {
        "Cache-Control": "no-store",
        "X-Price-Source": snapshot.source.value,
    }
    captured = iso_z_from_epoch(snapshot.captured_at)
    if captured:
        headers["X-Price-Captured-At"] = captured
    return headers


@router.get("/crypto-prices")
async def get_crypto_prices(feed: PriceFeed = Depends(get_price_feed)):
    """
    Flat symbol -> quote mapping. Always 200: upstream trouble is absorbed
    by the cache/fallback path and reported only via X-Price-Source.
    """
    snapshot = await feed.get_prices()
    return JSONResponse(content=snapshot.to_payload(), headers=_source_headers(snapshot))


def _format_event(update: PriceUpdate) -> str:
    body = update.model_dump_json(by_alias=True)
    return f"event: prices\nid: {update.sequence}\ndata: {body}\n\n"


@router.get("/crypto-prices/stream")
async def stream_crypto_prices(
    request: Request,
    interval: Optional[float] = Query(None, ge=0.5, le=3600, description="Seconds between pushes"),
    limit: Optional[int] = Query(None, ge=1, description="Stop after N messages"),
    feed: PriceFeed = Depends(get_price_feed),
    settings: Settings = Depends(settings_dep),
):
    """
    Server-Sent Events channel: one `prices` event per tick until the client
    goes away (or `limit` messages were sent).
    """
    tick = interval if interval is not None else settings.STREAM_INTERVAL_SECONDS

    async def event_stream() -> AsyncIterator[str]:
        sequence = 0
        while True:
            snapshot = await feed.get_prices()
            sequence += 1
            update = PriceUpdate(
                sequence=sequence,
                source=snapshot.source.value,
                capturedAt=iso_z_from_epoch(snapshot.captured_at),
                emittedAt=iso_z(utcnow()),
                prices=snapshot.to_payload(),
            )
            yield _format_event(update)

            if limit is not None and sequence >= limit:
                break
            if await request.is_disconnected():
                logger.info("🔌 price stream client disconnected | sent=%d", sequence)
                break
            await asyncio.sleep(tick)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-store"},
    )


@router.get("/crypto-news")
async def get_crypto_news(trending: TrendingService = Depends(get_trending_service)):
    """CoinGecko trending coins; falls back to a fixed five-coin list."""
    return await trending.get_trending()
