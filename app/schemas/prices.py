"""Pydantic models for the price endpoints."""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuoteOut(BaseModel):
    """One symbol's quote as the browser sees it."""

    model_config = ConfigDict(populate_by_name=True)

    price: float
    change24h: float
    market_cap: float = Field(..., alias="marketCap")
    volume: float


class PriceUpdate(BaseModel):
    """Message pushed on the /api/crypto-prices/stream channel."""

    model_config = ConfigDict(populate_by_name=True)

    sequence: int = Field(..., ge=1)
    source: Literal["live", "cached", "stale", "fallback"]
    captured_at: Optional[str] = Field(None, alias="capturedAt")
    emitted_at: str = Field(..., alias="emittedAt")
    prices: Dict[str, QuoteOut]
