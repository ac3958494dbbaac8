from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Mapping

from app.services.quotes import Quote, QuoteSet

logger = logging.getLogger("crypto_wallet.simulator")


def _uniform(rng: random.Random, half_width: float) -> float:
    """Zero-centred draw in [-half_width, half_width]."""
    return (rng.random() - 0.5) * 2.0 * half_width


@dataclass
class MovementSimulator:
    """
    Small random perturbations so repeated reads of stale data look live.

    Each symbol moves independently with `probability`; otherwise it passes
    through unchanged. Nothing is clamped.
    """

    probability: float = 0.3
    price_half_width: float = 0.001
    change_half_width: float = 0.1
    market_cap_factor: float = 0.5
    volume_half_width: float = 0.025
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError("probability must be within [0, 1]")
        for name in ("price_half_width", "change_half_width", "volume_half_width", "market_cap_factor"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

    def perturb(self, quote: Quote) -> Quote:
        price_move = _uniform(self.rng, self.price_half_width)
        change_move = _uniform(self.rng, self.change_half_width)
        volume_move = _uniform(self.rng, self.volume_half_width)
        return quote.with_values(
            price=quote.price * (1 + price_move),
            change24h=quote.change24h + change_move,
            market_cap=quote.market_cap * (1 + price_move * self.market_cap_factor),
            volume=quote.volume * (1 + volume_move),
        )

    def simulate(self, base: Mapping[str, Quote]) -> QuoteSet:
        out: QuoteSet = {}
        for symbol, quote in base.items():
            if self.probability > 0 and self.rng.random() < self.probability:
                moved = self.perturb(quote)
                logger.debug("📈 %s price changed: %s -> %s", symbol, quote.price, moved.price)
                out[symbol] = moved
            else:
                out[symbol] = quote
        return out
