"""
Market overview and per-coin technical indicators computed on the client
from the polled quotes and the poller's rolling price history.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

INDICATOR_WINDOW = 20
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0


def sentiment_label(avg_change: float) -> str:
    if avg_change > 2:
        return "Extremely Bullish"
    if avg_change > 0.5:
        return "Bullish"
    if avg_change > -0.5:
        return "Neutral"
    if avg_change > -2:
        return "Bearish"
    return "Extremely Bearish"


def fear_greed_label(score: float) -> str:
    if score > 75:
        return "Extreme Greed"
    if score > 55:
        return "Greed"
    if score > 45:
        return "Neutral"
    if score > 25:
        return "Fear"
    return "Extreme Fear"


def _field(quote: Mapping[str, Any], name: str) -> float:
    return float(quote.get(name) or 0.0)


def market_analysis(prices: Mapping[str, Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Whole-market metrics over the current quote set; None when there are no quotes.

    Fear & greed is a 0..100 score: 50 + 10 * average change + 5 * volatility,
    where volatility is the mean absolute 24h change.
    """
    if not prices:
        return None

    symbols = list(prices)
    changes = {symbol: _field(prices[symbol], "change24h") for symbol in symbols}

    total_market_cap = sum(_field(q, "marketCap") for q in prices.values())
    total_volume = sum(_field(q, "volume") for q in prices.values())
    avg_change = sum(changes.values()) / len(symbols)
    volatility_index = sum(abs(c) for c in changes.values()) / len(symbols)

    # stable sort: ties keep basket order
    ranked = sorted(symbols, key=lambda s: changes[s], reverse=True)

    def _mover(symbol: str) -> Dict[str, Any]:
        return {"symbol": symbol, "change": changes[symbol], "price": _field(prices[symbol], "price")}

    btc_market_cap = _field(prices.get("BTC") or {}, "marketCap")
    fear_greed = max(0.0, min(100.0, 50 + avg_change * 10 + volatility_index * 5))

    return {
        "totalMarketCap": total_market_cap,
        "totalVolume": total_volume,
        "gainers": sum(1 for c in changes.values() if c > 0),
        "losers": sum(1 for c in changes.values() if c < 0),
        "avgChange": avg_change,
        "sentiment": sentiment_label(avg_change),
        "topGainer": _mover(ranked[0]),
        "topLoser": _mover(ranked[-1]),
        "volatilityIndex": volatility_index,
        "btcDominance": (btc_market_cap / total_market_cap) * 100 if total_market_cap > 0 else 0.0,
        "fearGreedScore": fear_greed,
        "fearGreedLabel": fear_greed_label(fear_greed),
    }


def technical_indicators(history: Iterable[float], window: int = INDICATOR_WINDOW) -> Optional[Dict[str, Any]]:
    """SMA, RSI and Bollinger bands (2 sigma) over the last `window` prices; None until enough points exist."""
    if window < 2:
        raise ValueError("window must be >= 2")
    series: Sequence[float] = list(history)[-window:]
    if len(series) < window:
        return None

    sma = sum(series) / len(series)

    deltas = [b - a for a, b in zip(series, series[1:])]
    avg_gain = sum(d for d in deltas if d > 0) / len(deltas)
    avg_loss = sum(-d for d in deltas if d < 0) / len(deltas)
    rs = avg_gain / (avg_loss or 1.0)
    rsi = 100 - (100 / (1 + rs))

    std_dev = math.sqrt(sum((p - sma) ** 2 for p in series) / len(series))

    if rsi > RSI_OVERBOUGHT:
        signal = "SELL"
    elif rsi < RSI_OVERSOLD:
        signal = "BUY"
    else:
        signal = "HOLD"

    return {
        "sma": sma,
        "rsi": rsi,
        "upperBand": sma + 2 * std_dev,
        "lowerBand": sma - 2 * std_dev,
        "signal": signal,
    }


def indicators_by_symbol(
    history: Mapping[str, Iterable[float]], window: int = INDICATOR_WINDOW
) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for symbol, series in history.items():
        indicators = technical_indicators(series, window)
        if indicators is not None:
            out[symbol] = indicators
    return out
