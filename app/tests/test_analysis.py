import statistics

import pytest

from app.client.analysis import (
    fear_greed_label,
    indicators_by_symbol,
    market_analysis,
    sentiment_label,
    technical_indicators,
)


def _quote(change, market_cap=0.0, volume=0.0, price=1.0):
    return {"price": price, "change24h": change, "marketCap": market_cap, "volume": volume}


def test_market_analysis_empty_is_none():
    assert market_analysis({}) is None


def test_market_analysis_metrics():
    prices = {
        "BTC": _quote(3.0, market_cap=600, volume=10, price=50000),
        "ETH": _quote(-1.0, market_cap=300, volume=5, price=2500),
        "ADA": _quote(0.0, market_cap=100, volume=1, price=0.5),
    }

    out = market_analysis(prices)

    assert out["totalMarketCap"] == 1000
    assert out["totalVolume"] == 16
    assert out["gainers"] == 1
    assert out["losers"] == 1
    assert out["avgChange"] == pytest.approx(2 / 3)
    assert out["sentiment"] == "Bullish"
    assert out["topGainer"] == {"symbol": "BTC", "change": 3.0, "price": 50000}
    assert out["topLoser"]["symbol"] == "ETH"
    assert out["volatilityIndex"] == pytest.approx(4 / 3)
    assert out["btcDominance"] == pytest.approx(60.0)
    assert out["fearGreedScore"] == pytest.approx(50 + 20 / 3 + 20 / 3)
    assert out["fearGreedLabel"] == "Greed"


def test_market_analysis_without_market_caps():
    out = market_analysis({"ETH": {"price": 2500.0, "change24h": None}})
    assert out["btcDominance"] == 0.0
    assert out["sentiment"] == "Neutral"
    assert out["topGainer"] == out["topLoser"]


@pytest.mark.parametrize("change,score", [(10.0, 100.0), (-20.0, 0.0)])
def test_fear_greed_is_clamped(change, score):
    out = market_analysis({"BTC": _quote(change), "ETH": _quote(change)})
    assert out["fearGreedScore"] == score


@pytest.mark.parametrize(
    "avg,label",
    [
        (2.01, "Extremely Bullish"),
        (2.0, "Bullish"),
        (0.51, "Bullish"),
        (0.5, "Neutral"),
        (-0.49, "Neutral"),
        (-0.5, "Bearish"),
        (-1.99, "Bearish"),
        (-2.0, "Extremely Bearish"),
    ],
)
def test_sentiment_buckets(avg, label):
    assert sentiment_label(avg) == label


@pytest.mark.parametrize(
    "score,label",
    [
        (75.1, "Extreme Greed"),
        (75.0, "Greed"),
        (55.0, "Neutral"),
        (45.0, "Fear"),
        (25.0, "Extreme Fear"),
        (0.0, "Extreme Fear"),
    ],
)
def test_fear_greed_buckets(score, label):
    assert fear_greed_label(score) == label


def test_indicators_need_a_full_window():
    assert technical_indicators([]) is None
    assert technical_indicators(range(19)) is None


def test_rising_series_is_overbought():
    series = [float(5 * i) for i in range(20)]

    out = technical_indicators([1000.0] * 5 + series)

    assert out["sma"] == pytest.approx(47.5)
    assert out["rsi"] == pytest.approx(100 - 100 / 6)
    assert out["signal"] == "SELL"
    std = statistics.pstdev(series)
    assert out["upperBand"] == pytest.approx(47.5 + 2 * std)
    assert out["lowerBand"] == pytest.approx(47.5 - 2 * std)


def test_falling_series_is_oversold():
    out = technical_indicators([float(100 - i) for i in range(20)])
    assert out["rsi"] == 0
    assert out["signal"] == "BUY"


def test_mixed_series_holds():
    # ten +1 moves and nine -1 moves
    out = technical_indicators([10.0 + (i % 2) for i in range(20)])
    assert out["rsi"] == pytest.approx(100 - 100 / (1 + 10 / 9))
    assert out["signal"] == "HOLD"


def test_indicators_by_symbol_skips_short_histories():
    out = indicators_by_symbol({"BTC": [1.0] * 20, "ETH": [1.0] * 3})
    assert set(out) == {"BTC"}
