# app/scripts/watch_prices.py
from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from app.client.analysis import indicators_by_symbol, market_analysis
from app.client.holdings import HoldingsStore, portfolio_summary
from app.client.poller import PricePoller
from app.client.storage import LocalStorage
from app.config.settings import get_settings
from app.utils.log import configure_logging
from app.utils.time import iso_z

RECENT_TRANSACTIONS = 5


def build_report(poller: PricePoller, store: HoldingsStore) -> Dict[str, Any]:
    return {
        "last_updated": iso_z(poller.last_updated) if poller.last_updated else None,
        "connection_status": poller.connection_status.value,
        "source": poller.source,
        "is_using_fallback": poller.is_using_fallback,
        "error": poller.error,
        "portfolio": portfolio_summary(store.holdings, poller.prices, store.fiat_balance),
        "market": market_analysis(poller.prices),
        "indicators": indicators_by_symbol(poller.history),
        "recent_transactions": [asdict(t) for t in store.transactions[:RECENT_TRANSACTIONS]],
    }


async def watch(
    *,
    base_url: str,
    interval: float,
    count: Optional[int],
    deposit: Optional[float] = None,
    storage_url: Optional[str] = None,
) -> int:
    storage = await LocalStorage.open(storage_url)
    store = HoldingsStore(storage)
    await store.load()
    if deposit:
        await store.apply_deposit(deposit)

    poller = PricePoller(base_url, interval=interval)
    ticks = 0
    try:
        while count is None or ticks < count:
            await poller.refresh()
            print(json.dumps(build_report(poller, store)), flush=True)
            ticks += 1
            if count is None or ticks < count:
                await asyncio.sleep(interval)
    finally:
        await poller.stop()
        await storage.close()
    return ticks


def main() -> None:
    parser = argparse.ArgumentParser(description="Poll wallet prices and print the portfolio")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--interval", type=float, default=5.0)
    parser.add_argument("--count", type=int, default=None, help="stop after N polls")
    parser.add_argument("--deposit", type=float, default=None, help="credit the local fiat balance first")
    parser.add_argument("--storage-url", default=None)
    args = parser.parse_args()

    configure_logging(get_settings().LOG_LEVEL)

    try:
        asyncio.run(
            watch(
                base_url=args.base_url,
                interval=args.interval,
                count=args.count,
                deposit=args.deposit,
                storage_url=args.storage_url,
            )
        )
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    main()
