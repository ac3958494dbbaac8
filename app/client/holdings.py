from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from app.client.storage import LocalStorage
from app.utils.time import epoch_ms, iso_z, utcnow

logger = logging.getLogger("crypto_wallet.client")

HOLDINGS_KEY = "crypto-wallet-holdings"
FIAT_BALANCE_KEY = "crypto-wallet-fiat-balance"
TRANSACTIONS_KEY = "crypto-wallet-transactions"

DEFAULT_FIAT_BALANCE = 2500.0

# amounts below this are treated as fully sent
DUST_THRESHOLD = 0.000001


class InsufficientFundsError(ValueError):
    """Purchase larger than the available fiat balance."""


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


@dataclass
class Holding:
    symbol: str
    name: str
    amount: float
    averagePrice: float

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Holding":
        return Holding(
            symbol=str(data["symbol"]),
            name=str(data.get("name", data["symbol"])),
            amount=float(data["amount"]),
            averagePrice=float(data["averagePrice"]),
        )


@dataclass
class WalletTransaction:
    """One entry of the local activity list (newest first)."""

    id: str
    type: str  # deposit | buy | send
    amount: float
    currency: str
    timestamp: str
    status: str = "completed"
    address: Optional[str] = None
    price: Optional[float] = None

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "WalletTransaction":
        price = data.get("price")
        return WalletTransaction(
            id=str(data["id"]),
            type=str(data["type"]),
            amount=float(data["amount"]),
            currency=str(data["currency"]),
            timestamp=str(data["timestamp"]),
            status=str(data.get("status", "completed")),
            address=data.get("address"),
            price=float(price) if price is not None else None,
        )


def default_holdings() -> List[Holding]:
    return [
        Holding(symbol="BTC", name="Bitcoin", amount=0.025, averagePrice=42000),
        Holding(symbol="ETH", name="Ethereum", amount=1.5, averagePrice=2500),
        Holding(symbol="ADA", name="Cardano", amount=1000, averagePrice=0.48),
    ]


def _new_transaction(kind: str, amount: float, currency: str, **extra: Any) -> WalletTransaction:
    return WalletTransaction(
        id=f"{kind}_{epoch_ms()}",
        type=kind,
        amount=amount,
        currency=currency,
        timestamp=iso_z(utcnow()),
        **extra,
    )


class HoldingsStore:
    """
    Client wallet state in local storage: holdings (JSON array), the fiat
    balance and the transaction list, each under its own key.

    Keys that are absent are seeded with defaults and saved. Unreadable
    values are replaced by defaults in memory only, so the stored value
    is left untouched.
    """

    def __init__(self, storage: LocalStorage, key: str = HOLDINGS_KEY) -> None:
        self.storage = storage
        self.key = key
        self.holdings: List[Holding] = []
        self.fiat_balance: float = DEFAULT_FIAT_BALANCE
        self.transactions: List[WalletTransaction] = []

    async def load(self) -> List[Holding]:
        await self._load_holdings()
        await self._load_fiat_balance()
        await self._load_transactions()
        return self.holdings

    async def _load_holdings(self) -> None:
        raw = await self.storage.get_item(self.key)
        if raw is None:
            self.holdings = default_holdings()
            await self.save(self.holdings)
            logger.info("📦 seeded default holdings")
            return

        try:
            self.holdings = [Holding.from_dict(item) for item in json.loads(raw)]
        except (ValueError, TypeError, KeyError) as exc:
            logger.error("❌ error loading holdings | err=%s", exc)
            self.holdings = default_holdings()

    async def _load_fiat_balance(self) -> None:
        raw = await self.storage.get_item(FIAT_BALANCE_KEY)
        if raw is None:
            self.fiat_balance = DEFAULT_FIAT_BALANCE
            await self._save_fiat_balance()
            return

        try:
            balance = float(json.loads(raw))
        except (ValueError, TypeError) as exc:
            logger.error("❌ error loading fiat balance | err=%s", exc)
            balance = DEFAULT_FIAT_BALANCE
        self.fiat_balance = balance if math.isfinite(balance) else DEFAULT_FIAT_BALANCE

    async def _load_transactions(self) -> None:
        raw = await self.storage.get_item(TRANSACTIONS_KEY)
        if raw is None:
            self.transactions = []
            return

        try:
            self.transactions = [WalletTransaction.from_dict(item) for item in json.loads(raw)]
        except (ValueError, TypeError, KeyError) as exc:
            logger.error("❌ error loading transactions | err=%s", exc)
            self.transactions = []

    async def save(self, holdings: List[Holding]) -> None:
        self.holdings = list(holdings)
        await self.storage.set_item(self.key, json.dumps([asdict(h) for h in self.holdings]))

    async def _save_fiat_balance(self) -> None:
        await self.storage.set_item(FIAT_BALANCE_KEY, json.dumps(self.fiat_balance))

    async def _record(self, transaction: WalletTransaction) -> None:
        self.transactions.insert(0, transaction)
        await self.storage.set_item(TRANSACTIONS_KEY, json.dumps([asdict(t) for t in self.transactions]))

    def find(self, symbol: str) -> Optional[Holding]:
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None

    async def apply_deposit(self, amount: float, currency: str = "USD") -> float:
        """Credit the fiat balance; returns the new balance."""
        if not _positive(amount):
            raise ValueError("deposit amount must be positive")

        self.fiat_balance += amount
        await self._save_fiat_balance()
        await self._record(_new_transaction("deposit", amount, currency))
        logger.info("💵 deposit | +%.2f %s | balance=%.2f", amount, currency, self.fiat_balance)
        return self.fiat_balance

    async def apply_buy(self, symbol: str, name: str, usd_amount: float, price: float) -> Holding:
        """Spend fiat on a coin, re-weighting the average price."""
        if not _positive(usd_amount) or not _positive(price):
            raise ValueError("usd_amount and price must be positive")
        if usd_amount > self.fiat_balance:
            raise InsufficientFundsError(
                f"Insufficient funds: {usd_amount:.2f} requested, {self.fiat_balance:.2f} available"
            )

        crypto_amount = usd_amount / price
        existing = self.find(symbol)
        if existing is None:
            holding = Holding(symbol=symbol, name=name, amount=crypto_amount, averagePrice=price)
            updated = self.holdings + [holding]
        else:
            total = existing.amount + crypto_amount
            average = (existing.amount * existing.averagePrice + usd_amount) / total
            holding = Holding(symbol=symbol, name=existing.name, amount=total, averagePrice=average)
            updated = [holding if h.symbol == symbol else h for h in self.holdings]

        self.fiat_balance -= usd_amount
        await self.save(updated)
        await self._save_fiat_balance()
        await self._record(_new_transaction("buy", crypto_amount, symbol, price=price))
        return holding

    async def apply_send(
        self,
        symbol: str,
        amount: float,
        address: Optional[str] = None,
        price: Optional[float] = None,
    ) -> Optional[Holding]:
        """Deduct a sent amount; returns the remaining holding or None once it is dust."""
        existing = self.find(symbol)
        if existing is None:
            raise ValueError(f"No {symbol} holding")
        if not _positive(amount) or amount > existing.amount:
            raise ValueError("amount must be positive and not exceed the holding")

        remaining = Holding(
            symbol=symbol,
            name=existing.name,
            amount=existing.amount - amount,
            averagePrice=existing.averagePrice,
        )
        updated = [remaining if h.symbol == symbol else h for h in self.holdings]
        updated = [h for h in updated if h.amount > DUST_THRESHOLD]
        await self.save(updated)
        await self._record(_new_transaction("send", amount, symbol, address=address, price=price))
        return remaining if remaining.amount > DUST_THRESHOLD else None


def portfolio_summary(
    holdings: List[Holding],
    prices: Mapping[str, Mapping[str, float]],
    fiat_balance: float = 0.0,
) -> Dict[str, Any]:
    """Value each holding at the current price; symbols without a price count as 0."""
    rows = []
    total_value = 0.0
    total_pnl = 0.0
    for holding in holdings:
        price = float((prices.get(holding.symbol) or {}).get("price") or 0.0)
        value = holding.amount * price
        cost_basis = holding.amount * holding.averagePrice
        pnl = value - cost_basis
        rows.append(
            {
                "symbol": holding.symbol,
                "name": holding.name,
                "amount": holding.amount,
                "price": price,
                "value": value,
                "costBasis": cost_basis,
                "pnl": pnl,
                "pnlPercentage": (pnl / cost_basis) * 100 if cost_basis > 0 else 0.0,
            }
        )
        total_value += value
        total_pnl += pnl

    return {
        "holdings": rows,
        "totalPortfolioValue": total_value,
        "totalPnL": total_pnl,
        "fiatBalance": fiat_balance,
        "totalBalance": fiat_balance + total_value,
    }
