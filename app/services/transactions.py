"""Fabricated buy/send transaction records. Nothing here touches a real exchange or chain."""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
from typing import Any, Dict, Optional

from app.config.coins import (
    COIN_PROFILES,
    DEFAULT_CONFIRMATION_TIME,
    DEFAULT_EXPLORER,
    DEFAULT_NETWORK_FEE,
)
from app.utils.time import epoch_ms, iso_z, utcnow

logger = logging.getLogger("crypto_wallet.transactions")

_ADDRESS_PATTERNS = {
    symbol: re.compile(profile["address_pattern"]) for symbol, profile in COIN_PROFILES.items()
}


def is_valid_address(address: str, symbol: str) -> bool:
    pattern = _ADDRESS_PATTERNS.get(symbol)
    if pattern is None:
        return len(address) > 20
    return pattern.fullmatch(address) is not None


def network_fee(symbol: str) -> float:
    profile = COIN_PROFILES.get(symbol)
    return profile["network_fee"] if profile else DEFAULT_NETWORK_FEE


def confirmation_time(symbol: str) -> str:
    profile = COIN_PROFILES.get(symbol)
    return profile["confirmation_time"] if profile else DEFAULT_CONFIRMATION_TIME


def explorer_url(symbol: str, tx_hash: str) -> str:
    profile = COIN_PROFILES.get(symbol)
    template = profile["explorer"] if profile else DEFAULT_EXPLORER
    return template.format(tx_hash=tx_hash)


def mock_tx_hash() -> str:
    return "0x" + secrets.token_hex(32)


def build_buy_transaction(
    *,
    symbol: str,
    amount_usd: float,
    price: float,
    fee_rate: float,
) -> Dict[str, Any]:
    crypto_amount = amount_usd / price
    fee = amount_usd * fee_rate
    return {
        "id": f"tx_{epoch_ms()}",
        "type": "buy",
        "symbol": symbol,
        "cryptoAmount": crypto_amount,
        "usdAmount": amount_usd,
        "fee": fee,
        "totalCost": amount_usd + fee,
        "price": price,
        "timestamp": iso_z(utcnow()),
        "status": "completed",
    }


def build_send_transaction(*, symbol: str, amount: float, to_address: str) -> Dict[str, Any]:
    fee = network_fee(symbol)
    return {
        "id": f"send_{epoch_ms()}",
        "type": "send",
        "symbol": symbol,
        "amount": amount,
        "networkFee": fee,
        "totalAmount": amount + fee,
        "toAddress": to_address,
        "txHash": mock_tx_hash(),
        "timestamp": iso_z(utcnow()),
        "status": "pending",
        "confirmations": 0,
        "estimatedConfirmationTime": confirmation_time(symbol),
    }


def _log_confirmation(tx_hash: str) -> None:
    logger.info("✅ transaction confirmed (simulated) | tx=%s", tx_hash)


def schedule_confirmation(tx_hash: str, delay: float) -> Optional[asyncio.TimerHandle]:
    """
    One-off timer that only logs the simulated confirmation.
    Returns None when called outside a running event loop.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("⚠️ no running loop; confirmation log skipped | tx=%s", tx_hash)
        return None
    return loop.call_later(delay, _log_confirmation, tx_hash)
