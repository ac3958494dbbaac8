# app/api/crypto.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.api.deps import error_response, get_coingecko_client, settings_dep
from app.config.coins import coingecko_id
from app.config.settings import Settings
from app.schemas.wallet import BuyRequest, SendRequest
from app.services.coingecko import CoinGeckoClient, UpstreamError
from app.services.transactions import (
    build_buy_transaction,
    build_send_transaction,
    explorer_url,
    is_valid_address,
    schedule_confirmation,
)

logger = logging.getLogger("crypto_wallet.transactions")

router = APIRouter(prefix="/api/crypto", tags=["crypto"])


def _format_usd(amount: float) -> str:
    return f"{amount:g}" if float(amount).is_integer() else f"{amount:.2f}"


@router.post("/buy")
async def buy_crypto(
    payload: BuyRequest,
    client: CoinGeckoClient = Depends(get_coingecko_client),
    settings: Settings = Depends(settings_dep),
):
    """Mock purchase priced off the current CoinGecko quote. No balances are touched."""
    amount = payload.amount_usd
    if not payload.symbol or not amount or amount < settings.BUY_MIN_USD:
        return error_response(
            f"Invalid parameters. Minimum purchase is ${_format_usd(settings.BUY_MIN_USD)}."
        )

    try:
        price = await client.coin_price(coingecko_id(payload.symbol))
    except UpstreamError as exc:
        logger.warning("⚠️ buy price lookup failed | symbol=%s | err=%s", payload.symbol, exc)
        price = None

    if not price:
        return error_response("Unable to fetch current price")

    transaction = build_buy_transaction(
        symbol=payload.symbol,
        amount_usd=amount,
        price=price,
        fee_rate=settings.BUY_FEE_RATE,
    )
    logger.info(
        "🛒 buy | user=%s | %s %.6f @ %s",
        payload.user_id,
        payload.symbol,
        transaction["cryptoAmount"],
        price,
    )
    return {
        "success": True,
        "transaction": transaction,
        "message": (
            f"Successfully purchased {transaction['cryptoAmount']:.6f} {payload.symbol} "
            f"for ${_format_usd(amount)}"
        ),
    }


@router.post("/send")
async def send_crypto(payload: SendRequest, settings: Settings = Depends(settings_dep)):
    """Mock on-chain send: fabricated pending transaction plus a logged confirmation later."""
    if not payload.symbol or not payload.amount or not payload.to_address or payload.amount <= 0:
        return error_response("Invalid transaction parameters")

    if not is_valid_address(payload.to_address, payload.symbol):
        return error_response("Invalid wallet address format")

    transaction = build_send_transaction(
        symbol=payload.symbol,
        amount=payload.amount,
        to_address=payload.to_address,
    )
    schedule_confirmation(transaction["txHash"], settings.SEND_CONFIRMATION_DELAY_SECONDS)
    logger.info(
        "📤 send | user=%s | %s %s -> %s | tx=%s",
        payload.user_id,
        payload.amount,
        payload.symbol,
        payload.to_address,
        transaction["txHash"],
    )

    return {
        "success": True,
        "transaction": transaction,
        "message": f"Transaction submitted to {payload.symbol} network",
        "explorerUrl": explorer_url(payload.symbol, transaction["txHash"]),
    }
