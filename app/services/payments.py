"""Stripe glue for fiat deposits. Balances are not persisted anywhere."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe

logger = logging.getLogger("crypto_wallet.payments")

DEPOSIT_TYPE = "crypto_wallet_deposit"


class DemoModeError(Exception):
    """Payment gateway is not usable; callers answer with a demo payload."""


def build_payment_intent_params(
    *,
    amount: float,
    currency: str,
    payment_method: str,
    user_id: Optional[str],
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        # minor currency units
        "amount": int(round(amount * 100)),
        "currency": currency.lower(),
        "metadata": {
            "userId": user_id or "anonymous",
            "type": DEPOSIT_TYPE,
            "paymentMethod": payment_method,
        },
    }

    if payment_method == "upi":
        params["payment_method_types"] = ["upi"]
        params["payment_method_options"] = {"upi": {"flow": "redirect"}}
    else:
        params["payment_method_types"] = ["card"]

    return params


def create_payment_intent(secret_key: str, params: Dict[str, Any]) -> Any:
    """
    Create a PaymentIntent. Authentication failures become DemoModeError;
    every other stripe error propagates.
    """
    try:
        return stripe.PaymentIntent.create(api_key=secret_key, **params)
    except stripe.AuthenticationError as exc:
        logger.warning("⚠️ stripe authentication failed, using demo mode | err=%s", exc)
        raise DemoModeError("Invalid payment gateway configuration") from exc


def construct_event(payload: bytes, signature: Optional[str], secret: str) -> Any:
    """Verify the Stripe-Signature header and parse the event."""
    return stripe.Webhook.construct_event(payload, signature or "", secret)


async def update_user_balance(user_id: str, amount: float, payment_id: str) -> None:
    # no persistence; deposits only show up in the log
    logger.info("💰 updating balance | user=%s | +%.2f | payment=%s", user_id, amount, payment_id)


async def handle_event(event: Any) -> None:
    event_type = getattr(event, "type", None)
    intent = getattr(getattr(event, "data", None), "object", None)

    if event_type == "payment_intent.succeeded":
        metadata = getattr(intent, "metadata", None)
        user_id = getattr(metadata, "userId", None) or "anonymous"
        amount = float(getattr(intent, "amount", 0) or 0) / 100
        payment_id = getattr(intent, "id", "")
        await update_user_balance(user_id, amount, payment_id)
        logger.info("✅ payment succeeded | id=%s", payment_id)
    elif event_type == "payment_intent.payment_failed":
        logger.info("❌ payment failed | id=%s", getattr(intent, "id", ""))
    else:
        logger.info("ℹ️ unhandled event type | type=%s", event_type)
