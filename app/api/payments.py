# app/api/payments.py
from __future__ import annotations

import logging

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from app.api.deps import error_response, settings_dep
from app.config.settings import Settings
from app.schemas.wallet import DepositRequest
from app.services import payments as payment_service

logger = logging.getLogger("crypto_wallet.payments")

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _demo_payload(error: str, message: str) -> dict:
    return {"error": error, "demo": True, "message": message}


def _format_amount(amount: float) -> str:
    return f"{amount:g}"


@router.post("/deposit")
async def create_deposit(payload: DepositRequest, settings: Settings = Depends(settings_dep)):
    if not payload.amount or payload.amount < settings.DEPOSIT_MIN_AMOUNT:
        return error_response(f"Amount must be at least ₹{_format_amount(settings.DEPOSIT_MIN_AMOUNT)}")

    if not settings.stripe_configured:
        logger.warning("⚠️ stripe not configured (STRIPE_SECRET_KEY missing or invalid)")
        return _demo_payload("Payment system not configured", "Payment gateway not configured. Using demo mode.")

    currency = payload.currency or settings.DEPOSIT_DEFAULT_CURRENCY
    params = payment_service.build_payment_intent_params(
        amount=payload.amount,
        currency=currency,
        payment_method=payload.payment_method,
        user_id=payload.user_id,
    )

    try:
        intent = await run_in_threadpool(
            payment_service.create_payment_intent, settings.STRIPE_SECRET_KEY, params
        )
    except payment_service.DemoModeError:
        return _demo_payload(
            "Payment system authentication failed",
            "Invalid payment gateway configuration. Using demo mode.",
        )
    except stripe.StripeError as exc:
        logger.error("❌ payment intent creation failed | err=%s", exc)
        return error_response("Failed to create payment intent", status_code=500)

    return {
        "clientSecret": intent.client_secret,
        "paymentIntentId": intent.id,
        "amount": payload.amount,
        "currency": currency,
        "paymentMethod": payload.payment_method,
    }


@router.post("/webhook")
async def stripe_webhook(request: Request, settings: Settings = Depends(settings_dep)):
    body = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = payment_service.construct_event(body, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (stripe.SignatureVerificationError, ValueError) as exc:
        logger.error("❌ webhook signature verification failed | err=%s", exc)
        return error_response("Invalid signature")

    await payment_service.handle_event(event)
    return {"received": True}
