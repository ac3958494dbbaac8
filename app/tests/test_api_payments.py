from __future__ import annotations

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from app.services import payments as payment_service

WEBHOOK_SECRET = "whsec_test_secret"


def _signed(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    ts = int(time.time())
    digest = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def _event(event_type: str, amount: int = 250000, user_id: str = "user-1") -> str:
    return json.dumps(
        {
            "id": "evt_test",
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": "pi_test_123",
                    "object": "payment_intent",
                    "amount": amount,
                    "metadata": {"userId": user_id},
                }
            },
        }
    )


@pytest.fixture()
def balance_calls(monkeypatch):
    calls = []

    async def fake_update(user_id, amount, payment_id):
        calls.append((user_id, amount, payment_id))

    monkeypatch.setattr(payment_service, "update_user_balance", fake_update)
    return calls


def test_webhook_rejects_bad_signature(make_client, balance_calls):
    client = make_client()
    payload = _event("payment_intent.succeeded")

    resp = client.post(
        "/api/payments/webhook",
        content=payload,
        headers={"stripe-signature": _signed(payload, secret="whsec_wrong")},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature"}
    assert balance_calls == []


def test_webhook_rejects_missing_signature(make_client, balance_calls):
    client = make_client()
    resp = client.post("/api/payments/webhook", content=_event("payment_intent.succeeded"))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature"}


def test_webhook_succeeded_updates_balance(make_client, balance_calls):
    client = make_client()
    payload = _event("payment_intent.succeeded", amount=250000, user_id="user-1")

    resp = client.post(
        "/api/payments/webhook",
        content=payload,
        headers={"stripe-signature": _signed(payload)},
    )

    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    assert balance_calls == [("user-1", 2500.0, "pi_test_123")]


@pytest.mark.parametrize("event_type", ["payment_intent.payment_failed", "charge.refunded"])
def test_webhook_other_events_are_acknowledged(make_client, balance_calls, event_type):
    client = make_client()
    payload = _event(event_type)

    resp = client.post("/api/payments/webhook", content=payload, headers={"stripe-signature": _signed(payload)})

    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    assert balance_calls == []


def test_deposit_below_minimum(make_client):
    resp = make_client().post("/api/payments/deposit", json={"amount": 50})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Amount must be at least ₹100"}


def test_deposit_demo_mode_without_key(make_client, settings_factory):
    resp = make_client(settings=settings_factory(STRIPE_SECRET_KEY="pk_not_a_secret")).post(
        "/api/payments/deposit", json={"amount": 500}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["demo"] is True
    assert body["error"] == "Payment system not configured"


@pytest.fixture()
def intents(monkeypatch):
    created = []

    def fake_create(secret_key, params):
        created.append((secret_key, params))
        return SimpleNamespace(client_secret="pi_1_secret_abc", id="pi_1")

    monkeypatch.setattr(payment_service, "create_payment_intent", fake_create)
    return created


def test_deposit_creates_card_intent(make_client, intents, settings_factory):
    client = make_client(settings=settings_factory(STRIPE_SECRET_KEY="sk_test_123"))

    resp = client.post("/api/payments/deposit", json={"amount": 500, "userId": "user-9"})

    assert resp.status_code == 200
    assert resp.json() == {
        "clientSecret": "pi_1_secret_abc",
        "paymentIntentId": "pi_1",
        "amount": 500,
        "currency": "inr",
        "paymentMethod": "card",
    }
    secret, params = intents[0]
    assert secret == "sk_test_123"
    assert params["amount"] == 50000
    assert params["currency"] == "inr"
    assert params["payment_method_types"] == ["card"]
    assert params["metadata"] == {"userId": "user-9", "type": "crypto_wallet_deposit", "paymentMethod": "card"}


def test_deposit_creates_upi_intent(make_client, intents, settings_factory):
    client = make_client(settings=settings_factory(STRIPE_SECRET_KEY="sk_test_123"))

    resp = client.post("/api/payments/deposit", json={"amount": 150.5, "currency": "INR", "paymentMethod": "upi"})

    assert resp.status_code == 200
    _, params = intents[0]
    assert params["amount"] == 15050
    assert params["currency"] == "inr"
    assert params["payment_method_types"] == ["upi"]
    assert params["payment_method_options"] == {"upi": {"flow": "redirect"}}
    assert params["metadata"]["userId"] == "anonymous"


def test_deposit_auth_failure_falls_back_to_demo(make_client, monkeypatch, settings_factory):
    def bad_key(**kwargs):
        raise stripe.AuthenticationError("Invalid API Key provided")

    monkeypatch.setattr(stripe.PaymentIntent, "create", bad_key)
    client = make_client(settings=settings_factory(STRIPE_SECRET_KEY="sk_test_revoked"))

    resp = client.post("/api/payments/deposit", json={"amount": 500})

    assert resp.status_code == 200
    assert resp.json()["demo"] is True
    assert resp.json()["error"] == "Payment system authentication failed"


def test_deposit_provider_error_is_500(make_client, monkeypatch, settings_factory):
    def broken(secret_key, params):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(payment_service, "create_payment_intent", broken)
    client = make_client(settings=settings_factory(STRIPE_SECRET_KEY="sk_test_123"))

    resp = client.post("/api/payments/deposit", json={"amount": 500})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create payment intent"}


def test_deposit_non_finite_amount_is_400(make_client, intents, settings_factory):
    client = make_client(settings=settings_factory(STRIPE_SECRET_KEY="sk_test_123"))

    resp = client.post(
        "/api/payments/deposit",
        content='{"amount": Infinity}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"
    assert intents == []
