from __future__ import annotations

import asyncio
import logging
import re

import httpx
import pytest

from app.api import deps
from app.services.coingecko import CoinGeckoClient
from app.services.transactions import is_valid_address, schedule_confirmation

ETH_ADDRESS = "0x" + "a1" * 20


def _price_client(prices: dict) -> CoinGeckoClient:
    def handler(request: httpx.Request) -> httpx.Response:
        coin_id = request.url.params["ids"]
        if coin_id in prices:
            return httpx.Response(200, json={coin_id: {"usd": prices[coin_id]}})
        return httpx.Response(200, json={})

    return CoinGeckoClient(base_url="https://cg.test/api/v3", transport=httpx.MockTransport(handler))


@pytest.fixture()
def crypto_client(make_client):
    cg = _price_client({"bitcoin": 50000.0, "ethereum": 2500.0})
    return make_client({deps.get_coingecko_client: lambda: cg})


def test_buy_below_minimum_is_rejected(crypto_client):
    resp = crypto_client.post("/api/crypto/buy", json={"symbol": "BTC", "amountUSD": 5, "userId": "u1"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid parameters. Minimum purchase is $10."}


def test_buy_without_symbol_is_rejected(crypto_client):
    resp = crypto_client.post("/api/crypto/buy", json={"amountUSD": 50})
    assert resp.status_code == 400
    assert "Minimum purchase" in resp.json()["error"]


def test_buy_with_unknown_price_is_rejected(crypto_client):
    resp = crypto_client.post("/api/crypto/buy", json={"symbol": "XYZ", "amountUSD": 50})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unable to fetch current price"}


def test_buy_returns_fabricated_transaction(crypto_client):
    resp = crypto_client.post("/api/crypto/buy", json={"symbol": "BTC", "amountUSD": 100, "userId": "u1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    tx = body["transaction"]
    assert tx["id"].startswith("tx_")
    assert tx["type"] == "buy"
    assert tx["status"] == "completed"
    assert tx["price"] == 50000.0
    assert tx["cryptoAmount"] == pytest.approx(0.002)
    assert tx["fee"] == pytest.approx(1.0)
    assert tx["totalCost"] == pytest.approx(101.0)
    assert body["message"] == "Successfully purchased 0.002000 BTC for $100"


def test_buy_survives_upstream_outage(make_client):
    cg = CoinGeckoClient(
        base_url="https://cg.test/api/v3",
        transport=httpx.MockTransport(lambda request: httpx.Response(429)),
    )
    client = make_client({deps.get_coingecko_client: lambda: cg})
    resp = client.post("/api/crypto/buy", json={"symbol": "BTC", "amountUSD": 100})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unable to fetch current price"


def test_non_numeric_amount_is_400(crypto_client):
    resp = crypto_client.post("/api/crypto/buy", json={"symbol": "BTC", "amountUSD": "lots"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"


def test_send_rejects_malformed_eth_address(crypto_client):
    resp = crypto_client.post(
        "/api/crypto/send",
        json={"symbol": "ETH", "amount": 0.5, "toAddress": "0x1234", "userId": "u1"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid wallet address format"}


@pytest.mark.parametrize(
    "body",
    [
        {"symbol": "ETH", "amount": 0, "toAddress": ETH_ADDRESS},
        {"symbol": "ETH", "amount": -1, "toAddress": ETH_ADDRESS},
        {"symbol": "ETH", "amount": 1},
        {"amount": 1, "toAddress": ETH_ADDRESS},
    ],
)
def test_send_rejects_bad_parameters(crypto_client, body):
    resp = crypto_client.post("/api/crypto/send", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid transaction parameters"}


def test_send_returns_pending_transaction(crypto_client):
    resp = crypto_client.post(
        "/api/crypto/send",
        json={"symbol": "ETH", "amount": 0.5, "toAddress": ETH_ADDRESS, "userId": "u1"},
    )

    assert resp.status_code == 200
    body = resp.json()
    tx = body["transaction"]
    assert tx["id"].startswith("send_")
    assert tx["status"] == "pending"
    assert tx["confirmations"] == 0
    assert tx["networkFee"] == pytest.approx(0.002)
    assert tx["totalAmount"] == pytest.approx(0.502)
    assert tx["estimatedConfirmationTime"] == "1-5 minutes"
    assert re.fullmatch(r"0x[0-9a-f]{64}", tx["txHash"])
    assert body["explorerUrl"] == f"https://etherscan.io/tx/{tx['txHash']}"
    assert body["message"] == "Transaction submitted to ETH network"


def test_address_validation_rules():
    assert is_valid_address(ETH_ADDRESS, "ETH")
    assert not is_valid_address(ETH_ADDRESS + "\n", "ETH")
    assert is_valid_address("1BoatSLRHtKNngkdXEeobR76b53LETtpyT", "BTC")
    assert is_valid_address("bc1" + "q" * 39, "BTC")
    assert not is_valid_address("0xabc", "BTC")
    # unknown symbols only need a plausible length
    assert is_valid_address("x" * 21, "XYZ")
    assert not is_valid_address("x" * 20, "XYZ")


@pytest.mark.asyncio
async def test_confirmation_timer_only_logs(caplog):
    caplog.set_level(logging.INFO, logger="crypto_wallet.transactions")
    handle = schedule_confirmation("0xfeed", delay=0.01)
    assert handle is not None
    await asyncio.sleep(0.05)
    assert any("0xfeed" in rec.getMessage() for rec in caplog.records)


def test_confirmation_timer_needs_a_loop():
    assert schedule_confirmation("0xfeed", delay=0.01) is None


@pytest.mark.parametrize(
    "path,body",
    [
        ("/api/crypto/send", '{"symbol": "ETH", "amount": NaN, "toAddress": "%s"}' % ETH_ADDRESS),
        ("/api/crypto/send", '{"symbol": "ETH", "amount": Infinity, "toAddress": "%s"}' % ETH_ADDRESS),
        ("/api/crypto/buy", '{"symbol": "BTC", "amountUSD": Infinity}'),
        ("/api/crypto/buy", '{"symbol": "BTC", "amountUSD": NaN}'),
    ],
)
def test_non_finite_amounts_are_400(crypto_client, path, body):
    resp = crypto_client.post(path, content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"


def test_buy_with_non_finite_upstream_price_is_rejected(make_client):
    cg = CoinGeckoClient(
        base_url="https://cg.test/api/v3",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b'{"bitcoin": {"usd": 1e400}}')),
    )
    client = make_client({deps.get_coingecko_client: lambda: cg})
    resp = client.post("/api/crypto/buy", json={"symbol": "BTC", "amountUSD": 100})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unable to fetch current price"}
