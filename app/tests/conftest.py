from __future__ import annotations

import dataclasses

import pytest
from fastapi.testclient import TestClient

from app.api import deps
from app.config.settings import Settings
from app.main import create_app


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    base = Settings.from_env()
    defaults = {
        "STRIPE_SECRET_KEY": "",
        "STRIPE_WEBHOOK_SECRET": "whsec_test_secret",
        "SEND_CONFIRMATION_DELAY_SECONDS": 30.0,
        "BUY_MIN_USD": 10.0,
        "BUY_FEE_RATE": 0.01,
        "DEPOSIT_MIN_AMOUNT": 100.0,
        "DEPOSIT_DEFAULT_CURRENCY": "inr",
    }
    defaults.update(overrides)
    return dataclasses.replace(base, **defaults)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_client():
    """Build a TestClient with dependency overrides: make_client({dep: factory}, settings=...)."""
    clients = []

    def _make(overrides=None, settings: Settings | None = None) -> TestClient:
        app = create_app()
        resolved = settings or make_settings()
        app.dependency_overrides[deps.settings_dep] = lambda: resolved
        for dep, factory in (overrides or {}).items():
            app.dependency_overrides[dep] = factory
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    deps.reset_singletons()


@pytest.fixture()
def settings_factory():
    return make_settings
