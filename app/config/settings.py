# app/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


def parse_csv(value: str | None, default: List[str]) -> List[str]:
    if not value:
        return default
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    COINGECKO_BASE_URL: str
    PRICE_FETCH_TIMEOUT_SECONDS: float
    PRICE_CACHE_TTL_SECONDS: int
    TRENDING_CACHE_TTL_SECONDS: int

    SIMULATION_PROBABILITY: float
    SIMULATION_PRICE_HALF_WIDTH: float
    SIMULATION_CHANGE_HALF_WIDTH: float
    SIMULATION_MARKET_CAP_FACTOR: float
    SIMULATION_VOLUME_HALF_WIDTH: float

    STREAM_INTERVAL_SECONDS: float

    BUY_MIN_USD: float
    BUY_FEE_RATE: float
    SEND_CONFIRMATION_DELAY_SECONDS: float

    DEPOSIT_MIN_AMOUNT: float
    DEPOSIT_DEFAULT_CURRENCY: str
    STRIPE_SECRET_KEY: str
    STRIPE_WEBHOOK_SECRET: str

    LOCAL_STORAGE_URL: str
    CORS_ORIGINS: List[str]
    LOG_LEVEL: str

    @property
    def stripe_configured(self) -> bool:
        return self.STRIPE_SECRET_KEY.startswith("sk_")

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            COINGECKO_BASE_URL=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
            PRICE_FETCH_TIMEOUT_SECONDS=parse_float(os.getenv("PRICE_FETCH_TIMEOUT_SECONDS"), 15.0),
            PRICE_CACHE_TTL_SECONDS=parse_int(os.getenv("PRICE_CACHE_TTL_SECONDS"), 300),
            TRENDING_CACHE_TTL_SECONDS=parse_int(os.getenv("TRENDING_CACHE_TTL_SECONDS"), 300),
            SIMULATION_PROBABILITY=parse_float(os.getenv("SIMULATION_PROBABILITY"), 0.3),
            SIMULATION_PRICE_HALF_WIDTH=parse_float(os.getenv("SIMULATION_PRICE_HALF_WIDTH"), 0.001),
            SIMULATION_CHANGE_HALF_WIDTH=parse_float(os.getenv("SIMULATION_CHANGE_HALF_WIDTH"), 0.1),
            SIMULATION_MARKET_CAP_FACTOR=parse_float(os.getenv("SIMULATION_MARKET_CAP_FACTOR"), 0.5),
            SIMULATION_VOLUME_HALF_WIDTH=parse_float(os.getenv("SIMULATION_VOLUME_HALF_WIDTH"), 0.025),
            STREAM_INTERVAL_SECONDS=parse_float(os.getenv("STREAM_INTERVAL_SECONDS"), 3.0),
            BUY_MIN_USD=parse_float(os.getenv("BUY_MIN_USD"), 10.0),
            BUY_FEE_RATE=parse_float(os.getenv("BUY_FEE_RATE"), 0.01),
            SEND_CONFIRMATION_DELAY_SECONDS=parse_float(os.getenv("SEND_CONFIRMATION_DELAY_SECONDS"), 30.0),
            DEPOSIT_MIN_AMOUNT=parse_float(os.getenv("DEPOSIT_MIN_AMOUNT"), 100.0),
            DEPOSIT_DEFAULT_CURRENCY=os.getenv("DEPOSIT_DEFAULT_CURRENCY", "inr"),
            STRIPE_SECRET_KEY=os.getenv("STRIPE_SECRET_KEY", ""),
            STRIPE_WEBHOOK_SECRET=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            LOCAL_STORAGE_URL=os.getenv("LOCAL_STORAGE_URL", "sqlite+aiosqlite:///./wallet_local.db"),
            CORS_ORIGINS=parse_csv(os.getenv("CORS_ORIGINS"), ["*"]),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
