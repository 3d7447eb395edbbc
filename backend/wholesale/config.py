# backend/wholesale/config.py
from __future__ import annotations
import os


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/wholesale.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wholesale.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pricing: factory backorders are sold at price * (1 - rate)
    FACTORY_DISCOUNT_RATE = _float_env("FACTORY_DISCOUNT_RATE", 0.03)
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")

    # CSV exports: "ru", "en" or "ky"
    DEFAULT_REPORT_LANG = os.environ.get("DEFAULT_REPORT_LANG", "ru")

    PERSIST_RETRY_ATTEMPTS = int(os.environ.get("PERSIST_RETRY_ATTEMPTS", "3"))
