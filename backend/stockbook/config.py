# backend/stockbook/config.py
from __future__ import annotations
import os


def _split_origins(value: str) -> set[str]:
    return {origin.strip() for origin in value.split(",") if origin.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///stockbook.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sessions are written by the auth collaborator; we only honor their expiry
    SESSION_MAX_AGE_HOURS = int(os.environ.get("SESSION_MAX_AGE_HOURS", "24"))

    # Unit-of-work retry on lock/serialization failures
    TX_RETRY_ATTEMPTS = int(os.environ.get("TX_RETRY_ATTEMPTS", "3"))
    TX_RETRY_BACKOFF = float(os.environ.get("TX_RETRY_BACKOFF", "0.1"))

    BULK_BALANCE_LIMIT = 500
    BULK_ITEM_ADJUST_LIMIT = 500

    CORS_ALLOWED_ORIGINS = _split_origins(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        )
    )

    # Used when formatting amounts in customer messages
    CURRENCY_CODE = os.environ.get("CURRENCY_CODE", "GHS")
