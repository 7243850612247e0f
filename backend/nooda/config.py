# backend/nooda/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/nooda.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///nooda.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Fallback critical-stock threshold for rows without their own warning_limit
    STOCK_WARNING_LIMIT = int(os.environ.get("STOCK_WARNING_LIMIT", "20"))

    ACTIVITY_LOG_DEFAULT_LIMIT = int(os.environ.get("ACTIVITY_LOG_DEFAULT_LIMIT", "20"))
    ACTIVITY_LOG_MAX_LIMIT = int(os.environ.get("ACTIVITY_LOG_MAX_LIMIT", "500"))

    # Retries on locked database / deadlock before a mutation is reported failed
    LEDGER_RETRY_ATTEMPTS = int(os.environ.get("LEDGER_RETRY_ATTEMPTS", "3"))

    DIGEST_TIMEZONE = os.environ.get("DIGEST_TIMEZONE", "Asia/Jakarta")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
