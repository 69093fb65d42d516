# backend/gestion/config.py
from __future__ import annotations
import os
from decimal import Decimal


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/gestion.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///gestion.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Goal/bonus rules. The default rate matches the goals table default.
    DEFAULT_BONUS_PERCENTAGE = Decimal(os.environ.get("DEFAULT_BONUS_PERCENTAGE", "5.00"))
    MAX_BONUS_PERCENTAGE = Decimal(os.environ.get("MAX_BONUS_PERCENTAGE", "50"))

    # Allowed rounding gap between a sale total and its payment breakdown
    PAYMENT_TOLERANCE = Decimal(os.environ.get("PAYMENT_TOLERANCE", "1"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "DEBUG"
