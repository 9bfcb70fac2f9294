# backend/autocrm/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # The store lives for the lifetime of the process; nothing survives a restart.
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Load the demo branches, staff, catalog, clients and work orders at startup
    SEED_FIXTURES = _env_flag("SEED_FIXTURES", True)

    # Year used in generated work order numbers (WO-<year>-<seq>).
    # None = year of the highest existing number, or the current year.
    WORK_ORDER_NUMBER_YEAR = (
        int(os.environ["WORK_ORDER_NUMBER_YEAR"])
        if os.environ.get("WORK_ORDER_NUMBER_YEAR")
        else None
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173",
        ).split(",")
        if origin.strip()
    }


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_FIXTURES = True
    WORK_ORDER_NUMBER_YEAR = None
    LOG_LEVEL = "WARNING"
