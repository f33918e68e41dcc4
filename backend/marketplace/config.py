# marketplace/config.py
"""
Environment-driven settings.

`.env` is loaded once here (before any getenv use), then the ``Settings``
dataclass snapshots the environment. Set variables before importing this
module; tests that need different values construct their own ``Settings``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))


def _env_bool(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int((os.getenv(name) or "").strip() or default)
    except ValueError:
        return default


@dataclass
class Settings:
    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Car Wash Marketplace API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "0.1.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./marketplace.db"))

    # Tokens are issued by the hosted auth backend; we only verify them.
    auth_jwt_secret: str = field(default_factory=lambda: os.getenv("AUTH_JWT_SECRET", "CHANGE_ME_TO_THE_PROJECT_JWT_SECRET"))
    auth_jwt_algorithm: str = field(default_factory=lambda: os.getenv("AUTH_JWT_ALGORITHM", "HS256"))
    auth_jwt_audience: str = field(default_factory=lambda: os.getenv("AUTH_JWT_AUDIENCE", "authenticated"))

    trial_days: int = field(default_factory=lambda: _env_int("TRIAL_DAYS", 7))
    subscription_period_days: int = field(default_factory=lambda: _env_int("SUBSCRIPTION_PERIOD_DAYS", 30))

    app_base_url: str = field(
        default_factory=lambda: (os.getenv("APP_BASE_URL") or "http://127.0.0.1:8000").strip().rstrip("/")
    )


settings = Settings()
