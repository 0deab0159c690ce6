"""Storefront configuration module."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from .common.services.logging import log_event


ALLOWED_SETTINGS_KEYS = {"CURRENCY", "STORE_API_URL", "LOG_LEVEL"}


def validate_currency(value: Optional[str]) -> str:
    v = (value or "BDT").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


@dataclass
class StoreConfig:
    """Settings for the storefront API and the checkout client."""

    database_url: str
    secret_key: str
    environment: str
    log_level: str
    port: int
    currency: str
    data_dir: Path
    api_base_url: str
    local_orders_file: Path
    firebase_project_id: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_private_key: Optional[str] = None
    auth_dev_secret: Optional[str] = None

    @property
    def is_development(self) -> bool:
        return self.environment in ("development", "test")

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_project_id and self.firebase_client_email and self.firebase_private_key)

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    @classmethod
    def load(cls, env_file: Optional[Path] = None, data_dir: Optional[Path] = None) -> "StoreConfig":
        """Build settings from .env and the environment; data/settings.json overrides non-sensitive keys."""

        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        data_dir = Path(data_dir or os.getenv("STORE_DATA_DIR", "data"))
        settings = _load_settings_file(data_dir / "settings.json")

        def pick(key: str, default: Optional[str] = None) -> Optional[str]:
            if key in ALLOWED_SETTINGS_KEYS and settings.get(key):
                return str(settings[key])
            return os.getenv(key, default)

        private_key = os.getenv("FIREBASE_PRIVATE_KEY")
        if private_key:
            private_key = private_key.replace("\\n", "\n")

        return cls(
            database_url=os.getenv("DATABASE_URL", f"sqlite:///{data_dir / 'gamestore.db'}"),
            secret_key=os.getenv("SECRET_KEY", "dev_secret"),
            environment=os.getenv("STORE_ENV", "production").lower(),
            log_level=pick("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", "3001")),
            currency=validate_currency(pick("CURRENCY")),
            data_dir=data_dir,
            api_base_url=pick("STORE_API_URL", "http://localhost:3001/api").rstrip("/"),
            local_orders_file=Path(os.getenv("LOCAL_ORDERS_FILE", str(data_dir / "guest_orders.json"))),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID"),
            firebase_client_email=os.getenv("FIREBASE_CLIENT_EMAIL"),
            firebase_private_key=private_key,
            auth_dev_secret=os.getenv("AUTH_DEV_SECRET"),
        )


def _load_settings_file(path: Path) -> Dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        log_event("warning", "config.settings_unreadable", path=str(path), error=str(exc))
        return {}
    return data if isinstance(data, dict) else {}


