"""
settings.py
Centralised settings, read from env vars once.
"""

from __future__ import annotations

import os
from pathlib import Path


class Settings:
    SERVICE_NAME: str = "gym-dashboard"
    DB_FILE: Path = Path(os.getenv("GYM_DB_FILE", str(Path(__file__).with_name("gym.db"))))
    LOG_LEVEL: str = os.getenv("GYM_LOG_LEVEL", "INFO").upper()
    DEFAULT_ADMIN_PASSWORD: str = os.getenv("GYM_DEFAULT_ADMIN_PASSWORD", "admin123")
    EXPIRED_PREVIEW_LIMIT: int = int(os.getenv("GYM_EXPIRED_PREVIEW_LIMIT", "5"))


settings = Settings()
