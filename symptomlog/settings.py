# symptomlog/settings.py
"""Environment-driven settings, loaded once at process start."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
ROOT_DIR = BASE_DIR.parent
ENV_PATH = ROOT_DIR / ".env"

STORAGE_BACKENDS = ("memory", "sql")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    storage_backend: str = "memory"
    database_url: str = "sqlite:///./symptomlog.db"
    sql_echo: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown STORAGE_BACKEND {self.storage_backend!r}; expected one of {', '.join(STORAGE_BACKENDS)}"
            )

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        """Read settings from the process environment, after applying `.env` if present."""
        path = env_path or ENV_PATH
        if path.exists():
            load_dotenv(path, override=False)
        return cls(
            jwt_secret=(os.getenv("JWT_SECRET") or "dev-secret-change-me").strip(),
            jwt_algorithm=(os.getenv("JWT_ALGORITHM") or "HS256").strip(),
            storage_backend=(os.getenv("STORAGE_BACKEND") or "memory").strip().lower(),
            database_url=(os.getenv("DATABASE_URL") or "sqlite:///./symptomlog.db").strip(),
            sql_echo=_env_bool("SQL_ECHO"),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:5173"),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        )
