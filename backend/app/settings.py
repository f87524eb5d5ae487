from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv, find_dotenv


_DEFAULT_ORIGINS = "http://localhost:3000,http://localhost:3001,http://127.0.0.1:3000,http://127.0.0.1:3001"
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration assembled from environment variables."""

    api_title: str
    allowed_origins: List[str]
    log_level: str
    prices_file: Optional[Path]


def load_env_files() -> None:
    # 1) Try auto-discovery up the directory tree
    load_dotenv(find_dotenv(usecwd=True), override=False)
    # 2) Try backend-local .env (../.env)
    backend_env = Path(__file__).resolve().parents[1] / ".env"
    if backend_env.exists():
        load_dotenv(backend_env.as_posix(), override=False)


def _origins(value: Optional[str]) -> List[str]:
    raw = value if value is not None else _DEFAULT_ORIGINS
    if raw.strip() == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def _log_level(value: Optional[str]) -> str:
    level = (value or "").strip().upper()
    return level if level in _LOG_LEVELS else "INFO"


def _to_path(value: Optional[str]) -> Optional[Path]:
    text = (value or "").strip()
    if not text:
        return None
    return Path(text).expanduser()


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    return Settings(
        api_title=env.get("API_TITLE") or "EstimaCore API",
        allowed_origins=_origins(env.get("ALLOWED_ORIGINS")),
        log_level=_log_level(env.get("LOG_LEVEL")),
        prices_file=_to_path(env.get("ESTIMACORE_PRICES_FILE")),
    )
