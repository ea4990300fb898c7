from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import AnyHttpUrl, ValidationError

from .constants import DEFAULT_BASE_URL, LOGGER, LOGIN_PATH, REFRESH_ENDPOINT


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    refresh_timeout: float = 10.0
    refresh_path: str = REFRESH_ENDPOINT
    login_path: str = LOGIN_PATH
    storage_dir: Path = Path(".webtrace")
    debug: bool = False


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number of seconds.")
    if value <= 0:
        raise RuntimeError(f"{key} must be greater than zero.")
    return value


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(env_path, override=True)


def validate_env() -> None:
    base_url = os.getenv("WTA_BASE_URL", DEFAULT_BASE_URL).strip()
    try:
        AnyHttpUrl(base_url)
    except ValidationError as error:
        raise RuntimeError(
            "WTA_BASE_URL must be a valid http(s) URL (for example: "
            "http://localhost:17001)."
        ) from error

    for key in ("WTA_REFRESH_PATH", "WTA_LOGIN_PATH"):
        path = os.getenv(key, "").strip()
        if path and not path.startswith("/"):
            raise RuntimeError(f"{key} must be an absolute path starting with '/'.")


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("WTA_DEBUG", "0"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled


def load_settings() -> ClientSettings:
    return ClientSettings(
        base_url=os.getenv("WTA_BASE_URL", DEFAULT_BASE_URL).strip(),
        timeout=_get_env_float("WTA_TIMEOUT", 10.0),
        refresh_timeout=_get_env_float("WTA_REFRESH_TIMEOUT", 10.0),
        refresh_path=os.getenv("WTA_REFRESH_PATH", "").strip() or REFRESH_ENDPOINT,
        login_path=os.getenv("WTA_LOGIN_PATH", "").strip() or LOGIN_PATH,
        storage_dir=Path(os.getenv("WTA_STORAGE_DIR", "").strip() or ".webtrace"),
        debug=is_truthy(os.getenv("WTA_DEBUG", "0")),
    )
