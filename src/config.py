from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 14) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)


@dataclass(frozen=True)
class AppConfig:
    debug: bool
    tier: str
    items_file: Path
    collections_file: Path
    library_lock_file: Path
    fetch_timeout_sec: float
    fetch_user_agent: str
    service_host: str
    service_port: int
    log_file: Path | None = None


def env_flag_is_true(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_env_file(path: Path) -> None:
    """Populate os.environ from a dotenv-style file without overriding set keys."""
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").strip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _env_int(key: str, default: int, minimum: int) -> int:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _env_float(key: str, default: float, minimum: float) -> float:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _env_path(key: str) -> Path | None:
    raw = os.getenv(key)
    if not raw or not raw.strip():
        return None
    return Path(raw.strip())


def load_config(env_path: Path | None = None) -> AppConfig:
    load_env_file(env_path or Path(".env"))

    return AppConfig(
        debug=env_flag_is_true(os.getenv("DEBUG")),
        tier=os.getenv("REELVAULT_TIER", "scouter").strip().lower(),
        items_file=Path(os.getenv("ITEMS_FILE", "reels.jsonl")),
        collections_file=Path(os.getenv("COLLECTIONS_FILE", "collections.jsonl")),
        library_lock_file=Path(os.getenv("LIBRARY_LOCK_FILE", ".library.lock")),
        fetch_timeout_sec=_env_float("FETCH_TIMEOUT_SEC", default=10.0, minimum=1.0),
        fetch_user_agent=os.getenv("FETCH_USER_AGENT", DEFAULT_USER_AGENT),
        service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
        service_port=_env_int("SERVICE_PORT", default=8000, minimum=1),
        log_file=_env_path("LOG_FILE"),
    )
