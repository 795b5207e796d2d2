"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_API_HOST = "localhost"
DEFAULT_API_PORT = 3000
DEFAULT_LOGCAT_MAX_LINES = 5000
DEFAULT_PENDING_TTL_SECONDS = 300.0
HISTORY_CAPACITY = 100
RESTART_BACKOFF_SECONDS = 1.0
KEEPALIVE_INTERVAL_SECONDS = 25.0


PathLike = Union[str, Path]


def resolve_trace_log_path(env_value: PathLike | None = None) -> Path | None:
    """Resolve TRACER_LOG to an absolute path, or None when unset."""
    if not env_value:
        return None

    candidate = Path(env_value).expanduser()
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def parse_excluded_patterns(env_value: str | None) -> list[str]:
    """Split a comma-separated TRACER_EXCLUDES value into trimmed patterns."""
    if not env_value:
        return []
    return [p.strip() for p in env_value.split(",") if p.strip()]


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default
