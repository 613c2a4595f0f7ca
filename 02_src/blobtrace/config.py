"""Project-level configuration and path helpers."""

from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "blobtrace.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_CONTAINER = "uploads"
DEFAULT_EVENT_ENDPOINT = "http://localhost:8000/api/events"
DEFAULT_EVENT_SOURCE = "/blobtrace/uploader"
DEFAULT_DISPATCH_INTERVAL = 1.0

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_dispatch_interval(env_value: str | float | None = None) -> float:
    """Resolve DISPATCH_INTERVAL_SECONDS; must be positive."""
    if env_value is None or env_value == "":
        return DEFAULT_DISPATCH_INTERVAL

    interval = float(env_value)
    if interval <= 0:
        raise ValueError(f"DISPATCH_INTERVAL_SECONDS must be positive, got {interval}")
    return interval
