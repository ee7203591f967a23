"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "durable_agents.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

# Outbound HTTP
DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_RETRIES = 3

# Rate limiting
RATE_LIMIT_PER_MINUTE = 100
RATE_LIMIT_WINDOW_SECONDS = 60

# Messages
MAX_MESSAGE_SIZE = 1_048_576  # 1 MB
PENDING_BATCH_LIMIT = 50

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def rate_limit_ttl(window: float) -> float:
    """Counter TTL for a window; counters must outlive the window they count."""
    return 2 * window


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class Settings:
    """Runtime settings, overridable from the environment."""

    db_path: PathLike = DEFAULT_DB_PATH
    rate_limit_per_minute: int = RATE_LIMIT_PER_MINUTE
    rate_limit_window_seconds: int = RATE_LIMIT_WINDOW_SECONDS
    rate_limit_ttl_seconds: int | None = None  # derived from the window when unset
    http_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    webhook_url: str | None = None
    cors_origins: list[str] = field(default_factory=lambda: list(CORS_ORIGINS))

    @classmethod
    def from_env(cls, db_path: PathLike | None = None) -> "Settings":
        """Build settings from environment variables."""
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        origins = os.getenv("CORS_ORIGINS")
        window = _env_int("RATE_LIMIT_WINDOW_SECONDS", RATE_LIMIT_WINDOW_SECONDS)
        return cls(
            db_path=resolve_db_path(env_db_path),
            rate_limit_per_minute=_env_int(
                "RATE_LIMIT_PER_MINUTE", RATE_LIMIT_PER_MINUTE
            ),
            rate_limit_window_seconds=window,
            rate_limit_ttl_seconds=_env_int(
                "RATE_LIMIT_TTL_SECONDS", int(rate_limit_ttl(window))
            ),
            http_timeout_seconds=_env_float(
                "HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
            ),
            max_retries=_env_int("MAX_RETRIES", MAX_RETRIES),
            webhook_url=os.getenv("WEBHOOK_URL") or None,
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else list(CORS_ORIGINS)
            ),
        )
