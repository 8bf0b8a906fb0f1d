from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import load_dotenv


def _default_env_file() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_pool_size: int
    db_max_overflow: int
    db_pool_timeout: int
    db_pool_recycle: int
    db_auto_create_schema: bool

    redis_url: str

    latest_cache_ttl_seconds: int

    app_port: int
    app_env: str
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def build_database_url(
    *,
    host: str,
    port: str,
    user: str,
    password: str,
    name: str,
) -> str:
    # quote_plus handles passwords with special characters.
    credentials = ""
    if user:
        credentials = quote_plus(user)
        if password:
            credentials = f"{credentials}:{quote_plus(password)}"
        credentials = f"{credentials}@"
    return f"postgresql+psycopg2://{credentials}{host}:{port}/{name}"


def mask_url(url: str) -> str:
    """Drops credentials from a connection URL so it can be logged."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@')[-1]}"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("TELEMETRY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL") or build_database_url(
        host=os.getenv("POSTGRES_HOST", "database"),
        port=os.getenv("POSTGRES_PORT", "5432"),
        user=os.getenv("POSTGRES_USER", ""),
        password=os.getenv("POSTGRES_PASSWORD", ""),
        name=os.getenv("POSTGRES_DB", "iot_db"),
    )

    redis_url = os.getenv("REDIS_URL") or "redis://{host}:{port}/{db}".format(
        host=os.getenv("REDIS_HOST", "cache"),
        port=os.getenv("REDIS_PORT", "6379"),
        db=_env_int("REDIS_DB", 0),
    )

    return Settings(
        database_url=database_url,
        db_pool_size=_env_int("DB_POOL_SIZE", 5),
        db_max_overflow=_env_int("DB_MAX_OVERFLOW", 20),
        db_pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
        db_pool_recycle=_env_int("DB_POOL_RECYCLE", 300),
        db_auto_create_schema=_env_flag("DB_AUTO_CREATE_SCHEMA", True),
        redis_url=redis_url,
        latest_cache_ttl_seconds=_env_int("LATEST_CACHE_TTL_SECONDS", 60),
        app_port=_env_int("APP_PORT", 8080),
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
