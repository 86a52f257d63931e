import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# .env 로드
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_env(key: str, default: str) -> str:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %s", key, raw, default)
        return default


def _get_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if not raw:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("Ignoring %s=%r: not a boolean, using %s", key, raw, default)
    return default


@dataclass(frozen=True)
class Settings:
    # Database
    db_user: str
    db_password: str
    db_host: str
    db_port: int
    db_name: str
    database_url: str

    # API
    api_host: str
    api_port: int
    api_user: str
    api_password: str
    cookie_secure: bool
    shutdown_grace_seconds: int

    # JWT
    jwt_secret: str

    # Event bus
    event_bus_backend: str
    event_bus_url: str
    event_topic: str
    event_group_id: str
    event_stream_maxlen: int
    event_max_pending: int
    event_drain_timeout: int

    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        db_user = _get_env("DB_USER", "user1")
        db_password = _get_env("DB_PASSWORD", "test1")
        db_host = _get_env("DB_HOST", "127.0.0.1")
        db_port = _get_int("DB_PORT", 3306)
        db_name = _get_env("DB_NAME", "Companies")
        database_url = _get_env(
            "DATABASE_URL",
            f"mysql+pymysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}?charset=utf8mb4",
        )
        return cls(
            db_user=db_user,
            db_password=db_password,
            db_host=db_host,
            db_port=db_port,
            db_name=db_name,
            database_url=database_url,
            api_host=_get_env("API_HOST", "0.0.0.0"),
            api_port=_get_int("API_PORT", 8080),
            api_user=_get_env("API_USER", "user2"),
            api_password=_get_env("API_PASSWORD", "test2"),
            cookie_secure=_get_bool("COOKIE_SECURE", True),
            shutdown_grace_seconds=_get_int("SHUTDOWN_GRACE_SECONDS", 15),
            jwt_secret=_get_env("JWT_SECRET", "secretTest"),
            event_bus_backend=_get_env("EVENT_BUS_BACKEND", "redis").lower(),
            event_bus_url=_get_env("EVENT_BUS_URL", "redis://localhost:6379/0"),
            event_topic=_get_env("EVENT_TOPIC", "company_events"),
            event_group_id=_get_env("EVENT_GROUP_ID", "company_events_group"),
            event_stream_maxlen=_get_int("EVENT_STREAM_MAXLEN", 10_000),
            event_max_pending=_get_int("EVENT_MAX_PENDING", 1000),
            event_drain_timeout=_get_int("EVENT_DRAIN_TIMEOUT", 10),
            log_level=_get_env("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
