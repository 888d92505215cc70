"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL

from charity_lottery.errors import ConfigError


ONE_TOKEN = 10**18


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        password = os.getenv("PGPASSWORD")
        sslmode = os.getenv("PGSSLMODE", "require")

        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        query = {"sslmode": sslmode} if sslmode else {}
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=password,
            host=host,
            port=port,
            database=database,
            query=query,
        )
        return url.render_as_string(hide_password=False)

    return "sqlite:///./lottery.db"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    DATABASE_URL: str = resolve_database_url()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    TESTING: bool = False

    # Game rules
    NUMBERS_RANGE: int = _env_int("NUMBERS_RANGE", 99)
    MIN_BET_AMOUNT: int = _env_int("MIN_BET_AMOUNT", ONE_TOKEN)
    DEFAULT_BET_AMOUNT: int = _env_int("DEFAULT_BET_AMOUNT", ONE_TOKEN)

    # Fund split, must total 100
    BENEFICIARY_PERCENT: int = _env_int("BENEFICIARY_PERCENT", 15)
    HOUSE_PERCENT: int = _env_int("HOUSE_PERCENT", 5)
    POOL_PERCENT: int = _env_int("POOL_PERCENT", 80)

    ENFORCE_UNIQUE_NUMBERS: bool = _env_bool("ENFORCE_UNIQUE_NUMBERS", False)
    REQUIRE_REGISTERED_BETTOR: bool = _env_bool("REQUIRE_REGISTERED_BETTOR", False)

    # Draw policy
    DRAW_WINDOW_HOURS: int = _env_int("DRAW_WINDOW_HOURS", 24)
    DRAW_ESTIMATED_DURATION_MS: int = _env_int("DRAW_ESTIMATED_DURATION_MS", 5000)
    SETTLEMENT_BACKEND: str = os.getenv("SETTLEMENT_BACKEND", "mock").lower().strip()

    # Status queries
    STATUS_COMPLETED_WINDOW_SECONDS: int = _env_int("STATUS_COMPLETED_WINDOW_SECONDS", 5 * 60)

    # Event stream
    HEARTBEAT_SECONDS: int = _env_int("HEARTBEAT_SECONDS", 30)
    STREAM_QUEUE_SIZE: int = _env_int("STREAM_QUEUE_SIZE", 256)

    ADMIN_KEY: str | None = os.getenv("ADMIN_KEY") or None


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False
    ENFORCE_UNIQUE_NUMBERS: bool = _env_bool("ENFORCE_UNIQUE_NUMBERS", True)


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Configuration used by the test-suite."""

    APP_ENV: str = "testing"
    TESTING: bool = True
    DEBUG: bool = False
    DATABASE_URL: str = "sqlite:///:memory:"
    HEARTBEAT_SECONDS: int = 1


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig


def validate_game_config(config: dict) -> None:
    """Check the game settings once at startup.

    Raises:
        ConfigError: on an inconsistent fund split or out-of-range setting.
    """

    total = int(config["BENEFICIARY_PERCENT"]) + int(config["HOUSE_PERCENT"]) + int(config["POOL_PERCENT"])
    if total != 100:
        raise ConfigError(f"Fund distribution must total 100%, currently {total}%")

    for key in ("BENEFICIARY_PERCENT", "HOUSE_PERCENT", "POOL_PERCENT"):
        if int(config[key]) < 0:
            raise ConfigError(f"{key} must not be negative")

    if int(config["NUMBERS_RANGE"]) <= 0:
        raise ConfigError("NUMBERS_RANGE must be greater than 0")
    if int(config["MIN_BET_AMOUNT"]) <= 0:
        raise ConfigError("MIN_BET_AMOUNT must be greater than 0")
    if int(config["DEFAULT_BET_AMOUNT"]) < int(config["MIN_BET_AMOUNT"]):
        raise ConfigError("DEFAULT_BET_AMOUNT must be >= MIN_BET_AMOUNT")
    if int(config["HEARTBEAT_SECONDS"]) <= 0:
        raise ConfigError("HEARTBEAT_SECONDS must be greater than 0")
    if int(config["STREAM_QUEUE_SIZE"]) <= 0:
        raise ConfigError("STREAM_QUEUE_SIZE must be greater than 0")
