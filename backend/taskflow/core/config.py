"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Unrelated to token signing.
    JWT_ACCESS_SECRET: str
        HMAC key for access tokens. Must differ from ``JWT_REFRESH_SECRET``.
    JWT_REFRESH_SECRET: str
        HMAC key for refresh tokens.
    JWT_ACCESS_EXPIRATION: str
        Access token lifetime (``"15m"``, ``"900"``, ...).
    JWT_REFRESH_EXPIRATION: str
        Refresh token lifetime (``"7d"`` by default).
    AUTH_MAX_LOGIN_ATTEMPTS: int
        Failed logins per identity before the lockout flag is set.
    AUTH_LOCKOUT_DURATION: str
        Lifetime of the lockout flag and of the attempt counter window.
    REFRESH_TOKEN_BACKEND: str
        ``"database"`` (SQL table) or ``"redis"``.
    AUTH_LOGIN_RATE_LIMIT, AUTH_REGISTER_RATE_LIMIT, AUTH_REFRESH_RATE_LIMIT: str
        Per-client Flask-Limiter limits for the public auth routes.
    REDIS_URL: str | None
        Redis connection string. When unset an in-process cache is used.
    CACHE_NAMESPACE: str
        Prefix applied to every cache key.
    CACHE_TIMEOUT_SECONDS: int
        Socket timeout for cache calls; timeouts surface as internal failures.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_ENGINE_OPTIONS: dict
        Pool settings bounding how long a request may wait for the store.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")

    # Session lifecycle
    JWT_ACCESS_EXPIRATION = os.getenv("JWT_ACCESS_EXPIRATION", "15m")
    JWT_REFRESH_EXPIRATION = os.getenv("JWT_REFRESH_EXPIRATION", "7d")
    AUTH_MAX_LOGIN_ATTEMPTS = env_int("AUTH_MAX_LOGIN_ATTEMPTS", 5)
    AUTH_LOCKOUT_DURATION = os.getenv("AUTH_LOCKOUT_DURATION", "15m")
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "database")

    # Rate limits (Flask-Limiter notation)
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per 15 minutes")
    AUTH_REGISTER_RATE_LIMIT = os.getenv("AUTH_REGISTER_RATE_LIMIT", "3 per hour")
    AUTH_REFRESH_RATE_LIMIT = os.getenv("AUTH_REFRESH_RATE_LIMIT", "10 per minute")

    # Cache
    REDIS_URL = os.getenv("REDIS_URL")
    CACHE_NAMESPACE = os.getenv("CACHE_NAMESPACE", "taskflow")
    CACHE_TIMEOUT_SECONDS = env_int("CACHE_TIMEOUT_SECONDS", 2)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_timeout": env_int("DB_POOL_TIMEOUT_SECONDS", 5),
    }

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; the in-process cache and ``memory://`` limiter
      storage stand in.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    REDIS_URL = None
    JWT_ACCESS_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    # Generous so flows that repeat a call stay under the limit
    AUTH_LOGIN_RATE_LIMIT = "1000 per minute"
    AUTH_REGISTER_RATE_LIMIT = "1000 per minute"
    AUTH_REFRESH_RATE_LIMIT = "1000 per minute"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    :func:`taskflow.factory.create_app` refuses to start when the signing
    secrets are left at their placeholders in this environment.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
