"""Application factory wiring Flask extensions, the session core and blueprints."""

from __future__ import annotations

import logging

from flask import Flask

from taskflow.core.config import BaseConfig, get_config
from taskflow.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)

PLACEHOLDER_SECRETS = {"CHANGE_ME", "CHANGE_ME_ACCESS", "CHANGE_ME_REFRESH"}


def _check_production_secrets(app: Flask) -> None:
    """Refuse to boot a non-debug, non-testing app with placeholder secrets."""

    if app.debug or app.testing:
        return
    for key in ("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET"):
        if str(app.config.get(key, "")) in PLACEHOLDER_SECRETS:
            raise RuntimeError(f"{key} must be set in production.")


def _check_shared_cache(app: Flask) -> None:
    """Refuse to boot a non-debug, non-testing app without ``REDIS_URL``.

    Lockout counters and the access-token blacklist must be visible to every
    worker process; the in-process cache is only for development and tests.
    """

    if app.debug or app.testing:
        return
    if not app.config.get("REDIS_URL"):
        raise RuntimeError("REDIS_URL must be set in production.")


def init_session_core(app: Flask) -> None:
    """Build the session service from config and store it in ``app.extensions``."""

    from taskflow.api.deps import SERVICE_KEY
    from taskflow.core import extensions
    from taskflow.infra.jwt import PyJWTTokenIssuer
    from taskflow.infra.redis import RedisRefreshTokenStore, RedisTtlCache
    from taskflow.infra.sql import SqlRefreshTokenStore
    from taskflow.services._shared.ports import InMemoryTtlCache, RefreshTokenStore, TtlCache
    from taskflow.services.auth.credentials import CredentialVerifier
    from taskflow.services.auth.lockout import LockoutPolicy
    from taskflow.services.auth.revocation import RevocationCache
    from taskflow.services.auth.service import SessionService
    from taskflow.services.auth.settings import AuthSettings

    settings = AuthSettings.from_mapping(app.config)
    namespace = app.config.get("CACHE_NAMESPACE", "taskflow")
    redis_client = extensions.redis_client

    cache: TtlCache
    if redis_client is not None:
        cache = RedisTtlCache(redis_client, namespace=namespace)
    else:
        cache = InMemoryTtlCache()

    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "database")).lower()
    refresh_store: RefreshTokenStore
    if backend == "redis":
        if redis_client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL.")
        refresh_store = RedisRefreshTokenStore(redis_client, namespace=namespace)
    elif backend == "database":
        refresh_store = SqlRefreshTokenStore()
    else:
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND: {backend!r}")

    app.extensions[SERVICE_KEY] = SessionService(
        verifier=CredentialVerifier(),
        lockout=LockoutPolicy(
            cache,
            max_attempts=settings.max_login_attempts,
            lockout_duration=settings.lockout_duration,
        ),
        issuer=PyJWTTokenIssuer(
            access_secret=settings.access_secret,
            refresh_secret=settings.refresh_secret,
            access_ttl=settings.access_ttl,
            refresh_ttl=settings.refresh_ttl,
        ),
        refresh_store=refresh_store,
        revocation=RevocationCache(cache),
        settings=settings,
    )
    log.info(
        "Session core ready",
        extra={"backend": backend},
    )


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    _check_production_secrets(app)
    _check_shared_cache(app)

    from taskflow.core import extensions

    extensions.init_app(app)

    init_logging(app)

    init_session_core(app)

    from taskflow.api import init_app as init_api

    init_api(app)

    from taskflow.core import errors

    errors.init_app(app)

    from taskflow import cli as app_cli

    app_cli.init_app(app)

    return app
