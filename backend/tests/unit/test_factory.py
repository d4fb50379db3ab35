from __future__ import annotations

import pytest
from flask import Flask
from taskflow.core.config import ProductionConfig
from taskflow.factory import _check_shared_cache, create_app


class _ProductionWithoutRedis(ProductionConfig):
    JWT_ACCESS_SECRET = "prod-access-secret"
    JWT_REFRESH_SECRET = "prod-refresh-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    REDIS_URL = None


class _ProductionWithPlaceholders(_ProductionWithoutRedis):
    JWT_ACCESS_SECRET = "CHANGE_ME_ACCESS"
    REDIS_URL = "redis://localhost:6379/0"


def test_production_without_redis_refuses_to_boot():
    # Per-process caches would hide logout blacklists and lockouts from other workers
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        create_app(_ProductionWithoutRedis, instance_relative_config=False)


def test_production_with_placeholder_secret_refuses_to_boot():
    with pytest.raises(RuntimeError, match="JWT_ACCESS_SECRET"):
        create_app(_ProductionWithPlaceholders, instance_relative_config=False)


@pytest.mark.parametrize("flag", ["debug", "testing"])
def test_in_process_cache_allowed_for_debug_and_testing(flag):
    app = Flask(__name__)
    app.config["REDIS_URL"] = None
    setattr(app, flag, True)

    _check_shared_cache(app)


def test_shared_cache_check_passes_with_redis_url():
    app = Flask(__name__)
    app.config["REDIS_URL"] = "redis://localhost:6379/0"

    _check_shared_cache(app)
