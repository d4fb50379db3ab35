from __future__ import annotations

import fakeredis
import pytest
import redis
from taskflow.infra.redis import RedisTtlCache
from taskflow.services._shared.errors import InternalFailure
from taskflow.services.auth.revocation import RevocationCache


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return RedisTtlCache(fake_redis, namespace="tf")


def test_set_get_roundtrip_is_json(cache, fake_redis):
    cache.set("k", {"a": 1}, 60)
    assert cache.get("k") == {"a": 1}
    assert fake_redis.get("tf:k") == b'{"a": 1}'
    assert 0 < fake_redis.ttl("tf:k") <= 60


def test_missing_key(cache):
    assert cache.get("nope") is None
    assert cache.exists("nope") is False


def test_delete(cache):
    cache.set("k", True, 60)
    cache.delete("k")
    assert cache.exists("k") is False


def test_incr_sets_ttl_only_on_creation(cache, fake_redis):
    assert cache.incr("attempts:x", 900) == 1
    fake_redis.expire("tf:attempts:x", 100)
    assert cache.incr("attempts:x", 900) == 2
    assert fake_redis.ttl("tf:attempts:x") <= 100


def test_revocation_over_redis(cache, fake_redis):
    revocation = RevocationCache(cache)
    revocation.blacklist("jti-1", 30)
    assert revocation.is_revoked("jti-1")
    assert fake_redis.exists("tf:blacklist:jti-1") == 1


def test_incr_failure_never_leaves_counter_without_ttl(cache, fake_redis, monkeypatch):
    real_pipeline = fake_redis.pipeline
    calls = {"n": 0}

    def flaky_pipeline(*args, **kwargs):
        pipe = real_pipeline(*args, **kwargs)
        calls["n"] += 1
        if calls["n"] == 1:

            def blip(*a, **kw):
                raise redis.ConnectionError("blip")

            pipe.execute = blip
        return pipe

    monkeypatch.setattr(fake_redis, "pipeline", flaky_pipeline)

    with pytest.raises(InternalFailure):
        cache.incr("attempts:x@example.com", 900)
    assert fake_redis.exists("tf:attempts:x@example.com") == 0

    assert cache.incr("attempts:x@example.com", 900) == 1
    assert 0 < fake_redis.ttl("tf:attempts:x@example.com") <= 900


def test_incr_restores_ttl_on_counter_that_lost_it(cache, fake_redis):
    fake_redis.set("tf:attempts:y@example.com", 3)
    assert fake_redis.ttl("tf:attempts:y@example.com") == -1

    assert cache.incr("attempts:y@example.com", 900) == 4
    assert 0 < fake_redis.ttl("tf:attempts:y@example.com") <= 900


@pytest.mark.parametrize("method", ["get", "set", "delete", "incr", "exists"])
def test_faults_fail_closed(cache, fake_redis, monkeypatch, method):
    def boom(*args, **kwargs):
        raise redis.TimeoutError("slow")

    for name in ("get", "set", "delete", "pipeline", "exists"):
        monkeypatch.setattr(fake_redis, name, boom)

    args = {"get": ("k",), "set": ("k", 1, 5), "delete": ("k",), "incr": ("k", 5), "exists": ("k",)}
    with pytest.raises(InternalFailure):
        getattr(cache, method)(*args[method])
