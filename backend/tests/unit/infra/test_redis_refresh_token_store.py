"""
Unit tests for RedisRefreshTokenStore using fakeredis.

These tests exercise the main flows:
- store + get
- validate_and_rotate (success, reuse, expiry, concurrent attempts)
- revoke_all
- fault handling (RedisError -> InternalFailure)

They use fakeredis so they run entirely in-memory.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import fakeredis
import pytest
import redis
from taskflow.infra.redis import RedisRefreshTokenStore
from taskflow.services._shared.errors import InternalFailure, InvalidRefreshToken
from taskflow.services._shared.ports import token_digest

TTL = timedelta(days=7)


@pytest.fixture
def server():
    """Shared fake server so several clients see the same keyspace."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(server):
    """Provide a fresh FakeRedis instance for each test."""
    return fakeredis.FakeRedis(server=server)


@pytest.fixture
def store(fake_redis):
    """Provide a RedisRefreshTokenStore backed by FakeRedis."""
    return RedisRefreshTokenStore(fake_redis, namespace="test")


def _mint(value: str):
    return lambda user_id: value


def test_store_and_get(store, fake_redis):
    record = store.store(user_id="user-1", token_value="rt-1", ttl=TTL)

    assert record.token_value == "rt-1"
    view = store.get("rt-1")
    assert view is not None
    assert view.user_id == "user-1"
    assert view.is_active is True
    assert view.token_value is None

    key = f"test:rt:{token_digest('rt-1')}"
    assert 0 < fake_redis.ttl(key) <= int(TTL.total_seconds())
    assert fake_redis.sismember("test:rt:u:user-1", token_digest("rt-1"))


def test_rotation_is_single_use(store):
    store.store(user_id="user-1", token_value="rt-1", ttl=TTL)

    outcome = store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)

    assert outcome.user_id == "user-1"
    assert outcome.record.token_value == "rt-2"
    assert store.get("rt-1").is_active is False
    assert store.get("rt-2").is_active is True
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("rt-1", mint=_mint("rt-3"), ttl=TTL)


def test_unknown_token_is_rejected(store):
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("nope", mint=_mint("x"), ttl=TTL)


def test_expired_record_is_rejected(store, fake_redis):
    store.store(user_id="user-1", token_value="rt-1", ttl=TTL)
    key = f"test:rt:{token_digest('rt-1')}"
    fake_redis.hset(key, "expires_at", str(int(time.time()) - 5))

    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)


def test_revoke_all_deactivates_and_counts(store):
    store.store(user_id="user-1", token_value="a", ttl=TTL)
    store.store(user_id="user-1", token_value="b", ttl=TTL)
    store.store(user_id="user-2", token_value="c", ttl=TTL)

    assert store.revoke_all("user-1") == 2
    assert store.get("a").is_active is False
    assert store.get("b").is_active is False
    assert store.get("c").is_active is True
    assert store.revoke_all("user-1") == 0
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("a", mint=_mint("a2"), ttl=TTL)


def test_revoke_all_drops_expired_hashes_from_index(store, fake_redis):
    store.store(user_id="user-1", token_value="a", ttl=TTL)
    fake_redis.delete(f"test:rt:{token_digest('a')}")

    assert store.revoke_all("user-1") == 0
    assert fake_redis.scard("test:rt:u:user-1") == 0


def test_concurrent_rotation_has_exactly_one_winner(server):
    """Several clients race to rotate the same token; only one succeeds."""
    RedisRefreshTokenStore(fakeredis.FakeRedis(server=server), namespace="test").store(
        user_id="user-1", token_value="rt-0", ttl=TTL
    )

    contenders = 8
    barrier = threading.Barrier(contenders)
    wins: list[str] = []
    losses: list[Exception] = []
    lock = threading.Lock()

    def attempt(i: int) -> None:
        store = RedisRefreshTokenStore(fakeredis.FakeRedis(server=server), namespace="test")
        barrier.wait()
        try:
            out = store.validate_and_rotate("rt-0", mint=_mint(f"rt-{i + 1}"), ttl=TTL)
        except InvalidRefreshToken as exc:
            with lock:
                losses.append(exc)
        else:
            with lock:
                wins.append(out.record.token_value)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(contenders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert len(wins) == 1
    assert len(losses) == contenders - 1


def test_redis_errors_become_internal_failure(fake_redis, monkeypatch):
    store = RedisRefreshTokenStore(fake_redis, namespace="test")

    def boom(*args, **kwargs):
        raise redis.ConnectionError("down")

    monkeypatch.setattr(fake_redis, "pipeline", boom)
    with pytest.raises(InternalFailure):
        store.store(user_id="user-1", token_value="rt-1", ttl=TTL)
    with pytest.raises(InternalFailure):
        store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)


def test_lookup_errors_become_internal_failure(fake_redis, monkeypatch):
    store = RedisRefreshTokenStore(fake_redis, namespace="test")

    def boom(*args, **kwargs):
        raise redis.TimeoutError("slow")

    monkeypatch.setattr(fake_redis, "hgetall", boom)
    with pytest.raises(InternalFailure):
        store.get("rt-1")
