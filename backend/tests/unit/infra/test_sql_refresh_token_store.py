"""Unit tests for the SQL refresh token store (transactional SQLite session)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select
from taskflow.infra.sql import SqlRefreshTokenStore
from taskflow.models import RefreshToken
from taskflow.services._shared.errors import InvalidRefreshToken
from taskflow.services._shared.ports import token_digest

from tests.factories.user import UserFactory

TTL = timedelta(days=7)


@pytest.fixture()
def store(session) -> SqlRefreshTokenStore:
    return SqlRefreshTokenStore()


@pytest.fixture()
def user(session):
    return UserFactory()


def _mint(value: str):
    return lambda user_id: value


def test_store_persists_digest_not_value(store, user, session):
    record = store.store(user_id=user.id, token_value="rt-1", ttl=TTL)

    row = session.execute(select(RefreshToken)).scalars().one()
    assert row.token_hash == token_digest("rt-1")
    assert row.token_hash != "rt-1"
    assert record.token_value == "rt-1"
    assert record.is_active is True
    assert record.user_id == user.id
    assert record.expires_at - record.created_at == TTL


def test_rotate_flips_old_and_creates_new(store, user):
    store.store(user_id=user.id, token_value="rt-1", ttl=TTL)

    outcome = store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)

    assert outcome.user_id == user.id
    assert outcome.record.token_value == "rt-2"
    assert store.get("rt-1").is_active is False
    assert store.get("rt-2").is_active is True


def test_mint_receives_owner_id(store, user):
    store.store(user_id=user.id, token_value="rt-1", ttl=TTL)
    seen: list[str] = []

    def mint(user_id: str) -> str:
        seen.append(user_id)
        return "rt-2"

    store.validate_and_rotate("rt-1", mint=mint, ttl=TTL)
    assert seen == [user.id]


def test_rotated_token_cannot_be_used_again(store, user):
    store.store(user_id=user.id, token_value="rt-1", ttl=TTL)
    store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)

    # the loser of a race sees exactly this state: the row is already inactive
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("rt-1", mint=_mint("rt-3"), ttl=TTL)
    assert store.get("rt-3") is None


def test_unknown_token_is_rejected(store):
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("missing", mint=_mint("x"), ttl=TTL)


def test_expired_record_is_rejected(store, user, session):
    store.store(user_id=user.id, token_value="rt-1", ttl=TTL)
    row = session.execute(select(RefreshToken)).scalars().one()
    row.expires_at = datetime.now(UTC) - timedelta(seconds=1)
    session.flush()

    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)


def test_revoke_all_only_touches_owner(store, user):
    other = UserFactory()
    store.store(user_id=user.id, token_value="a-1", ttl=TTL)
    store.store(user_id=user.id, token_value="a-2", ttl=TTL)
    store.store(user_id=other.id, token_value="b-1", ttl=TTL)

    assert store.revoke_all(user.id) == 2
    assert store.get("a-1").is_active is False
    assert store.get("a-2").is_active is False
    assert store.get("b-1").is_active is True
    # idempotent
    assert store.revoke_all(user.id) == 0


def test_revoked_token_cannot_rotate(store, user):
    store.store(user_id=user.id, token_value="rt-1", ttl=TTL)
    store.revoke_all(user.id)
    with pytest.raises(InvalidRefreshToken):
        store.validate_and_rotate("rt-1", mint=_mint("rt-2"), ttl=TTL)


def test_purge_expired_removes_stale_records(store, user, session):
    store.store(user_id=user.id, token_value="live", ttl=TTL)
    store.store(user_id=user.id, token_value="expired", ttl=TTL)
    store.store(user_id=user.id, token_value="old-inactive", ttl=TTL)
    store.store(user_id=user.id, token_value="fresh-inactive", ttl=TTL)
    store.validate_and_rotate("fresh-inactive", mint=_mint("fresh-next"), ttl=TTL)

    rows = {r.token_hash: r for r in session.execute(select(RefreshToken)).scalars()}
    now = datetime.now(UTC)
    rows[token_digest("expired")].expires_at = now - timedelta(minutes=1)
    old = rows[token_digest("old-inactive")]
    old.is_active = False
    old.created_at = now - TTL - timedelta(days=1)
    session.flush()

    deleted = store.purge_expired(now=now, retention=TTL)

    assert deleted == 2
    assert store.get("expired") is None
    assert store.get("old-inactive") is None
    assert store.get("live") is not None
    assert store.get("fresh-inactive") is not None
