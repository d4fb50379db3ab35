# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import uuid4

import redis  # type: ignore[import-untyped]

from taskflow.services._shared.errors import InternalFailure, InvalidRefreshToken
from taskflow.services._shared.ports import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    token_digest,
)

log = logging.getLogger(__name__)


def _b(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic rotation.

    Layout
    ------
    ``<ns>:rt:<digest>``
        Hash with ``id``, ``user_id``, ``expires_at``, ``created_at`` and
        ``is_active``; expires with the token.
    ``<ns>:rt:u:<user_id>``
        Set of digests issued to the user (index for ``revoke_all``).

    :param r: A Redis client (already connected).
    :param namespace: Key prefix shared with the TTL cache.
    """

    def __init__(self, r: redis.Redis, namespace: str = "taskflow") -> None:
        self.r = r
        self.namespace = namespace

    # -------------------- helpers --------------------

    def _k(self, digest: str) -> str:
        return f"{self.namespace}:rt:{digest}"

    def _ku(self, user_id: str) -> str:
        return f"{self.namespace}:rt:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        return int(dt.timestamp())

    @staticmethod
    def _ttl_seconds(ttl: timedelta) -> int:
        return max(1, int(ttl.total_seconds()))

    def _mapping(self, *, user_id: str, now: datetime, ttl: timedelta) -> dict[str, str]:
        return {
            "id": uuid4().hex,
            "user_id": user_id,
            "expires_at": str(self._to_ts(now + ttl)),
            "created_at": str(self._to_ts(now)),
            "is_active": "1",
        }

    @staticmethod
    def _view(h: dict[Any, Any], token_value: str | None = None) -> RefreshTokenRecord:
        fields = {_b(k): _b(v) for k, v in h.items()}
        return RefreshTokenRecord(
            id=fields.get("id", ""),
            token_value=token_value,
            user_id=fields.get("user_id", ""),
            expires_at=datetime.fromtimestamp(int(fields.get("expires_at", "0")), tz=UTC),
            is_active=fields.get("is_active", "0") == "1",
            created_at=datetime.fromtimestamp(int(fields.get("created_at", "0")), tz=UTC),
        )

    # -------------------- API ------------------------

    def store(self, *, user_id: str, token_value: str, ttl: timedelta) -> RefreshTokenRecord:
        """
        Insert the record *before* the token is handed to the client, so no
        window exists where the JWT is valid without a server-side record.
        """
        digest = token_digest(token_value)
        key = self._k(digest)
        mapping = self._mapping(user_id=user_id, now=datetime.now(UTC), ttl=ttl)
        try:
            with self.r.pipeline(transaction=True) as p:
                p.hset(key, mapping=mapping)
                p.expire(key, self._ttl_seconds(ttl))
                p.sadd(self._ku(user_id), digest)
                p.expire(self._ku(user_id), self._ttl_seconds(ttl))
                p.execute()
        except redis.RedisError as exc:
            log.error("Refresh token insert failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc
        return self._view(mapping, token_value)

    def validate_and_rotate(
        self,
        token_value: str,
        *,
        mint: Callable[[str], str],
        ttl: timedelta,
    ) -> RotationOutcome:
        """
        Atomically consume ``token_value`` and create its replacement.

        Uses WATCH/MULTI/EXEC (optimistic locking) on the old record: a
        concurrent rotation of the same token aborts this transaction with
        ``WatchError``, and the retry then sees the record inactive.
        """
        k_old = self._k(token_digest(token_value))
        try:
            # Retry loop for optimistic locking in case of concurrent modifications
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_old)
                        h = p.hgetall(k_old)
                        if not h:
                            raise InvalidRefreshToken()
                        old = self._view(h)
                        now = datetime.now(UTC)
                        if not old.is_usable(now):
                            raise InvalidRefreshToken()

                        new_value = mint(old.user_id)
                        new_digest = token_digest(new_value)
                        k_new = self._k(new_digest)
                        k_user = self._ku(old.user_id)
                        mapping = self._mapping(user_id=old.user_id, now=now, ttl=ttl)

                        p.multi()
                        p.hset(k_old, "is_active", "0")
                        p.hset(k_new, mapping=mapping)
                        p.expire(k_new, self._ttl_seconds(ttl))
                        p.sadd(k_user, new_digest)
                        p.expire(k_user, self._ttl_seconds(ttl))
                        p.execute()
                    return RotationOutcome(
                        user_id=old.user_id, record=self._view(mapping, new_value)
                    )
                except redis.WatchError:
                    continue
        except redis.RedisError as exc:
            log.error("Refresh token rotation failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc

    def revoke_all(self, user_id: str) -> int:
        """
        Deactivate every live record of ``user_id``.

        The user index is watched, so a rotation that adds a digest meanwhile
        forces a retry and its new record is revoked too.
        """
        k_user = self._ku(user_id)
        try:
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_user)
                        digests = sorted(_b(m) for m in p.smembers(k_user))
                        keys = [self._k(d) for d in digests]
                        if keys:
                            p.watch(*keys)
                        states = [p.hget(k, "is_active") for k in keys]
                        live = [k for k, s in zip(keys, states, strict=True) if _b(s) == "1"]
                        stale = [d for d, s in zip(digests, states, strict=True) if s is None]

                        p.multi()
                        for k in live:
                            p.hset(k, "is_active", "0")
                        if stale:
                            # hashes already expired; drop them from the index
                            p.srem(k_user, *stale)
                        p.execute()
                    return len(live)
                except redis.WatchError:
                    continue
        except redis.RedisError as exc:
            log.error("Refresh token revocation failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc

    def get(self, token_value: str) -> RefreshTokenRecord | None:
        try:
            h = cast(dict[Any, Any], self.r.hgetall(self._k(token_digest(token_value))))
        except redis.RedisError as exc:
            log.error("Refresh token lookup failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc
        if not h:
            return None
        return self._view(h)
