from __future__ import annotations

import json
import logging
from typing import Any, cast

import redis  # type: ignore[import-untyped]

from taskflow.services._shared.errors import InternalFailure
from taskflow.services._shared.ports.ttl_cache import TtlCache

log = logging.getLogger(__name__)


class RedisTtlCache(TtlCache):
    """
    Redis-backed TTL cache.

    Keys are prefixed with ``namespace`` and values stored as JSON. Any
    ``RedisError`` (including socket timeouts) is raised as
    :class:`InternalFailure`: revocation and lockout checks fail closed.

    :param r: A Redis client (already connected, with socket timeouts set).
    :param namespace: Key prefix shared by every entry.
    """

    def __init__(self, r: redis.Redis, namespace: str = "taskflow") -> None:
        self.r = r
        self.namespace = namespace

    def _k(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @staticmethod
    def _fail(op: str, exc: Exception) -> InternalFailure:
        log.error("Cache %s failed", op, exc_info=exc)
        return InternalFailure("Cache unavailable")

    def get(self, key: str) -> Any | None:
        try:
            raw = self.r.get(self._k(key))
        except redis.RedisError as exc:
            raise self._fail("get", exc) from exc
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.r.set(self._k(key), json.dumps(value), ex=max(1, int(ttl)))
        except redis.RedisError as exc:
            raise self._fail("set", exc) from exc

    def delete(self, key: str) -> None:
        try:
            self.r.delete(self._k(key))
        except redis.RedisError as exc:
            raise self._fail("delete", exc) from exc

    def incr(self, key: str, ttl: int) -> int:
        k = self._k(key)
        try:
            # INCR and EXPIRE NX commit together: a counter never outlives
            # its window, and only the increment that creates it starts one.
            p = self.r.pipeline(transaction=True)
            p.incr(k)
            p.expire(k, max(1, int(ttl)), nx=True)
            count, _ = p.execute()
        except redis.RedisError as exc:
            raise self._fail("incr", exc) from exc
        return int(count)

    def exists(self, key: str) -> bool:
        try:
            return cast(int, self.r.exists(self._k(key))) == 1
        except redis.RedisError as exc:
            raise self._fail("exists", exc) from exc
