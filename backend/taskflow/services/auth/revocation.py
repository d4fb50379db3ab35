"""Access-token revocation (blacklist) on top of the TTL cache."""

from __future__ import annotations

from datetime import timedelta

from taskflow.services._shared.ports.ttl_cache import TtlCache


class RevocationCache:
    """
    Blacklist of token identifiers (``jti``).

    An entry lives exactly as long as the token it revokes would have, so the
    cache never grows with tokens that have expired anyway.
    """

    def __init__(self, cache: TtlCache) -> None:
        self.cache = cache

    @staticmethod
    def _k(token_id: str) -> str:
        return f"blacklist:{token_id}"

    def blacklist(self, token_id: str, ttl: timedelta | int) -> None:
        """
        Revoke ``token_id`` for ``ttl``.

        A non-positive ``ttl`` means the token already expired: nothing to do.
        """
        seconds = int(ttl.total_seconds()) if isinstance(ttl, timedelta) else int(ttl)
        if seconds <= 0:
            return
        self.cache.set(self._k(token_id), True, seconds)

    def is_revoked(self, token_id: str) -> bool:
        """:raises InternalFailure: When the cache cannot answer (fail closed)."""
        return self.cache.exists(self._k(token_id))
