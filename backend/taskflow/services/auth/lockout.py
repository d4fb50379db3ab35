"""Brute-force protection: per-identity failure counters and lockout flags."""

from __future__ import annotations

import logging
from datetime import timedelta

from taskflow.models.user import normalize_email
from taskflow.services._shared.errors import AccountLocked
from taskflow.services._shared.ports.ttl_cache import TtlCache

log = logging.getLogger(__name__)


class LockoutPolicy:
    """
    Count failed logins per identity and lock the identity when the count
    reaches ``max_attempts``.

    Keys
    ----
    ``attempts:<email>``
        Failure counter; expiry set when the counter is created.
    ``lockout:<email>``
        Lockout flag; expires after ``lockout_duration``. Only ``unlock``
        removes it early.

    Cache faults propagate as :class:`InternalFailure` from the cache adapter,
    which denies the login.
    """

    def __init__(self, cache: TtlCache, *, max_attempts: int, lockout_duration: timedelta) -> None:
        self.cache = cache
        self.max_attempts = max_attempts
        self.ttl = max(1, int(lockout_duration.total_seconds()))

    @staticmethod
    def _attempts_key(identity: str) -> str:
        return f"attempts:{normalize_email(identity)}"

    @staticmethod
    def _lockout_key(identity: str) -> str:
        return f"lockout:{normalize_email(identity)}"

    def is_locked(self, identity: str) -> bool:
        return self.cache.exists(self._lockout_key(identity))

    def check_locked(self, identity: str) -> None:
        """:raises AccountLocked: While the identity's flag is set."""
        if self.is_locked(identity):
            raise AccountLocked()

    def record_failure(self, identity: str) -> int:
        """
        Count one failed attempt; trip the lockout at ``max_attempts``.

        The increment is atomic in the cache, so concurrent failures are never
        lost. Under a race the trip may happen on a count above the limit.

        :returns: Attempt count observed by this call.
        """
        attempts = self.cache.incr(self._attempts_key(identity), self.ttl)
        if attempts >= self.max_attempts:
            self.cache.set(self._lockout_key(identity), True, self.ttl)
            self.cache.delete(self._attempts_key(identity))
            log.warning("Account locked after repeated failures", extra={"attempts": attempts})
        return attempts

    def clear_on_success(self, identity: str) -> None:
        """Reset the failure counter. The lockout flag is left untouched."""
        self.cache.delete(self._attempts_key(identity))

    def unlock(self, identity: str) -> None:
        """Explicit operator unlock: drop both the flag and the counter."""
        self.cache.delete(self._lockout_key(identity))
        self.cache.delete(self._attempts_key(identity))
