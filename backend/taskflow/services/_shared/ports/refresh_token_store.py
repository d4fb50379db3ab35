from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


def token_digest(token_value: str) -> str:
    """Return the hex SHA-256 of a token; stores key records by this digest."""
    return hashlib.sha256(token_value.encode("utf-8")).hexdigest()


def as_utc(dt: datetime) -> datetime:
    """Label naive datetimes (as returned by SQLite) as UTC."""
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Read-model for a refresh token record.

    :ivar id: Record identifier.
    :ivar token_value: Token value when known (freshly stored); ``None`` when
        the record was loaded back, since only the digest is persisted.
    :ivar user_id: Owner user id (a reference, not an embedded user).
    :ivar expires_at: Absolute expiration (UTC).
    :ivar is_active: Whether the token can still be rotated.
    :ivar created_at: Creation time (UTC).
    """

    id: str
    token_value: str | None
    user_id: str
    expires_at: datetime
    is_active: bool
    created_at: datetime

    def is_usable(self, now: datetime) -> bool:
        return self.is_active and as_utc(self.expires_at) > now


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """Result of a successful rotation: the owner and the replacement record."""

    user_id: str
    record: RefreshTokenRecord


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh token records.

    ``validate_and_rotate`` MUST be atomic: the old record is deactivated and
    the replacement created together, and under concurrent attempts with the
    same token at most one succeeds.
    """

    def store(self, *, user_id: str, token_value: str, ttl: timedelta) -> RefreshTokenRecord:
        """Create an active record for ``token_value``."""

    def validate_and_rotate(
        self,
        token_value: str,
        *,
        mint: Callable[[str], str],
        ttl: timedelta,
    ) -> RotationOutcome:
        """
        Consume ``token_value`` and store its replacement.

        :param mint: Called with the owner's user id once the old record is
            claimed; returns the replacement token value.
        :raises InvalidRefreshToken: Record absent, inactive or expired.
        """

    def revoke_all(self, user_id: str) -> int:
        """Deactivate every record of ``user_id``. :returns: records affected."""

    def get(self, token_value: str) -> RefreshTokenRecord | None:
        """Fetch a record snapshot (if present)."""
