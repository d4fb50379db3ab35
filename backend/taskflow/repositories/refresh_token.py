"""Refresh-token repository with compare-and-flip deactivation."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, or_, select, update

from taskflow.models.refresh_token import RefreshToken
from taskflow.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only access to ``refresh_tokens`` rows, keyed by token digest."""

    model = RefreshToken

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def consume_active(self, token_hash: str, *, now: datetime) -> str | None:
        """
        Flip an active, unexpired record to inactive and return its owner.

        The ``is_active`` predicate lives in the ``UPDATE`` itself, so among
        concurrent callers presenting the same token only one can match the
        row; the others see zero affected rows.

        :param token_hash: Digest of the presented token.
        :param now: Reference time for the expiry predicate (UTC).
        :returns: Owner ``user_id`` when this call won, otherwise ``None``.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.is_active.is_(True),
                RefreshToken.expires_at > now,
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

        if self.session.get_bind().dialect.update_returning:
            result = self.session.execute(stmt.returning(RefreshToken.user_id))
            return cast(str | None, result.scalar_one_or_none())

        # Dialects without UPDATE ... RETURNING: read the owner, then rely on rowcount.
        owner = self.session.execute(
            select(RefreshToken.user_id).where(RefreshToken.token_hash == token_hash)
        ).scalar_one_or_none()
        if owner is None:
            return None
        flipped = self.session.execute(stmt)
        return cast(str, owner) if flipped.rowcount == 1 else None

    def deactivate_all_for_user(self, user_id: str) -> int:
        """Mark every active record of ``user_id`` inactive; return the count."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_stale(self, *, expired_before: datetime, inactive_before: datetime) -> int:
        """Delete expired records and inactive ones created before a cutoff."""
        stmt = delete(RefreshToken).where(
            or_(
                RefreshToken.expires_at <= expired_before,
                (RefreshToken.is_active.is_(False)) & (RefreshToken.created_at < inactive_before),
            )
        )
        return int(self.session.execute(stmt.execution_options(synchronize_session=False)).rowcount or 0)
