"""Persistent refresh-token records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UUIDPKMixin


class RefreshToken(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    One issued refresh token.

    Only the SHA-256 digest of the token is stored; the signed value itself
    never rests in the database. ``user_id`` is a plain foreign key with no
    ORM relationship, so records never hold a live reference to a user.

    Fields
    ------
    token_hash : str
        Hex SHA-256 of the refresh token value (unique).
    user_id : str
        Owner id (cascade on user deletion).
    expires_at : datetime
        Absolute expiry (UTC).
    is_active : bool
        Flipped to ``False`` exactly once, by rotation or revocation.
    """

    __tablename__ = "refresh_tokens"

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_refresh_tokens_user_id_is_active", "user_id", "is_active"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
