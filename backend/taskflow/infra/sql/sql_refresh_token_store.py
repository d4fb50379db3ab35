# taskflow/infra/sql/sql_refresh_token_store.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskflow.core.extensions import db
from taskflow.models.refresh_token import RefreshToken
from taskflow.repositories.refresh_token import RefreshTokenRepository
from taskflow.services._shared.errors import InternalFailure, InvalidRefreshToken
from taskflow.services._shared.ports import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    as_utc,
    token_digest,
)

log = logging.getLogger(__name__)


def _view(row: RefreshToken, token_value: str | None = None) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        token_value=token_value,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        is_active=bool(row.is_active),
        created_at=as_utc(row.created_at),
    )


class SqlRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token store over the ``refresh_tokens`` table.

    The store never commits: it joins whatever transaction is open on the
    session, which is the caller's unit of work. Rotation is a compare-and-flip
    ``UPDATE`` followed by the insert of the replacement, both in that
    transaction.

    :param session_factory: Returns the session to use; defaults to the
        Flask-scoped ``db.session`` shared with :class:`SQLAlchemyUnitOfWork`.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or (lambda: cast(Session, db.session))

    def _repo(self) -> RefreshTokenRepository:
        return RefreshTokenRepository(session=self._session_factory())

    # -------------------- API ------------------------

    def store(self, *, user_id: str, token_value: str, ttl: timedelta) -> RefreshTokenRecord:
        now = datetime.now(UTC)
        row = RefreshToken(
            token_hash=token_digest(token_value),
            user_id=user_id,
            expires_at=now + ttl,
            is_active=True,
            created_at=now,
        )
        try:
            self._repo().add(row)
        except SQLAlchemyError as exc:
            log.error("Refresh token insert failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc
        return _view(row, token_value)

    def validate_and_rotate(
        self,
        token_value: str,
        *,
        mint: Callable[[str], str],
        ttl: timedelta,
    ) -> RotationOutcome:
        try:
            user_id = self._repo().consume_active(token_digest(token_value), now=datetime.now(UTC))
        except SQLAlchemyError as exc:
            log.error("Refresh token rotation failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc
        if user_id is None:
            raise InvalidRefreshToken()
        record = self.store(user_id=user_id, token_value=mint(user_id), ttl=ttl)
        return RotationOutcome(user_id=user_id, record=record)

    def revoke_all(self, user_id: str) -> int:
        try:
            return self._repo().deactivate_all_for_user(user_id)
        except SQLAlchemyError as exc:
            log.error("Refresh token revocation failed", exc_info=True)
            raise InternalFailure("Refresh token store unavailable") from exc

    def get(self, token_value: str) -> RefreshTokenRecord | None:
        row = self._repo().get_by_hash(token_digest(token_value))
        return _view(row) if row is not None else None

    def purge_expired(self, *, now: datetime | None = None, retention: timedelta) -> int:
        """
        Delete expired records and inactive ones older than ``retention``.

        :returns: Number of rows deleted.
        """
        now = now or datetime.now(UTC)
        return self._repo().delete_stale(expired_before=now, inactive_before=now - retention)
