# taskflow/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import cast

import jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskflow.models.user import normalize_email
from taskflow.services._shared.base import BaseService
from taskflow.services._shared.errors import (
    InternalFailure,
    InvalidCredentials,
    InvalidRefreshToken,
    UserAlreadyExists,
)
from taskflow.services._shared.ports import RefreshTokenStore, TokenIssuer
from taskflow.services.auth.credentials import CredentialVerifier
from taskflow.services.auth.dto import LoginIn, RegisterIn, SessionResult, UserSummary
from taskflow.services.auth.lockout import LockoutPolicy
from taskflow.services.auth.revocation import RevocationCache
from taskflow.services.auth.settings import AuthSettings
from taskflow.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


@contextmanager
def _store_errors() -> Iterator[None]:
    """Raise driver errors as :class:`InternalFailure`.

    ``IntegrityError`` passes through so callers can map it to a conflict.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        log.error("Store operation failed", exc_info=True)
        raise InternalFailure("Store unavailable") from exc


class SessionService(BaseService):
    """
    Session lifecycle service (login / register / refresh / logout).

    Every collaborator is injected; the service never reads global config.
    Steps that touch the user directory and the refresh store run inside one
    unit of work: commit on success, rollback on any exception. Driver
    errors escaping a step are raised as :class:`InternalFailure`.
    """

    def __init__(
        self,
        *,
        verifier: CredentialVerifier,
        lockout: LockoutPolicy,
        issuer: TokenIssuer,
        refresh_store: RefreshTokenStore,
        revocation: RevocationCache,
        settings: AuthSettings,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] | None = None,
    ) -> None:
        """
        :param verifier: Password checker (with the dummy-hash path).
        :param lockout: Failure counting and lockout flags.
        :param issuer: Signs and verifies access/refresh JWTs.
        :param refresh_store: Refresh records with atomic rotation.
        :param revocation: Access-token blacklist.
        :param settings: Token lifetimes and lockout limits.
        :param uow_factory: Unit of work factory (defaults to the Flask session).
        """
        super().__init__(uow_factory=uow_factory)
        self.verifier = verifier
        self.lockout = lockout
        self.issuer = issuer
        self.refresh_store = refresh_store
        self.revocation = revocation
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionResult:
        """
        Authenticate credentials and issue a fresh session.

        Unknown emails still pay for one hash verification (against the dummy
        hash) and count as a failure, so both rejection paths look the same.

        :raises AccountLocked: The identity is locked, even if the password is right.
        :raises InvalidCredentials: Unknown email or wrong password.
        """
        email = normalize_email(dto.email)
        self.lockout.check_locked(email)

        with _store_errors(), self.rw_uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                self.verifier.verify_dummy(dto.password)
                self.lockout.record_failure(email)
                raise InvalidCredentials()
            if not self.verifier.verify(dto.password, user.password_hash):
                self.lockout.record_failure(email)
                raise InvalidCredentials()

            self.lockout.clear_on_success(email)
            result = self._open_session(user)

        log.info("User logged in", extra={"user_id": result.user.id})
        return result

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> SessionResult:
        """
        Create a user and sign them in.

        :raises UserAlreadyExists: The email is taken (also on a lost race
            with a concurrent registration).
        """
        try:
            with _store_errors(), self.rw_uow() as uow:
                if uow.users.find_by_email(dto.email) is not None:
                    raise UserAlreadyExists()
                user = uow.users.create(email=dto.email, password=dto.password, name=dto.name)
                result = self._open_session(user)
        except IntegrityError as exc:
            raise UserAlreadyExists() from exc

        log.info("User registered", extra={"user_id": result.user.id})
        return result

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str) -> SessionResult:
        """
        Rotate a refresh token and emit a new session.

        Every rejection (bad signature, expired, blacklisted, inactive,
        already rotated, owner gone) surfaces as the same
        :class:`InvalidRefreshToken`.
        """
        try:
            claims = self.issuer.decode_refresh(refresh_token)
        except jwt.InvalidTokenError as exc:
            raise InvalidRefreshToken() from exc

        # Checked before rotation so a revoked token never mints a replacement
        if self.revocation.is_revoked(str(claims["jti"])):
            raise InvalidRefreshToken()

        with _store_errors(), self.rw_uow() as uow:
            outcome = self.refresh_store.validate_and_rotate(
                refresh_token,
                mint=self.issuer.issue_refresh_token,
                ttl=self.settings.refresh_ttl,
            )
            user = uow.users.find_by_id(outcome.user_id)
            if user is None:
                raise InvalidRefreshToken()
            access = self.issuer.issue_access_token(user)
            summary = UserSummary.from_user(user)

        return SessionResult(
            access_token=access,
            refresh_token=cast(str, outcome.record.token_value),
            user=summary,
        )

    # ------------------------------------------------------------------ #
    # Logout / revocation
    # ------------------------------------------------------------------ #

    def logout(self, access_token: str, user_id: str) -> None:
        """
        Blacklist the (already verified) access token for its remaining
        lifetime, then deactivate every refresh record of the user.

        An unreadable token has nothing to blacklist; the refresh records
        are revoked regardless.
        """
        try:
            claims = self.issuer.peek_claims(access_token)
            expires_at = self.issuer.peek_expiry(access_token)
        except jwt.InvalidTokenError:
            log.warning("Logout with unreadable access token", extra={"user_id": user_id})
            claims, expires_at = {}, None
        jti = claims.get("jti")
        if jti and expires_at is not None:
            self.revocation.blacklist(str(jti), expires_at - datetime.now(UTC))
        self.revoke_all_sessions(user_id)

    def revoke_all_sessions(self, user_id: str) -> int:
        """
        Deactivate all refresh records of ``user_id``.

        Outstanding access tokens stay valid until they expire.

        :returns: Number of records deactivated.
        """
        with _store_errors(), self.rw_uow():
            return self.refresh_store.revoke_all(user_id)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _open_session(self, user) -> SessionResult:
        """Issue a pair and persist the refresh record (inside the caller's UoW)."""
        pair = self.issuer.issue_pair(user)
        self.refresh_store.store(
            user_id=str(user.id),
            token_value=pair.refresh_token,
            ttl=self.settings.refresh_ttl,
        )
        return SessionResult(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            user=UserSummary.from_user(user),
        )

