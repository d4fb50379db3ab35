# taskflow/infra/jwt/pyjwt_token_issuer.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import jwt

from taskflow.services._shared.errors import InternalFailure
from taskflow.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenIssuer,
    TokenPair,
    UserRecord,
)

log = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(slots=True)
class PyJWTTokenIssuer(TokenIssuer):
    """
    HS256 token issuer backed by PyJWT.

    Access and refresh tokens are signed with distinct secrets, so one kind
    can never be verified as the other even if ``type`` were forged.

    :param access_secret: HMAC key for access tokens.
    :param refresh_secret: HMAC key for refresh tokens.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    """

    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta

    # -------------------- helpers --------------------

    @staticmethod
    def _new_jti() -> str:
        # 128 bits: refresh tokens minted in the same second still differ
        return secrets.token_hex(16)

    @staticmethod
    def _encode(payload: dict[str, Any], secret: str) -> str:
        try:
            return jwt.encode(payload, secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            log.error("Token signing failed", exc_info=True)
            raise InternalFailure("Token signing failed") from exc

    @staticmethod
    def _decode(token: str, secret: str, expected_type: str) -> dict[str, Any]:
        claims = cast(
            dict[str, Any],
            jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "sub", "jti", "type"]},
            ),
        )
        if claims.get("type") != expected_type:
            raise jwt.InvalidTokenError(f"Expected a {expected_type} token")
        return claims

    # -------------------- API ------------------------

    def issue_access_token(self, user: UserRecord) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": str(user.role),
            "tokenVersion": int(user.token_version or 0),
            "iat": now,
            "exp": now + self.access_ttl,
            "jti": self._new_jti(),
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(payload, self.access_secret)

    def issue_refresh_token(self, user_id: str) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": self._new_jti(),
            "iat": now,
            "exp": now + self.refresh_ttl,
        }
        return self._encode(payload, self.refresh_secret)

    def issue_pair(self, user: UserRecord) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(str(user.id)),
        )

    def decode_access(self, token: str) -> dict[str, Any]:
        """:raises jwt.InvalidTokenError: Bad signature, expired, malformed or wrong type."""
        return self._decode(token, self.access_secret, ACCESS_TOKEN_TYPE)

    def decode_refresh(self, token: str) -> dict[str, Any]:
        """:raises jwt.InvalidTokenError: Bad signature, expired, malformed or wrong type."""
        return self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)

    def peek_claims(self, token: str) -> dict[str, Any]:
        return cast(
            dict[str, Any],
            jwt.decode(token, options={"verify_signature": False, "verify_exp": False}),
        )

    def peek_expiry(self, token: str) -> datetime | None:
        exp = self.peek_claims(token).get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=UTC)
