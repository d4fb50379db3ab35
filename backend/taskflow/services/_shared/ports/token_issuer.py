from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from .user_directory import UserRecord

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Freshly minted credentials.

    :ivar access_token: Short-lived signed access JWT.
    :ivar refresh_token: Long-lived signed refresh JWT.
    """

    access_token: str
    refresh_token: str


class TokenIssuer(Protocol):
    """Port for minting and verifying signed session tokens.

    Implementations sign in-process only: no network calls.
    """

    def issue_pair(self, user: UserRecord) -> TokenPair: ...

    def issue_access_token(self, user: UserRecord) -> str: ...

    def issue_refresh_token(self, user_id: str) -> str: ...

    def decode_access(self, token: str) -> dict[str, Any]:
        """Verify signature, expiry and ``type``; return the claims."""

    def decode_refresh(self, token: str) -> dict[str, Any]:
        """Verify signature, expiry and ``type``; return the claims."""

    def peek_claims(self, token: str) -> dict[str, Any]:
        """Read claims *without* verification (token already trusted upstream)."""

    def peek_expiry(self, token: str) -> datetime | None: ...
