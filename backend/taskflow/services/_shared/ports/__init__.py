"""
taskflow.services._shared.ports
===============================

*Ports* (hexagonal interfaces) that the session lifecycle depends on.

Modules
-------
- :mod:`token_issuer`:
    :class:`~.TokenIssuer`, signing and verification of access/refresh JWTs.
- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenRecord` and
    :class:`~.RotationOutcome` for persistence and single-use rotation.
- :mod:`ttl_cache`:
    :class:`~.TtlCache` backing revocation and lockout state, plus the
    process-local :class:`~.InMemoryTtlCache`.
- :mod:`user_directory`:
    :class:`~.UserDirectory`, lookups and creation of users.

Concrete adapters live under ``taskflow.infra`` and ``taskflow.repositories``.
"""

from __future__ import annotations

from .refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    as_utc,
    token_digest,
)
from .token_issuer import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenIssuer, TokenPair
from .ttl_cache import InMemoryTtlCache, TtlCache
from .user_directory import UserDirectory, UserRecord

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "InMemoryTtlCache",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "RotationOutcome",
    "TokenIssuer",
    "TokenPair",
    "TtlCache",
    "UserDirectory",
    "UserRecord",
    "as_utc",
    "token_digest",
]
