"""Immutable settings consumed by the session lifecycle."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str | int | timedelta) -> timedelta:
    """
    Parse ``"15m"``, ``"7d"``, ``"900"`` (seconds) or an int into a timedelta.

    :raises ValueError: On malformed or non-positive values.
    """
    if isinstance(value, timedelta):
        delta = value
    elif isinstance(value, int):
        delta = timedelta(seconds=value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        delta = timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])
    if delta <= timedelta(0):
        raise ValueError(f"Duration must be positive: {value!r}")
    return delta


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Session lifecycle configuration, parsed once at startup.

    :param access_secret: HMAC key for access tokens.
    :param refresh_secret: HMAC key for refresh tokens (must differ).
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param max_login_attempts: Failures tolerated before lockout.
    :param lockout_duration: Lifetime of the lockout flag and attempt window.
    """

    access_secret: str
    refresh_secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    max_login_attempts: int = 5
    lockout_duration: timedelta = timedelta(minutes=15)

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("JWT secrets must be non-empty.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
        if self.max_login_attempts < 1:
            raise ValueError("AUTH_MAX_LOGIN_ATTEMPTS must be at least 1.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        """Build settings from a Flask config (or any mapping of the same keys)."""
        return cls(
            access_secret=str(config["JWT_ACCESS_SECRET"]),
            refresh_secret=str(config["JWT_REFRESH_SECRET"]),
            access_ttl=parse_duration(config.get("JWT_ACCESS_EXPIRATION", "15m")),
            refresh_ttl=parse_duration(config.get("JWT_REFRESH_EXPIRATION", "7d")),
            max_login_attempts=int(config.get("AUTH_MAX_LOGIN_ATTEMPTS", 5)),
            lockout_duration=parse_duration(config.get("AUTH_LOCKOUT_DURATION", "15m")),
        )
