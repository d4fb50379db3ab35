# taskflow/services/auth/dto.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from taskflow.services._shared.ports.user_directory import UserRecord

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email.
    :param password: Raw password, hashed by the user model.
    :param name: Display name.
    """

    email: str
    password: str
    name: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserSummary:
    """Public view of a user. Never carries the password hash."""

    id: str
    email: str
    name: str
    role: str

    @classmethod
    def from_user(cls, user: UserRecord) -> UserSummary:
        return cls(id=str(user.id), email=user.email, name=user.name, role=str(user.role))


@dataclass(frozen=True, slots=True)
class SessionResult:
    """
    Output DTO of ``login``, ``register`` and ``refresh``.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param user: Public user summary.
    """

    access_token: str
    refresh_token: str
    user: UserSummary

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
