"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories,
ports and application services.

The translation to HTTP responses (RFC 7807) is handled by
``BaseService.translate_exceptions()``.

Session-lifecycle errors deliberately carry fixed messages: callers must not
learn whether an email exists, or whether a refresh token was expired,
rotated or blacklisted.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` subclasses.
    """

    pass


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


# --------------------------------------------------------------------------- #
# Session lifecycle
# --------------------------------------------------------------------------- #


class InvalidCredentials(ServiceError):
    """Wrong email or wrong password; the two cases are indistinguishable."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class AccountLocked(ServiceError):
    """The identity's lockout flag is set."""

    def __init__(self) -> None:
        super().__init__("Account temporarily locked due to too many failed attempts")


class UserAlreadyExists(ConflictError):
    """Registration for an email that is already taken."""

    def __init__(self) -> None:
        super().__init__(entity="User", detail="User with this email already exists")


class InvalidRefreshToken(ServiceError):
    """Missing, expired, inactive or blacklisted refresh token (one kind for all)."""

    def __init__(self) -> None:
        super().__init__("Invalid refresh token")


class InternalFailure(ServiceError):
    """
    Store or cache unreachable, signing fault, hashing-library fault.

    The message is for operators; clients only ever see a generic failure.
    """

    def __init__(self, message: str = "Internal failure") -> None:
        super().__init__(message)
