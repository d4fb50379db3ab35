from __future__ import annotations

from typing import Protocol


class UserRecord(Protocol):
    """Fields the session lifecycle reads from a user."""

    id: str
    email: str
    name: str
    role: str
    token_version: int
    password_hash: str


class UserDirectory(Protocol):
    """
    Port for the external user directory.

    Records returned here include the password hash; they must only flow
    through authentication paths and never into responses.
    """

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def find_by_id(self, user_id: str) -> UserRecord | None: ...

    def create(self, *, email: str, password: str, name: str, role: str = ...) -> UserRecord: ...
