"""User repository: the SQL-backed user directory."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from taskflow.models.user import User, UserRole, normalize_email
from taskflow.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Implements the :class:`~taskflow.services._shared.ports.UserDirectory`
    port. It NEVER handles tokens or sessions, only user rows.
    """

    model = User

    def find_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance (password hash included) or ``None``.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == normalize_email(email))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def find_by_id(self, user_id: str) -> User | None:
        """Fetch a user by primary key."""
        return self.get(user_id)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == normalize_email(email))
        return bool(self.session.execute(stmt).first())

    def create(
        self,
        *,
        email: str,
        password: str,
        name: str,
        role: str = UserRole.USER.value,
    ) -> User:
        """Insert a user; the model setter hashes ``password``.

        :raises sqlalchemy.exc.IntegrityError: When the email is already taken
            (race with a concurrent registration).
        """
        user = User(email=email, name=name, role=role)
        user.password = password
        return self.add(user)
