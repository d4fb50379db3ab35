"""Factory Boy definition for :class:`taskflow.models.user.User`."""

from __future__ import annotations

import factory
from taskflow.models.user import User

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`taskflow.models.user.User` instances.

    The raw password is hashed through the model setter; pass
    ``password="..."`` to choose it.
    """

    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    role = "user"
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD

    @classmethod
    def _after_postgeneration(cls, instance, create, results=None):
        """Persist the post-generated hash like the base fields."""
        if create:
            cls._meta.sqlalchemy_session.commit()
