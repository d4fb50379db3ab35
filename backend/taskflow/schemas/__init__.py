"""Marshmallow schemas validating requests at the HTTP edge."""

from .auth import LoginSchema, RefreshSchema, RegisterSchema, SessionResponseSchema

__all__ = ["LoginSchema", "RefreshSchema", "RegisterSchema", "SessionResponseSchema"]
