"""Persistence-only repositories sharing the Unit of Work session."""

from taskflow.repositories.base import BaseRepository
from taskflow.repositories.refresh_token import RefreshTokenRepository
from taskflow.repositories.user import UserRepository

__all__ = ["BaseRepository", "RefreshTokenRepository", "UserRepository"]
