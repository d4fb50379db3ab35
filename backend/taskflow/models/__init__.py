from taskflow.models.refresh_token import RefreshToken
from taskflow.models.user import User, UserRole

__all__ = [
    "RefreshToken",
    "User",
    "UserRole",
]
