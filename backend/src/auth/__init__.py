"""Authentication module exports."""

from src.auth.config import DEFAULT_USER_ID, AuthUser
from src.auth.context import AuthContext, CurrentAuth, auth_with_right
from src.auth.dependencies import CurrentUser, OptionalUser, require_right


__all__ = [
    "DEFAULT_USER_ID",
    "AuthContext",
    "AuthUser",
    "CurrentAuth",
    "CurrentUser",
    "OptionalUser",
    "auth_with_right",
    "require_right",
]
