"""Core authentication logic - resolves the caller of a request."""

import logging
from dataclasses import dataclass

from fastapi import Request

from src.auth.exceptions import InvalidTokenError, MissingTokenError, UnknownAuthProviderError
from src.auth.roles import role_has_right
from src.auth.security import decode_access_token
from src.config.settings import get_settings
from src.users.models import UserRole


logger = logging.getLogger(__name__)
settings = get_settings()

# The account every request runs as in single-user mode
DEFAULT_USER_ID = 1
DEFAULT_USER_ROLE = UserRole.ADMIN.value


@dataclass(frozen=True, slots=True)
class AuthUser:
    """Authenticated identity passed explicitly through routers and services."""

    id: int
    role: str

    def has_right(self, right: str) -> bool:
        return role_has_right(self.role, right)


def _extract_token_from_request(request: Request) -> str | None:
    """Extract JWT token from request headers or cookies."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ")

    cookie_token = request.cookies.get("access_token")
    if cookie_token:
        return cookie_token.removeprefix("Bearer ")

    return None


def _user_from_token(token: str) -> AuthUser:
    claims = decode_access_token(token)
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Token subject is not a user id")
        raise InvalidTokenError from e
    return AuthUser(id=user_id, role=str(claims.get("role", "")))


def _single_user() -> AuthUser:
    if settings.ENVIRONMENT == "production":
        logger.error("AUTH_PROVIDER='none' is not allowed in production!")
        msg = "Single-user mode (AUTH_PROVIDER='none') is not allowed in production. Use AUTH_PROVIDER='jwt'."
        raise ValueError(msg)
    return AuthUser(id=DEFAULT_USER_ID, role=DEFAULT_USER_ROLE)


async def get_current_user(request: Request) -> AuthUser:
    """Resolve the caller or reject the request.

    Single-user mode: always the default admin account.
    Multi-user mode: VALIDATES the bearer token or REJECTS the request.
    """
    if settings.AUTH_PROVIDER == "none":
        return _single_user()

    if settings.AUTH_PROVIDER == "jwt":
        token = _extract_token_from_request(request)
        if not token:
            logger.debug("Missing Authorization header and no access_token cookie")
            raise MissingTokenError
        return _user_from_token(token)

    logger.error(f"Unknown auth provider: {settings.AUTH_PROVIDER}")
    raise UnknownAuthProviderError(settings.AUTH_PROVIDER)


async def get_optional_user(request: Request) -> AuthUser | None:
    """Resolve the caller on public routes; anonymous requests yield None."""
    if settings.AUTH_PROVIDER == "jwt" and _extract_token_from_request(request) is None:
        return None
    return await get_current_user(request)
