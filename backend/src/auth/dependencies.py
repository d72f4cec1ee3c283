"""FastAPI authentication dependencies.

The core authentication logic lives in config.py; this module wraps it for
use as FastAPI dependencies and adds the right-based guard.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from src.auth.config import AuthUser, get_current_user, get_optional_user
from src.auth.exceptions import AuthorizationError


async def _get_user(request: Request) -> AuthUser:
    user = await get_current_user(request)
    request.state.user_id = user.id
    return user


async def _get_optional_user(request: Request) -> AuthUser | None:
    user = await get_optional_user(request)
    request.state.user_id = user.id if user else None
    return user


# Usage: async def my_route(user: CurrentUser) -> Response:
CurrentUser = Annotated[AuthUser, Depends(_get_user)]
OptionalUser = Annotated[AuthUser | None, Depends(_get_optional_user)]


def require_right(right: str) -> Callable[..., Awaitable[AuthUser]]:
    """Build a dependency that authenticates and checks one role right."""

    async def _check(user: CurrentUser) -> AuthUser:
        if not user.has_right(right):
            raise AuthorizationError
        return user

    return _check
