"""AuthContext and FastAPI dependencies pairing the caller with a session.

Feature routers take `CurrentAuth` instead of separate user/session
parameters, then hand `auth.user` and `auth.session` to their services.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.config import AuthUser
from src.auth.dependencies import CurrentUser, require_right
from src.database.session import DbSession


class AuthContext:
    """Request-scoped user context."""

    def __init__(self, user: AuthUser, session: AsyncSession) -> None:
        self.user = user
        self.session = session

    @property
    def user_id(self) -> int:
        return self.user.id


async def get_auth_context(user: CurrentUser, session: DbSession) -> AuthContext:
    """Build an AuthContext for the current request."""
    return AuthContext(user=user, session=session)


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


def auth_with_right(right: str) -> Callable[..., Awaitable[AuthContext]]:
    """Like `CurrentAuth`, but the caller's role must grant `right`."""
    guard = require_right(right)

    async def _context(user: Annotated[AuthUser, Depends(guard)], session: DbSession) -> AuthContext:
        return AuthContext(user=user, session=session)

    return _context
