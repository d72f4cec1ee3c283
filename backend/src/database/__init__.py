from .base import Base, utcnow
from .engine import engine
from .pagination import Paginator
from .session import DbSession, async_session_maker, get_db_session


__all__ = [
    "Base",
    "DbSession",
    "Paginator",
    "async_session_maker",
    "engine",
    "get_db_session",
    "utcnow",
]
