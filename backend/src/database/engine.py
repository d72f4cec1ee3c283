from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.config.settings import get_settings


settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine.

    - Postgres (psycopg3): standard pool with pre-ping.
    - SQLite (aiosqlite, used by the test-suite): no pool tuning, foreign keys
      switched on per connection so ON DELETE rules behave like Postgres.
    """
    database_url = database_url or settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(database_url, echo=settings.DEBUG)
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,  # ~1h
        pool_pre_ping=True,
        pool_use_lifo=True,
        connect_args={"connect_timeout": 10},
    )


# Create the engine
engine: AsyncEngine = create_app_engine()
