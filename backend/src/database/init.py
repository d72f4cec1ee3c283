"""Database initialization - creates tables and the single-user account."""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from src.auth.config import DEFAULT_USER_ID

# Import all models to register them with Base metadata
from src.deliverables.models import *  # noqa: F403
from src.documents.models import *  # noqa: F403
from src.kanban.models import *  # noqa: F403
from src.library.models import *  # noqa: F403
from src.meetings.models import *  # noqa: F403
from src.projects.models import *  # noqa: F403
from src.users.models import User, UserRole

from .base import Base
from .engine import engine


logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine) -> None:
    """Create all tables from models and make sure the default user exists."""
    async with db_engine.begin() as conn:
        logger.info("Creating database tables from models...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("All tables created successfully")

        logger.info("Ensuring default user exists...")
        await _ensure_default_user(conn)

    logger.info("Database initialization completed successfully")


async def _ensure_default_user(conn: AsyncConnection) -> None:
    """Create the account used when AUTH_PROVIDER=none."""
    existing = await conn.scalar(select(User.id).where(User.id == DEFAULT_USER_ID))
    if existing is not None:
        logger.info("Default user already exists")
        return

    await conn.execute(
        User.__table__.insert().values(
            id=DEFAULT_USER_ID,
            email="admin@localhost",
            first_name="Default",
            last_name="Admin",
            role=UserRole.ADMIN.value,
        )
    )
    logger.info("Created default user with ID: %s", DEFAULT_USER_ID)


async def main() -> None:
    """Run the initialization."""
    try:
        await init_database(engine)
    except Exception:
        logger.exception("Database initialization failed")
        raise


if __name__ == "__main__":
    asyncio.run(main())
