import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
BACKEND_DIR = Path(__file__).parent.parent
load_dotenv(BACKEND_DIR / ".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy.exc import OperationalError

from .config.logging import setup_logging
from .config.settings import Settings, get_settings
from .database.engine import engine
from .deliverables.router import router as deliverables_router
from .documents.router import router as documents_router
from .kanban.router import router as kanban_router
from .library.attachments_router import router as library_attachments_router
from .library.comments_router import router as library_comments_router
from .library.router import router as library_router
from .meetings.router import router as meetings_router
from .middleware.error_handlers import register_exception_handlers
from .middleware.security import SimpleSecurityMiddleware, limiter


setup_logging()
logger = logging.getLogger(__name__)

STARTUP_ATTEMPTS = 5

ROUTERS = (
    # Library
    library_router,
    library_comments_router,
    library_attachments_router,
    # Project workspace
    deliverables_router,
    documents_router,
    kanban_router,
    meetings_router,
)


async def _startup_database() -> None:
    """Create tables, retrying while the database is still coming up."""
    from src.database.init import init_database

    retry_delay = 1  # seconds
    for attempt in range(1, STARTUP_ATTEMPTS + 1):
        try:
            await init_database(engine)
        except OperationalError:
            if attempt == STARTUP_ATTEMPTS:
                logger.exception("Startup failed after %d attempts", STARTUP_ATTEMPTS)
                raise
            logger.warning("Database connection attempt %d failed, retrying in %ds...", attempt, retry_delay)
            await asyncio.sleep(retry_delay)
            retry_delay *= 2  # Exponential backoff
        else:
            return


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    await _startup_database()
    yield
    logger.info("Shutting down, disposing database engine")
    await engine.dispose()


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SimpleSecurityMiddleware)
    app.state.limiter = limiter


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Workspace API",
        description="Resource library and project workspace for the freelance platform",
        version="0.1.0",
        debug=settings.DEBUG,
        # Tests build their own schema
        lifespan=lifespan if settings.ENVIRONMENT != "test" else None,
    )
    _add_middleware(app, settings)
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "healthy"}

    for router in ROUTERS:
        app.include_router(router)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from src.config import env

    uvicorn.run(app, host=env("API_HOST", "127.0.0.1"), port=int(env("API_PORT", "8080")))
