"""FastAPI application factory.

Main entry point for the Gamify Web API.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gamify import __version__
from gamify.config.app_config import load_app_config
from gamify.db.database import init_db
from gamify.web.routes import (
    attempts_router,
    content_router,
    health_router,
    leaderboard_router,
    mentors_router,
    progress_router,
    revisions_router,
    students_router,
    xp_router,
)

logger = structlog.get_logger(__name__)


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Database file; defaults to the configured path

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for startup/shutdown events."""
        path = db_path or config.db_path
        init_db(path)
        logger.info(
            "api_startup",
            db_path=str(path.absolute()),
            cooldown_seconds=config.xp.cooldown_seconds,
        )
        yield

    app = FastAPI(
        title="Gamify IAS Academy API",
        description="XP, levels, revisions and leaderboards for exam preparation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(students_router)
    app.include_router(mentors_router)
    app.include_router(xp_router)
    app.include_router(progress_router)
    app.include_router(attempts_router)
    app.include_router(revisions_router)
    app.include_router(leaderboard_router)
    app.include_router(content_router)

    return app


# Default app instance for uvicorn
app = create_app()
