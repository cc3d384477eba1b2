"""Liveness endpoint: reports version, database reachability and XP settings."""

import sqlite3

import structlog
from fastapi import APIRouter

from gamify import __version__
from gamify.config.app_config import load_app_config
from gamify.db.database import get_db
from gamify.utils.time_utils import to_iso, utc_now
from gamify.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _database_status() -> str:
    try:
        with get_db() as conn:
            conn.execute("SELECT 1 FROM level_system LIMIT 1").fetchall()
    except sqlite3.Error as e:
        logger.warning("health.database_unavailable", error=str(e))
        return "unavailable"
    return "ok"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Status is 'degraded' when the database cannot be queried."""
    database = _database_status()
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=__version__,
        database=database,
        cooldown_seconds=load_app_config().xp.cooldown_seconds,
        timestamp=to_iso(utc_now()),
    )
