"""Route handlers for Web API."""

from gamify.web.routes.attempts import router as attempts_router
from gamify.web.routes.content import router as content_router
from gamify.web.routes.health import router as health_router
from gamify.web.routes.leaderboard import router as leaderboard_router
from gamify.web.routes.mentors import router as mentors_router
from gamify.web.routes.progress import router as progress_router
from gamify.web.routes.revisions import router as revisions_router
from gamify.web.routes.students import router as students_router
from gamify.web.routes.xp import router as xp_router

__all__ = [
    "attempts_router",
    "content_router",
    "health_router",
    "leaderboard_router",
    "mentors_router",
    "progress_router",
    "revisions_router",
    "students_router",
    "xp_router",
]
