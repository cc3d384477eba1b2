"""Leaderboard endpoint."""

from fastapi import APIRouter, Query

from gamify.core.leaderboard import get_leaderboard
from gamify.web.schemas import LeaderboardEntryResponse, LeaderboardResponse

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def leaderboard(limit: int | None = Query(default=None, ge=1)) -> LeaderboardResponse:
    """Students ranked by cumulative XP."""
    entries = [LeaderboardEntryResponse(**e.to_dict()) for e in get_leaderboard(limit=limit)]
    return LeaderboardResponse(entries=entries, count=len(entries))
