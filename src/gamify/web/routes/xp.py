"""XP endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.xp_award import award_xp, get_level, list_xp_events
from gamify.db.students_repository import StudentNotFoundError
from gamify.web.schemas import (
    LevelResponse,
    XPAwardRequest,
    XPAwardResponse,
    XPEventResponse,
)

router = APIRouter(prefix="/api/xp", tags=["xp"])


@router.post("/award", response_model=XPAwardResponse)
async def award(request: XPAwardRequest) -> XPAwardResponse:
    """Award XP for a student action.

    Returns 429 while the cooldown for this action/material/student is active.
    """
    try:
        result = award_xp(
            request.event_type,
            request.material_id,
            request.student_id,
            topic_id=request.topic_id,
            score=request.score,
        )
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=result.message,
            headers={"Retry-After": str(-(-result.cooldown_remaining_ms // 1000))},
        )

    return XPAwardResponse(**result.to_dict())


@router.get("/{student_id}/level", response_model=LevelResponse)
async def level(student_id: str) -> LevelResponse:
    """Level bar for a student."""
    try:
        bar = get_level(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return LevelResponse(
        student_id=student_id,
        total_points=bar.total_points,
        current_level=bar.current_level,
        xp_to_next=bar.xp_to_next,
        next_level=bar.next_level,
        progress_percent=bar.progress_percent,
    )


@router.get("/{student_id}/events", response_model=list[XPEventResponse])
async def events(student_id: str, limit: int = 50) -> list[XPEventResponse]:
    """Most recent XP events, newest first."""
    try:
        records = list_xp_events(student_id, limit=limit)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [XPEventResponse.model_validate(r) for r in records]
