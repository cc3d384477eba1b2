"""Topic progress endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.topic_progress import list_topic_progress, record_video_complete
from gamify.db.students_repository import StudentNotFoundError
from gamify.web.schemas import (
    TopicProgressResponse,
    VideoCompleteRequest,
    VideoCompleteResponse,
    XPAwardResponse,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("/{student_id}", response_model=list[TopicProgressResponse])
async def list_progress(student_id: str) -> list[TopicProgressResponse]:
    """All topic progress rows of a student, most complete first."""
    try:
        rows = list_topic_progress(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [TopicProgressResponse(**p.to_dict()) for p in rows]


@router.post(
    "/{student_id}/topics/{topic_id}/video",
    response_model=VideoCompleteResponse,
)
async def complete_video(
    student_id: str, topic_id: str, request: VideoCompleteRequest
) -> VideoCompleteResponse:
    """Mark a topic video as watched and award XP."""
    try:
        progress, award = record_video_complete(student_id, topic_id, request.material_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return VideoCompleteResponse(
        progress=TopicProgressResponse(**progress.to_dict()),
        award=XPAwardResponse(**award.to_dict()),
    )
