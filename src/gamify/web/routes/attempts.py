"""Test attempt endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.test_attempts import list_attempts, submit_test_score
from gamify.db.students_repository import StudentNotFoundError
from gamify.web.schemas import (
    TestAttemptResponse,
    TestScoreRequest,
    TestSubmissionResponse,
    TopicProgressResponse,
    XPAwardResponse,
)

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.post(
    "/attempts",
    response_model=TestSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attempt(request: TestScoreRequest) -> TestSubmissionResponse:
    """Record a test score.

    The attempt is stored even when the XP cooldown withholds the award;
    check award.success in the response.
    """
    try:
        result = submit_test_score(
            request.student_id,
            request.topic_id,
            request.material_id,
            request.score,
        )
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return TestSubmissionResponse(
        attempt=TestAttemptResponse(**result.attempt.to_dict()),
        progress=TopicProgressResponse(**result.progress.to_dict()),
        award=XPAwardResponse(**result.award.to_dict()),
    )


@router.get("/attempts", response_model=list[TestAttemptResponse])
async def get_attempts(
    student_id: str, material_id: str | None = None
) -> list[TestAttemptResponse]:
    """Attempts of a student, newest first."""
    try:
        attempts = list_attempts(student_id, material_id=material_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [TestAttemptResponse(**a.to_dict()) for a in attempts]
