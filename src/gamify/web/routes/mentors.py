"""Mentor endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.leaderboard import get_leaderboard
from gamify.core.xp_award import get_level
from gamify.db.students_repository import get_student_by_id, get_students_for_mentor
from gamify.web.schemas import MentorStudentResponse

router = APIRouter(prefix="/api/mentors", tags=["mentors"])


@router.get("/{mentor_id}/students", response_model=list[MentorStudentResponse])
async def list_mentor_students(mentor_id: str) -> list[MentorStudentResponse]:
    """Students assigned to a mentor, with level and rank."""
    mentor = get_student_by_id(mentor_id)
    if mentor is None or mentor.role != "mentor":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Mentor '{mentor_id}' not found",
        )

    ranks = {entry.student_id: entry.rank for entry in get_leaderboard()}
    result = []
    for student in get_students_for_mentor(mentor_id):
        level = get_level(student.student_id)
        result.append(
            MentorStudentResponse(
                student_id=student.student_id,
                name=student.name,
                surname=student.surname,
                total_xp=level.total_points,
                current_level=level.current_level,
                rank=ranks.get(student.student_id),
            )
        )
    return result
