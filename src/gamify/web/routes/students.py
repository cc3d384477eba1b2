"""Student endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.stats import get_student_stats
from gamify.db.students_repository import (
    MentorAssignmentError,
    StudentNotFoundError,
    StudentRecord,
    assign_mentor,
    delete_student as remove_student,
    get_all_students,
    get_mentor_for_student,
    get_student_by_id,
    get_student_by_name,
    insert_student,
)
from gamify.utils.validators import validate_email
from gamify.web.schemas import (
    MentorAssignRequest,
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentStatsResponse,
)

router = APIRouter(prefix="/api/students", tags=["students"])


def _to_response(student: StudentRecord) -> StudentResponse:
    return StudentResponse(
        student_id=student.student_id,
        name=student.name,
        surname=student.surname,
        email=student.email,
        role=student.role,
        created_at=student.created_at,
        updated_at=student.updated_at,
    )


def _not_found(student_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Student '{student_id}' not found",
    )


@router.get("", response_model=StudentListResponse)
async def list_students(role: str | None = None) -> StudentListResponse:
    """List all students, optionally filtered by role."""
    students = [_to_response(s) for s in get_all_students(role=role)]
    return StudentListResponse(students=students, count=len(students))


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: str) -> StudentResponse:
    """Get a specific student by ID."""
    student = get_student_by_id(student_id)

    if student is None:
        raise _not_found(student_id)

    return _to_response(student)


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(student_data: StudentCreate) -> StudentResponse:
    """Create a new student."""
    if student_data.email and not validate_email(student_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email format",
        )

    # Check for duplicate name
    if get_student_by_name(student_data.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Student with name '{student_data.name}' already exists",
        )

    student = insert_student(
        name=student_data.name,
        surname=student_data.surname,
        email=student_data.email,
        role=student_data.role,
    )
    return _to_response(student)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: str) -> None:
    """Delete a student by ID."""
    if not remove_student(student_id):
        raise _not_found(student_id)


@router.get("/{student_id}/stats", response_model=StudentStatsResponse)
async def student_stats(student_id: str) -> StudentStatsResponse:
    """Level, topic mastery counts and rank of a student."""
    try:
        stats = get_student_stats(student_id)
    except StudentNotFoundError:
        raise _not_found(student_id)

    return StudentStatsResponse(**stats.to_dict())


@router.get("/{student_id}/mentor", response_model=StudentResponse)
async def get_student_mentor(student_id: str) -> StudentResponse:
    """Get the mentor assigned to a student."""
    if get_student_by_id(student_id) is None:
        raise _not_found(student_id)

    mentor = get_mentor_for_student(student_id)
    if mentor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student '{student_id}' has no mentor assigned",
        )
    return _to_response(mentor)


@router.put("/{student_id}/mentor", response_model=StudentResponse)
async def set_student_mentor(student_id: str, request: MentorAssignRequest) -> StudentResponse:
    """Assign or replace the mentor of a student."""
    try:
        assign_mentor(student_id, request.mentor_id)
    except StudentNotFoundError as e:
        raise _not_found(e.student_id)
    except MentorAssignmentError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    mentor = get_mentor_for_student(student_id)
    return _to_response(mentor)
