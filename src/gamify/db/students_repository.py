"""Repository functions for students and mentor assignments.

Provides CRUD operations for the students and mentor_assignments tables.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Literal

import structlog

from gamify.db.database import get_db
from gamify.utils.time_utils import to_iso, utc_now

logger = structlog.get_logger(__name__)

Role = Literal["student", "mentor", "admin"]


class StudentNotFoundError(Exception):
    """Raised when a student_id does not exist."""

    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__(f"Student '{student_id}' not found")


class MentorAssignmentError(Exception):
    """Raised when a mentor assignment is not allowed."""

    pass


@dataclass
class StudentRecord:
    """Student record from database."""

    student_id: str
    name: str
    surname: str
    email: str
    role: str
    created_at: str
    updated_at: str

    @property
    def full_name(self) -> str:
        """Get full name (name + surname)."""
        if self.surname:
            return f"{self.name} {self.surname}"
        return self.name


def _row_to_record(row: sqlite3.Row) -> StudentRecord:
    return StudentRecord(
        student_id=row["student_id"],
        name=row["name"],
        surname=row["surname"],
        email=row["email"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _generate_next_student_id(conn: sqlite3.Connection) -> str:
    """Generate next available student ID (stu01, stu02, ...)."""
    rows = conn.execute(
        "SELECT student_id FROM students WHERE student_id LIKE 'stu%'"
    ).fetchall()
    existing_nums = []
    for row in rows:
        try:
            existing_nums.append(int(row["student_id"][3:]))
        except ValueError:
            pass
    next_num = max(existing_nums, default=0) + 1
    return f"stu{next_num:02d}"


def insert_student(
    name: str,
    surname: str = "",
    email: str = "",
    role: Role = "student",
) -> StudentRecord:
    """Insert a new student and return the stored record.

    Args:
        name: First name
        surname: Last name (optional)
        email: Email address (optional)
        role: 'student', 'mentor' or 'admin'

    Returns:
        The newly created StudentRecord
    """
    now = to_iso(utc_now())
    with get_db(immediate=True) as conn:
        student_id = _generate_next_student_id(conn)
        conn.execute(
            """
            INSERT INTO students (student_id, name, surname, email, role, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (student_id, name, surname, email, role, now, now),
        )

    logger.debug("students.inserted", student_id=student_id, role=role)
    return StudentRecord(
        student_id=student_id,
        name=name,
        surname=surname,
        email=email,
        role=role,
        created_at=now,
        updated_at=now,
    )


def get_student_by_id(student_id: str) -> StudentRecord | None:
    """Get student by ID.

    Returns:
        StudentRecord if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM students WHERE student_id = ?", (student_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_student_by_name(name: str) -> StudentRecord | None:
    """Get student by name (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM students WHERE lower(name) = lower(?)", (name,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_students(role: str | None = None) -> list[StudentRecord]:
    """Get all students, optionally filtered by role."""
    with get_db() as conn:
        if role is None:
            rows = conn.execute(
                "SELECT * FROM students ORDER BY student_id"
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM students WHERE role = ? ORDER BY student_id", (role,)
            ).fetchall()

    return [_row_to_record(row) for row in rows]


def require_student(conn: sqlite3.Connection, student_id: str) -> None:
    """Raise StudentNotFoundError unless student_id exists.

    Works on an open connection so callers can check inside their transaction.
    """
    row = conn.execute(
        "SELECT 1 FROM students WHERE student_id = ?", (student_id,)
    ).fetchone()
    if row is None:
        raise StudentNotFoundError(student_id)


def delete_student(student_id: str) -> bool:
    """Delete student by ID. Dependent rows cascade.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM students WHERE student_id = ?", (student_id,)
        )

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("students.deleted", student_id=student_id)

    return deleted


def assign_mentor(student_id: str, mentor_id: str) -> None:
    """Assign (or reassign) a mentor to a student.

    Raises:
        StudentNotFoundError: If either ID is unknown
        MentorAssignmentError: If mentor_id is not a mentor or student_id is not a student
    """
    with get_db(immediate=True) as conn:
        student = conn.execute(
            "SELECT role FROM students WHERE student_id = ?", (student_id,)
        ).fetchone()
        if student is None:
            raise StudentNotFoundError(student_id)
        mentor = conn.execute(
            "SELECT role FROM students WHERE student_id = ?", (mentor_id,)
        ).fetchone()
        if mentor is None:
            raise StudentNotFoundError(mentor_id)

        if mentor["role"] != "mentor":
            raise MentorAssignmentError(f"'{mentor_id}' is not a mentor")
        if student["role"] != "student":
            raise MentorAssignmentError(f"'{student_id}' is not a student")

        conn.execute(
            """
            INSERT INTO mentor_assignments (student_id, mentor_id, assigned_at)
            VALUES (?, ?, ?)
            ON CONFLICT(student_id) DO UPDATE SET
                mentor_id = excluded.mentor_id,
                assigned_at = excluded.assigned_at
            """,
            (student_id, mentor_id, to_iso(utc_now())),
        )

    logger.info("mentors.assigned", student_id=student_id, mentor_id=mentor_id)


def get_mentor_for_student(student_id: str) -> StudentRecord | None:
    """Get the mentor assigned to a student, if any."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT s.* FROM mentor_assignments m
            JOIN students s ON s.student_id = m.mentor_id
            WHERE m.student_id = ?
            """,
            (student_id,),
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_students_for_mentor(mentor_id: str) -> list[StudentRecord]:
    """Get all students assigned to a mentor."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT s.* FROM mentor_assignments m
            JOIN students s ON s.student_id = m.student_id
            WHERE m.mentor_id = ?
            ORDER BY s.student_id
            """,
            (mentor_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]
