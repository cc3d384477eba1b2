"""Test attempt repository.

Responsibilities:
- Append test scores to test_attempts with an increasing attempt_number
- Update topic progress with the latest score
- Award test_score XP

A refused award (cooldown) does not undo the recorded attempt: the score is
kept, only the XP is withheld.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from gamify.core.topic_progress import TopicProgress, apply_test_submit
from gamify.core.xp_award import AwardResult, award_xp_in_transaction
from gamify.core.xp_rules import XPEventType
from gamify.db.database import get_db
from gamify.db.students_repository import require_student
from gamify.utils.time_utils import to_iso, utc_now
from gamify.utils.validators import MAX_TEST_SCORE, validate_test_score

logger = structlog.get_logger(__name__)

PASSING_SCORE = 12


@dataclass
class TestAttempt:
    """A recorded test score."""

    __test__ = False  # not a pytest class

    attempt_id: str
    student_id: str
    topic_id: str
    test_material_id: str
    attempt_number: int
    score: int
    max_score: int
    created_at: str

    @property
    def passed(self) -> bool:
        return self.score >= PASSING_SCORE

    @property
    def result_label(self) -> str:
        return "PASSED" if self.passed else "FAILED"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "attempt_id": self.attempt_id,
            "student_id": self.student_id,
            "topic_id": self.topic_id,
            "test_material_id": self.test_material_id,
            "attempt_number": self.attempt_number,
            "score": self.score,
            "max_score": self.max_score,
            "created_at": self.created_at,
            "result": self.result_label,
        }


@dataclass
class SubmissionResult:
    """Result of a test score submission."""

    attempt: TestAttempt
    progress: TopicProgress
    award: AwardResult


def _next_attempt_number(
    conn: sqlite3.Connection, student_id: str, material_id: str
) -> int:
    row = conn.execute(
        """
        SELECT COALESCE(MAX(attempt_number), 0) AS last
        FROM test_attempts WHERE student_id = ? AND test_material_id = ?
        """,
        (student_id, material_id),
    ).fetchone()
    return row["last"] + 1


def submit_test_score(
    student_id: str,
    topic_id: str,
    material_id: str,
    score: int,
    now: datetime | None = None,
) -> SubmissionResult:
    """Record a test score and award XP for it.

    Args:
        student_id: Student submitting
        topic_id: Topic the test belongs to
        material_id: Test material identifier
        score: Score out of 20
        now: Submission time (defaults to current UTC time)

    Raises:
        InvalidScoreError: If score is outside 0..20
        StudentNotFoundError: If student_id does not exist
    """
    validate_test_score(score)
    now = now or utc_now()

    with get_db(immediate=True) as conn:
        require_student(conn, student_id)
        attempt = TestAttempt(
            attempt_id=uuid.uuid4().hex,
            student_id=student_id,
            topic_id=topic_id,
            test_material_id=material_id,
            attempt_number=_next_attempt_number(conn, student_id, material_id),
            score=score,
            max_score=MAX_TEST_SCORE,
            created_at=to_iso(now),
        )
        conn.execute(
            """
            INSERT INTO test_attempts (
                attempt_id, student_id, topic_id, test_material_id,
                attempt_number, score, max_score, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                attempt.attempt_id,
                student_id,
                topic_id,
                material_id,
                attempt.attempt_number,
                score,
                attempt.max_score,
                attempt.created_at,
            ),
        )

        progress = apply_test_submit(conn, student_id, topic_id, score, now)
        award = award_xp_in_transaction(
            conn,
            XPEventType.TEST_SCORE,
            material_id,
            student_id,
            topic_id=topic_id,
            score=score,
            now=now,
        )

    logger.info(
        "tests.submitted",
        student_id=student_id,
        material_id=material_id,
        attempt_number=attempt.attempt_number,
        score=score,
        xp=award.xp_earned,
    )
    return SubmissionResult(attempt=attempt, progress=progress, award=award)


def list_attempts(student_id: str, material_id: str | None = None) -> list[TestAttempt]:
    """Attempts of a student, newest first, optionally for one test.

    Raises:
        StudentNotFoundError: If student_id does not exist
    """
    query = "SELECT * FROM test_attempts WHERE student_id = ?"
    params: list[Any] = [student_id]
    if material_id is not None:
        query += " AND test_material_id = ?"
        params.append(material_id)
    query += " ORDER BY created_at DESC, attempt_number DESC"

    with get_db() as conn:
        require_student(conn, student_id)
        rows = conn.execute(query, params).fetchall()
    return [TestAttempt(**dict(row)) for row in rows]
