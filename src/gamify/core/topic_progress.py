"""Per-student, per-topic progress.

Responsibilities:
- Create the topic_progress row on first contact
- Apply video completion, test submission and revision completion
- Keep total_xp, progress_percentage and status consistent on every write

Topic XP is separate from the student's global XP: it tracks how much of
one topic the student has worked through and drives the mastery status.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from gamify.core.mastery import (
    MasteryStatus,
    calculate_progress_percentage,
    classify_mastery,
)
from gamify.core.xp_award import AwardResult, award_xp_in_transaction
from gamify.core.xp_rules import FIXED_XP, XPEventType, xp_from_test_score
from gamify.db.database import get_db
from gamify.db.students_repository import require_student
from gamify.utils.time_utils import to_iso, utc_now
from gamify.utils.validators import validate_test_score

logger = structlog.get_logger(__name__)

REVISION_COUNT = 4


@dataclass
class TopicProgress:
    """Progress of one student on one topic."""

    progress_id: str
    student_id: str
    topic_id: str
    video_xp: int = 0
    test_xp: int = 0
    revision_xp: int = 0
    total_xp: int = 0
    video_completed: bool = False
    test_score: int = 0
    test_completed: bool = False
    revisions_completed: list[bool] = field(default_factory=lambda: [False] * REVISION_COUNT)
    revision_dates: list[str | None] = field(default_factory=lambda: [None] * REVISION_COUNT)
    status: MasteryStatus = MasteryStatus.NEEDS_WORK
    progress_percentage: int = 0
    started_at: str = ""
    last_updated: str = ""

    def recalculate(self) -> None:
        """Recompute derived fields after a change."""
        self.total_xp = self.video_xp + self.test_xp + self.revision_xp
        self.progress_percentage = calculate_progress_percentage(
            self.video_completed, self.test_completed, self.revisions_completed
        )
        self.status = classify_mastery(self.total_xp, self.progress_percentage)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "progress_id": self.progress_id,
            "student_id": self.student_id,
            "topic_id": self.topic_id,
            "video_xp": self.video_xp,
            "test_xp": self.test_xp,
            "revision_xp": self.revision_xp,
            "total_xp": self.total_xp,
            "video_completed": self.video_completed,
            "test_score": self.test_score,
            "test_completed": self.test_completed,
            "revisions_completed": list(self.revisions_completed),
            "revision_dates": list(self.revision_dates),
            "status": self.status.value,
            "progress_percentage": self.progress_percentage,
            "started_at": self.started_at,
            "last_updated": self.last_updated,
        }


def _row_to_progress(row: sqlite3.Row) -> TopicProgress:
    return TopicProgress(
        progress_id=row["progress_id"],
        student_id=row["student_id"],
        topic_id=row["topic_id"],
        video_xp=row["video_xp"],
        test_xp=row["test_xp"],
        revision_xp=row["revision_xp"],
        total_xp=row["total_xp"],
        video_completed=bool(row["video_completed"]),
        test_score=row["test_score"],
        test_completed=bool(row["test_completed"]),
        revisions_completed=[
            bool(row[f"revision_{i}_completed"]) for i in range(1, REVISION_COUNT + 1)
        ],
        revision_dates=[row[f"revision_{i}_date"] for i in range(1, REVISION_COUNT + 1)],
        status=MasteryStatus(row["status"]),
        progress_percentage=row["progress_percentage"],
        started_at=row["started_at"],
        last_updated=row["last_updated"],
    )


def _save(conn: sqlite3.Connection, progress: TopicProgress) -> None:
    revision_columns = {}
    for i in range(REVISION_COUNT):
        revision_columns[f"revision_{i + 1}_completed"] = int(progress.revisions_completed[i])
        revision_columns[f"revision_{i + 1}_date"] = progress.revision_dates[i]

    assignments = ", ".join(f"{col} = :{col}" for col in revision_columns)
    conn.execute(
        f"""
        UPDATE topic_progress SET
            video_xp = :video_xp,
            test_xp = :test_xp,
            revision_xp = :revision_xp,
            total_xp = :total_xp,
            video_completed = :video_completed,
            test_score = :test_score,
            test_completed = :test_completed,
            status = :status,
            progress_percentage = :progress_percentage,
            last_updated = :last_updated,
            {assignments}
        WHERE progress_id = :progress_id
        """,
        {
            "video_xp": progress.video_xp,
            "test_xp": progress.test_xp,
            "revision_xp": progress.revision_xp,
            "total_xp": progress.total_xp,
            "video_completed": int(progress.video_completed),
            "test_score": progress.test_score,
            "test_completed": int(progress.test_completed),
            "status": progress.status.value,
            "progress_percentage": progress.progress_percentage,
            "last_updated": progress.last_updated,
            "progress_id": progress.progress_id,
            **revision_columns,
        },
    )


def ensure_progress_in_transaction(
    conn: sqlite3.Connection,
    student_id: str,
    topic_id: str,
    now: datetime | None = None,
) -> TopicProgress:
    """Return the progress row for (student, topic), creating it if missing."""
    row = conn.execute(
        "SELECT * FROM topic_progress WHERE student_id = ? AND topic_id = ?",
        (student_id, topic_id),
    ).fetchone()
    if row is not None:
        return _row_to_progress(row)

    require_student(conn, student_id)
    now_iso = to_iso(now or utc_now())
    progress = TopicProgress(
        progress_id=uuid.uuid4().hex,
        student_id=student_id,
        topic_id=topic_id,
        started_at=now_iso,
        last_updated=now_iso,
    )
    conn.execute(
        """
        INSERT INTO topic_progress (progress_id, student_id, topic_id, status, started_at, last_updated)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (progress.progress_id, student_id, topic_id, progress.status.value, now_iso, now_iso),
    )
    logger.debug("topic_progress.created", student_id=student_id, topic_id=topic_id)
    return progress


def ensure_topic_progress(student_id: str, topic_id: str) -> TopicProgress:
    """Return the progress row for (student, topic), creating it if missing.

    Raises:
        StudentNotFoundError: If student_id does not exist
    """
    with get_db() as conn:
        return ensure_progress_in_transaction(conn, student_id, topic_id)


def touch_progress(
    conn: sqlite3.Connection, student_id: str, topic_id: str, now: datetime
) -> None:
    """Bump last_updated if a progress row exists."""
    conn.execute(
        "UPDATE topic_progress SET last_updated = ? WHERE student_id = ? AND topic_id = ?",
        (to_iso(now), student_id, topic_id),
    )


def apply_video_complete(
    conn: sqlite3.Connection,
    student_id: str,
    topic_id: str,
    now: datetime,
) -> tuple[TopicProgress, bool]:
    """Mark the topic video as watched.

    Returns:
        (progress, changed). changed is False if it was already completed.
    """
    progress = ensure_progress_in_transaction(conn, student_id, topic_id, now)
    if progress.video_completed:
        return progress, False

    progress.video_xp += FIXED_XP[XPEventType.VIDEO_WATCH]
    progress.video_completed = True
    progress.last_updated = to_iso(now)
    progress.recalculate()
    _save(conn, progress)
    return progress, True


def apply_test_submit(
    conn: sqlite3.Connection,
    student_id: str,
    topic_id: str,
    score: int,
    now: datetime,
) -> TopicProgress:
    """Record a test score. Test XP is replaced by the latest score's tier."""
    validate_test_score(score)
    progress = ensure_progress_in_transaction(conn, student_id, topic_id, now)

    progress.test_xp = xp_from_test_score(score)
    progress.test_score = score
    progress.test_completed = True
    progress.last_updated = to_iso(now)
    progress.recalculate()
    _save(conn, progress)
    return progress


def apply_revision_complete(
    conn: sqlite3.Connection,
    student_id: str,
    topic_id: str,
    revision_number: int,
    now: datetime,
) -> TopicProgress:
    """Mark revision 1..4 of a topic done. Repeats leave the row unchanged."""
    if not 1 <= revision_number <= REVISION_COUNT:
        raise ValueError(f"Revision number must be 1..{REVISION_COUNT}, got {revision_number}")

    progress = ensure_progress_in_transaction(conn, student_id, topic_id, now)
    index = revision_number - 1
    if progress.revisions_completed[index]:
        return progress

    now_iso = to_iso(now)
    progress.revisions_completed[index] = True
    progress.revision_dates[index] = now_iso
    progress.revision_xp += FIXED_XP[XPEventType.REVISION_COMPLETE]
    progress.last_updated = now_iso
    progress.recalculate()
    _save(conn, progress)
    return progress


def record_video_complete(
    student_id: str,
    topic_id: str,
    material_id: str,
    now: datetime | None = None,
) -> tuple[TopicProgress, AwardResult]:
    """Student finished a topic video.

    The first completion earns video_watch XP; later ones count as rewatches.
    """
    now = now or utc_now()
    with get_db(immediate=True) as conn:
        progress, first_time = apply_video_complete(conn, student_id, topic_id, now)
        event = XPEventType.VIDEO_WATCH if first_time else XPEventType.VIDEO_REWATCH
        award = award_xp_in_transaction(
            conn, event, material_id, student_id, topic_id=topic_id, now=now
        )
    return progress, award


def get_topic_progress(student_id: str, topic_id: str) -> TopicProgress | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM topic_progress WHERE student_id = ? AND topic_id = ?",
            (student_id, topic_id),
        ).fetchone()
    if row is None:
        return None
    return _row_to_progress(row)


def list_topic_progress(student_id: str) -> list[TopicProgress]:
    """All topic progress rows of a student, most complete first."""
    with get_db() as conn:
        require_student(conn, student_id)
        rows = conn.execute(
            """
            SELECT * FROM topic_progress WHERE student_id = ?
            ORDER BY progress_percentage DESC, total_xp DESC, topic_id
            """,
            (student_id,),
        ).fetchall()
    return [_row_to_progress(row) for row in rows]


def count_statuses(progress_rows: list[TopicProgress]) -> dict[str, int]:
    """Count topics per mastery status (every status present, zero allowed)."""
    counts = Counter(p.status.value for p in progress_rows)
    return {status.value: counts.get(status.value, 0) for status in MasteryStatus}
