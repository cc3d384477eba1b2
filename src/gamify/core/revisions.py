"""Spaced-repetition revision scheduling (the "dojo").

Opening a material for the first time schedules revision 1 one day later.
Completing revision N schedules revision N+1 after the next interval, up to
revision 4:

    revision:  1   2   3   4
    due after: 1d  7d  14d 30d

Each completed revision earns revision_complete XP and marks the matching
revision flag on the topic progress row.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

import structlog

from gamify.core.topic_progress import (
    TopicProgress,
    apply_revision_complete,
    touch_progress,
)
from gamify.core.xp_award import AwardResult, award_xp_in_transaction
from gamify.core.xp_rules import XPEventType
from gamify.db.database import get_db
from gamify.db.students_repository import require_student
from gamify.utils.time_utils import add_days, ensure_utc, parse_iso, to_iso, utc_now

logger = structlog.get_logger(__name__)

MaterialType = Literal["pdf", "video", "test"]

MATERIAL_TYPES: tuple[str, ...] = ("pdf", "video", "test")

# Days until revision N is due, indexed by N - 1
REVISION_INTERVALS = [1, 7, 14, 30]

MAX_REVISION = len(REVISION_INTERVALS)


class RevisionNotFoundError(Exception):
    """Raised when a revision does not exist for the given student."""

    def __init__(self, revision_id: str):
        self.revision_id = revision_id
        super().__init__(f"Revision '{revision_id}' not found")


class RevisionAlreadyCompletedError(Exception):
    """Raised when completing a revision twice."""

    def __init__(self, revision_id: str):
        self.revision_id = revision_id
        super().__init__(f"Revision '{revision_id}' is already completed")


@dataclass
class RevisionEntry:
    """Row of the revision_schedule table."""

    revision_id: str
    student_id: str
    topic_id: str
    material_type: str
    revision_number: int
    first_opened_at: str
    last_opened_at: str
    due_date: str
    completed_date: str | None
    is_completed: bool
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "revision_id": self.revision_id,
            "student_id": self.student_id,
            "topic_id": self.topic_id,
            "material_type": self.material_type,
            "revision_number": self.revision_number,
            "first_opened_at": self.first_opened_at,
            "last_opened_at": self.last_opened_at,
            "due_date": self.due_date,
            "completed_date": self.completed_date,
            "is_completed": self.is_completed,
            "created_at": self.created_at,
        }


@dataclass
class DojoTabs:
    """Pending revisions split by urgency."""

    overdue: list[RevisionEntry] = field(default_factory=list)
    today: list[RevisionEntry] = field(default_factory=list)
    upcoming: list[RevisionEntry] = field(default_factory=list)


@dataclass
class RevisionCompletion:
    """Result of completing a revision."""

    revision: RevisionEntry
    next_revision: RevisionEntry | None
    progress: TopicProgress
    award: AwardResult


def _row_to_entry(row: sqlite3.Row) -> RevisionEntry:
    return RevisionEntry(
        revision_id=row["revision_id"],
        student_id=row["student_id"],
        topic_id=row["topic_id"],
        material_type=row["material_type"],
        revision_number=row["revision_number"],
        first_opened_at=row["first_opened_at"],
        last_opened_at=row["last_opened_at"],
        due_date=row["due_date"],
        completed_date=row["completed_date"],
        is_completed=bool(row["is_completed"]),
        created_at=row["created_at"],
    )


def _insert_revision(
    conn: sqlite3.Connection,
    student_id: str,
    topic_id: str,
    material_type: str,
    revision_number: int,
    first_opened_at: str,
    now: datetime,
) -> RevisionEntry:
    now_iso = to_iso(now)
    entry = RevisionEntry(
        revision_id=uuid.uuid4().hex,
        student_id=student_id,
        topic_id=topic_id,
        material_type=material_type,
        revision_number=revision_number,
        first_opened_at=first_opened_at,
        last_opened_at=now_iso,
        due_date=to_iso(add_days(now, REVISION_INTERVALS[revision_number - 1])),
        completed_date=None,
        is_completed=False,
        created_at=now_iso,
    )
    conn.execute(
        """
        INSERT INTO revision_schedule (
            revision_id, student_id, topic_id, material_type, revision_number,
            first_opened_at, last_opened_at, due_date, is_completed, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
        """,
        (
            entry.revision_id,
            student_id,
            topic_id,
            material_type,
            revision_number,
            entry.first_opened_at,
            entry.last_opened_at,
            entry.due_date,
            entry.created_at,
        ),
    )
    logger.debug(
        "revisions.scheduled",
        student_id=student_id,
        topic_id=topic_id,
        material_type=material_type,
        revision_number=revision_number,
        due_date=entry.due_date,
    )
    return entry


def _latest_revision(
    conn: sqlite3.Connection, student_id: str, topic_id: str, material_type: str
) -> RevisionEntry | None:
    row = conn.execute(
        """
        SELECT * FROM revision_schedule
        WHERE student_id = ? AND topic_id = ? AND material_type = ?
        ORDER BY revision_number DESC LIMIT 1
        """,
        (student_id, topic_id, material_type),
    ).fetchone()
    if row is None:
        return None
    return _row_to_entry(row)


def _check_material_type(material_type: str) -> None:
    if material_type not in MATERIAL_TYPES:
        raise ValueError(f"Unknown material type '{material_type}'")


def open_material(
    student_id: str,
    topic_id: str,
    material_type: MaterialType,
    now: datetime | None = None,
) -> tuple[RevisionEntry, bool]:
    """Register that a student opened a material.

    First open schedules revision 1; later opens only refresh last_opened_at
    on the latest revision row.

    Returns:
        (revision entry, created)

    Raises:
        StudentNotFoundError: If student_id does not exist
        ValueError: If material_type is not pdf, video or test
    """
    _check_material_type(material_type)
    now = now or utc_now()

    with get_db(immediate=True) as conn:
        require_student(conn, student_id)
        existing = _latest_revision(conn, student_id, topic_id, material_type)

        if existing is not None:
            existing.last_opened_at = to_iso(now)
            conn.execute(
                "UPDATE revision_schedule SET last_opened_at = ? WHERE revision_id = ?",
                (existing.last_opened_at, existing.revision_id),
            )
            touch_progress(conn, student_id, topic_id, now)
            return existing, False

        entry = _insert_revision(
            conn, student_id, topic_id, material_type, 1, to_iso(now), now
        )
        touch_progress(conn, student_id, topic_id, now)

    logger.info(
        "revisions.material_opened",
        student_id=student_id,
        topic_id=topic_id,
        material_type=material_type,
    )
    return entry, True


def start_topic(
    student_id: str,
    topic_id: str,
    material_types: list[str] | None = None,
    now: datetime | None = None,
) -> list[RevisionEntry]:
    """Schedule revision 1 for every material type that has none yet.

    Returns:
        Newly created entries (empty if the topic was already started)
    """
    types = material_types or list(MATERIAL_TYPES)
    for material_type in types:
        _check_material_type(material_type)
    now = now or utc_now()

    created: list[RevisionEntry] = []
    with get_db(immediate=True) as conn:
        require_student(conn, student_id)
        for material_type in types:
            if _latest_revision(conn, student_id, topic_id, material_type) is not None:
                continue
            created.append(
                _insert_revision(
                    conn, student_id, topic_id, material_type, 1, to_iso(now), now
                )
            )
    return created


def complete_revision(
    revision_id: str,
    student_id: str,
    now: datetime | None = None,
) -> RevisionCompletion:
    """Complete a revision, schedule the next one and award XP.

    Raises:
        RevisionNotFoundError: If the revision does not exist or belongs to another student
        RevisionAlreadyCompletedError: If it was already completed
    """
    now = now or utc_now()
    now_iso = to_iso(now)

    with get_db(immediate=True) as conn:
        row = conn.execute(
            "SELECT * FROM revision_schedule WHERE revision_id = ?", (revision_id,)
        ).fetchone()
        if row is None or row["student_id"] != student_id:
            raise RevisionNotFoundError(revision_id)

        revision = _row_to_entry(row)
        if revision.is_completed:
            raise RevisionAlreadyCompletedError(revision_id)

        conn.execute(
            "UPDATE revision_schedule SET is_completed = 1, completed_date = ? WHERE revision_id = ?",
            (now_iso, revision_id),
        )
        revision.is_completed = True
        revision.completed_date = now_iso

        next_revision = None
        if revision.revision_number < MAX_REVISION:
            next_revision = _insert_revision(
                conn,
                student_id,
                revision.topic_id,
                revision.material_type,
                revision.revision_number + 1,
                revision.first_opened_at,
                now,
            )

        progress = apply_revision_complete(
            conn, student_id, revision.topic_id, revision.revision_number, now
        )
        award = award_xp_in_transaction(
            conn,
            XPEventType.REVISION_COMPLETE,
            revision_id,
            student_id,
            topic_id=revision.topic_id,
            now=now,
        )

    logger.info(
        "revisions.completed",
        student_id=student_id,
        revision_id=revision_id,
        revision_number=revision.revision_number,
        next_scheduled=next_revision is not None,
    )
    return RevisionCompletion(
        revision=revision,
        next_revision=next_revision,
        progress=progress,
        award=award,
    )


def classify_due(due_date: str, now: datetime) -> str:
    """Bucket a pending due date: 'overdue', 'today' or 'upcoming'.

    Overdue wins over today: a revision due earlier today is overdue.
    """
    now = ensure_utc(now)
    due = parse_iso(due_date)
    if due < now:
        return "overdue"
    if due.date() == now.date():
        return "today"
    return "upcoming"


def fetch_dojo_tabs(student_id: str, now: datetime | None = None) -> DojoTabs:
    """Split a student's pending revisions into overdue, today and upcoming."""
    now = now or utc_now()
    tabs = DojoTabs()

    with get_db() as conn:
        require_student(conn, student_id)
        rows = conn.execute(
            """
            SELECT * FROM revision_schedule
            WHERE student_id = ? AND is_completed = 0
            ORDER BY due_date ASC
            """,
            (student_id,),
        ).fetchall()

    for row in rows:
        entry = _row_to_entry(row)
        getattr(tabs, classify_due(entry.due_date, now)).append(entry)

    return tabs


def fetch_all_revisions(student_id: str) -> list[RevisionEntry]:
    """All revisions of a student, completed or not, by due date."""
    with get_db() as conn:
        require_student(conn, student_id)
        rows = conn.execute(
            "SELECT * FROM revision_schedule WHERE student_id = ? ORDER BY due_date ASC",
            (student_id,),
        ).fetchall()
    return [_row_to_entry(row) for row in rows]
