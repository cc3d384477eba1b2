"""XP award module.

Responsibilities:
- Validate the action and score
- Enforce the cooldown guard
- Update the student's cumulative XP and level
- Append the award to the xp_events log

All of it runs in one SQLite transaction: either every table is written or
none is. Callers that already hold a transaction (revision completion, test
submission) pass their connection in.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from gamify.config.app_config import load_app_config
from gamify.core.cooldown import (
    COOLDOWN_MESSAGE,
    check_cooldown,
    cooldown_key,
    stamp_cooldown,
)
from gamify.core.xp_rules import (
    LevelBar,
    XPEventType,
    calculate_level,
    level_bar,
    xp_for_event,
)
from gamify.db.database import get_db
from gamify.db.students_repository import require_student
from gamify.utils.time_utils import to_iso, utc_now
from gamify.utils.validators import validate_test_score

logger = structlog.get_logger(__name__)


@dataclass
class AwardResult:
    """Result of an XP award request."""

    success: bool
    xp_earned: int
    new_total_xp: int
    old_level: int
    new_level: int
    leveled_up: bool
    message: str = ""
    cooldown_remaining_ms: int = 0
    event_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "xp_earned": self.xp_earned,
            "new_total_xp": self.new_total_xp,
            "old_level": self.old_level,
            "new_level": self.new_level,
            "leveled_up": self.leveled_up,
            "message": self.message,
            "cooldown_remaining_ms": self.cooldown_remaining_ms,
            "event_id": self.event_id,
        }


@dataclass
class XPEventRecord:
    """Row of the xp_events log."""

    event_id: str
    student_id: str
    topic_id: str
    material_id: str
    event_type: str
    xp: int
    created_at: str


def _load_totals(conn: sqlite3.Connection, student_id: str) -> tuple[int, int]:
    """Return (total_xp, current_level); a missing row means a fresh student."""
    row = conn.execute(
        "SELECT total_xp, current_level FROM level_system WHERE student_id = ?",
        (student_id,),
    ).fetchone()
    if row is None:
        return 0, 1
    return row["total_xp"], row["current_level"]


def award_xp_in_transaction(
    conn: sqlite3.Connection,
    event_type: XPEventType | str,
    material_id: str,
    student_id: str,
    topic_id: str = "",
    score: int | None = None,
    now: datetime | None = None,
) -> AwardResult:
    """Award XP using an open connection.

    Same contract as award_xp(); the caller commits or rolls back.
    """
    config = load_app_config()
    event = XPEventType(event_type)
    now = now or utc_now()

    if score is not None:
        validate_test_score(score)

    require_student(conn, student_id)
    old_total, old_level = _load_totals(conn, student_id)

    key = cooldown_key(event.value, material_id, student_id)
    cooldown = check_cooldown(conn, key, now, window_ms=config.xp.cooldown_ms)
    if not cooldown.allowed:
        logger.info(
            "xp.cooldown_refused",
            student_id=student_id,
            event_type=event.value,
            material_id=material_id,
            remaining_ms=cooldown.remaining_ms,
        )
        return AwardResult(
            success=False,
            xp_earned=0,
            new_total_xp=old_total,
            old_level=old_level,
            new_level=old_level,
            leveled_up=False,
            message=COOLDOWN_MESSAGE,
            cooldown_remaining_ms=cooldown.remaining_ms,
        )

    xp_earned = xp_for_event(event, score)
    if xp_earned == 0:
        return AwardResult(
            success=True,
            xp_earned=0,
            new_total_xp=old_total,
            old_level=old_level,
            new_level=old_level,
            leveled_up=False,
            message="No XP earned",
        )

    new_total = old_total + xp_earned
    new_level = calculate_level(new_total, config.xp.xp_per_level)
    now_iso = to_iso(now)

    conn.execute(
        """
        INSERT INTO level_system (student_id, total_xp, current_level, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(student_id) DO UPDATE SET
            total_xp = excluded.total_xp,
            current_level = excluded.current_level,
            updated_at = excluded.updated_at
        """,
        (student_id, new_total, new_level, now_iso),
    )

    event_id = uuid.uuid4().hex
    conn.execute(
        """
        INSERT INTO xp_events (event_id, student_id, topic_id, material_id, event_type, xp, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (event_id, student_id, topic_id, material_id, event.value, xp_earned, now_iso),
    )

    stamp_cooldown(conn, key, student_id, now)

    leveled_up = new_level > old_level
    logger.info(
        "xp.awarded",
        student_id=student_id,
        event_type=event.value,
        xp=xp_earned,
        total_xp=new_total,
        level=new_level,
        leveled_up=leveled_up,
    )

    return AwardResult(
        success=True,
        xp_earned=xp_earned,
        new_total_xp=new_total,
        old_level=old_level,
        new_level=new_level,
        leveled_up=leveled_up,
        message=f"+{xp_earned} XP",
        event_id=event_id,
    )


def award_xp(
    event_type: XPEventType | str,
    material_id: str,
    student_id: str,
    topic_id: str = "",
    score: int | None = None,
    now: datetime | None = None,
) -> AwardResult:
    """Award XP for a student action.

    Args:
        event_type: Action performed (see XPEventType)
        material_id: Material the action was performed on
        student_id: Student earning the XP
        topic_id: Topic the material belongs to (optional)
        score: Test score 0-20, checked whenever given, only counted for test_score
        now: Award time (defaults to current UTC time)

    Returns:
        AwardResult. success=False means the cooldown refused the award;
        success=True with xp_earned=0 means the action earns nothing.

    Raises:
        StudentNotFoundError: If student_id does not exist
        InvalidScoreError: If score is outside 0..20
        ValueError: If event_type is unknown
    """
    with get_db(immediate=True) as conn:
        return award_xp_in_transaction(
            conn,
            event_type,
            material_id,
            student_id,
            topic_id=topic_id,
            score=score,
            now=now,
        )


def get_level(student_id: str) -> LevelBar:
    """Get the level bar for a student.

    Level is recomputed from total XP rather than read from current_level.

    Raises:
        StudentNotFoundError: If student_id does not exist
    """
    config = load_app_config()
    with get_db() as conn:
        require_student(conn, student_id)
        total_xp, _ = _load_totals(conn, student_id)
    return level_bar(total_xp, config.xp.xp_per_level)


def list_xp_events(student_id: str, limit: int = 50) -> list[XPEventRecord]:
    """Get the most recent XP events for a student, newest first."""
    with get_db() as conn:
        require_student(conn, student_id)
        rows = conn.execute(
            """
            SELECT * FROM xp_events WHERE student_id = ?
            ORDER BY created_at DESC, rowid DESC LIMIT ?
            """,
            (student_id, limit),
        ).fetchall()
    return [XPEventRecord(**dict(row)) for row in rows]
