"""Leaderboard ranking by cumulative XP.

Only role='student' accounts are ranked. Ties go to whoever reached the total
first (earlier level_system.updated_at), then to the lower student_id.
Students who never earned XP are listed with 0 XP after everyone else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gamify.config.app_config import load_app_config
from gamify.core.xp_rules import calculate_level
from gamify.db.database import get_db


@dataclass
class LeaderboardEntry:
    rank: int
    student_id: str
    name: str
    total_xp: int
    level: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "student_id": self.student_id,
            "name": self.name,
            "total_xp": self.total_xp,
            "level": self.level,
        }


def get_leaderboard(limit: int | None = None) -> list[LeaderboardEntry]:
    """Ranked students, best first.

    Args:
        limit: Keep only the first N entries (None = all)
    """
    xp_per_level = load_app_config().xp.xp_per_level

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT s.student_id, s.name, s.surname,
                   COALESCE(l.total_xp, 0) AS total_xp
            FROM students s
            LEFT JOIN level_system l ON l.student_id = s.student_id
            WHERE s.role = 'student'
            ORDER BY total_xp DESC,
                     l.updated_at IS NULL,
                     l.updated_at ASC,
                     s.student_id ASC
            """
        ).fetchall()

    entries = []
    for position, row in enumerate(rows, start=1):
        name = f"{row['name']} {row['surname']}".strip()
        entries.append(
            LeaderboardEntry(
                rank=position,
                student_id=row["student_id"],
                name=name,
                total_xp=row["total_xp"],
                level=calculate_level(row["total_xp"], xp_per_level),
            )
        )

    if limit is not None:
        return entries[:limit]
    return entries


def get_student_rank(student_id: str) -> LeaderboardEntry | None:
    """Leaderboard entry of one student, or None if not ranked."""
    for entry in get_leaderboard():
        if entry.student_id == student_id:
            return entry
    return None
