"""Student summary for profile and mentor views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gamify.core.leaderboard import get_student_rank
from gamify.core.topic_progress import count_statuses, list_topic_progress
from gamify.core.xp_award import get_level
from gamify.core.xp_rules import LevelBar


@dataclass
class StudentStats:
    """Level, topic mastery counts and leaderboard rank of a student."""

    student_id: str
    level: LevelBar
    topics_started: int
    topic_statuses: dict[str, int] = field(default_factory=dict)
    rank: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "total_xp": self.level.total_points,
            "current_level": self.level.current_level,
            "xp_to_next": self.level.xp_to_next,
            "topics_started": self.topics_started,
            "topic_statuses": dict(self.topic_statuses),
            "rank": self.rank,
        }


def get_student_stats(student_id: str) -> StudentStats:
    """Build the summary for one student.

    Raises:
        StudentNotFoundError: If student_id does not exist
    """
    level = get_level(student_id)
    progress = list_topic_progress(student_id)
    rank_entry = get_student_rank(student_id)

    return StudentStats(
        student_id=student_id,
        level=level,
        topics_started=len(progress),
        topic_statuses=count_statuses(progress),
        rank=rank_entry.rank if rank_entry else None,
    )
