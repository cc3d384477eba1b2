"""XP award table and level arithmetic.

Pure functions only; persistence lives in xp_award.

Rules:
- Fixed XP per action, except test_score which is tiered on a 0-20 score
- level = total_xp // xp_per_level + 1
- xp_to_next = level * xp_per_level - total_xp (never negative)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# XP needed per level
XP_PER_LEVEL = 1000


class XPEventType(str, Enum):
    """Student actions that earn XP."""

    NOTE_READ = "note_read"
    NOTE_REVISE = "note_revise"
    VIDEO_WATCH = "video_watch"
    VIDEO_REWATCH = "video_rewatch"
    TEST_SCORE = "test_score"
    REVISION_COMPLETE = "revision_complete"


FIXED_XP: dict[XPEventType, int] = {
    XPEventType.NOTE_READ: 10,
    XPEventType.NOTE_REVISE: 5,
    XPEventType.VIDEO_WATCH: 15,
    XPEventType.VIDEO_REWATCH: 5,
    XPEventType.REVISION_COMPLETE: 10,
}

# (minimum score, xp), checked top-down
TEST_SCORE_TIERS: list[tuple[int, int]] = [
    (16, 50),
    (11, 25),
    (7, 10),
]


@dataclass
class LevelBar:
    """Level summary shown next to the student's avatar."""

    total_points: int
    current_level: int
    xp_to_next: int
    next_level: int
    progress_percent: float


def xp_from_test_score(score: int) -> int:
    """XP for a test score out of 20. Below 7 earns nothing."""
    for minimum, xp in TEST_SCORE_TIERS:
        if score >= minimum:
            return xp
    return 0


def xp_for_event(event_type: XPEventType | str, score: int | None = None) -> int:
    """XP earned for one action.

    Args:
        event_type: Action performed
        score: Test score, only used for test_score (missing counts as 0)

    Returns:
        XP amount, possibly 0

    Raises:
        ValueError: If event_type is not a known action
    """
    event = XPEventType(event_type)
    if event is XPEventType.TEST_SCORE:
        return xp_from_test_score(score or 0)
    return FIXED_XP[event]


def calculate_level(total_xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    return total_xp // xp_per_level + 1


def calculate_xp_to_next(total_xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    next_threshold = calculate_level(total_xp, xp_per_level) * xp_per_level
    return max(0, next_threshold - total_xp)


def level_bar(total_xp: int, xp_per_level: int = XP_PER_LEVEL) -> LevelBar:
    """Build the level bar for a cumulative XP total."""
    level = calculate_level(total_xp, xp_per_level)
    into_level = total_xp - (level - 1) * xp_per_level
    return LevelBar(
        total_points=total_xp,
        current_level=level,
        xp_to_next=calculate_xp_to_next(total_xp, xp_per_level),
        next_level=level + 1,
        progress_percent=round(into_level * 100 / xp_per_level, 1),
    )
