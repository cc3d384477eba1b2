"""Topic mastery classification.

One rule for every view:
- progress_percentage >= 100 -> MASTERED
- topic XP >= 180 -> MASTERED
- topic XP >= 120 -> GOOD
- otherwise -> NEEDS_WORK

Progress percentage weights: video 25, test 35, each revision 10 (max 100).
"""

from __future__ import annotations

from enum import Enum

MASTERED_XP = 180
GOOD_XP = 120

VIDEO_WEIGHT = 25
TEST_WEIGHT = 35
REVISION_WEIGHT = 10


class MasteryStatus(str, Enum):
    MASTERED = "MASTERED"
    GOOD = "GOOD"
    NEEDS_WORK = "NEEDS_WORK"


def classify_mastery(topic_xp: int, progress_percentage: int = 0) -> MasteryStatus:
    """Classify a topic from its cumulative XP and completion percentage."""
    if progress_percentage >= 100:
        return MasteryStatus.MASTERED
    if topic_xp >= MASTERED_XP:
        return MasteryStatus.MASTERED
    if topic_xp >= GOOD_XP:
        return MasteryStatus.GOOD
    return MasteryStatus.NEEDS_WORK


def calculate_progress_percentage(
    video_completed: bool,
    test_completed: bool,
    revisions_completed: list[bool],
) -> int:
    """Completion percentage of a topic.

    Args:
        video_completed: Video watched
        test_completed: Test submitted
        revisions_completed: Completion flag for revisions 1..4
    """
    progress = 0
    if video_completed:
        progress += VIDEO_WEIGHT
    if test_completed:
        progress += TEST_WEIGHT
    progress += REVISION_WEIGHT * sum(1 for done in revisions_completed if done)
    return min(progress, 100)
