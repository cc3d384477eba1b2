"""Tests for per-topic progress tracking."""

from datetime import timedelta

import pytest

from gamify.core.mastery import MasteryStatus
from gamify.core.topic_progress import (
    apply_revision_complete,
    count_statuses,
    ensure_topic_progress,
    get_topic_progress,
    list_topic_progress,
    record_video_complete,
)
from gamify.core.xp_award import get_level
from gamify.db.database import get_db
from gamify.db.students_repository import StudentNotFoundError


class TestEnsureProgress:
    """Tests for ensure_topic_progress."""

    def test_creates_empty_row(self, student):
        progress = ensure_topic_progress(student.student_id, "top1")

        assert progress.total_xp == 0
        assert progress.progress_percentage == 0
        assert progress.status == MasteryStatus.NEEDS_WORK
        assert progress.revisions_completed == [False] * 4

    def test_returns_existing_row(self, student):
        first = ensure_topic_progress(student.student_id, "top1")
        second = ensure_topic_progress(student.student_id, "top1")
        assert first.progress_id == second.progress_id

    def test_unknown_student(self, db):
        with pytest.raises(StudentNotFoundError):
            ensure_topic_progress("stu99", "top1")


class TestVideoComplete:
    """Tests for record_video_complete."""

    def test_first_completion(self, student, now):
        """First completion adds video XP to the topic and awards video_watch."""
        progress, award = record_video_complete(student.student_id, "top1", "vid1", now=now)

        assert progress.video_completed
        assert progress.video_xp == 15
        assert progress.progress_percentage == 25
        assert award.success
        assert award.xp_earned == 15

    def test_rewatch(self, student, now):
        """Later completions earn video_rewatch and leave topic progress alone."""
        record_video_complete(student.student_id, "top1", "vid1", now=now)
        progress, award = record_video_complete(
            student.student_id, "top1", "vid1", now=now + timedelta(minutes=10)
        )

        assert progress.video_xp == 15
        assert award.xp_earned == 5
        assert get_level(student.student_id).total_points == 20

    def test_progress_persisted(self, student, now):
        record_video_complete(student.student_id, "top1", "vid1", now=now)
        stored = get_topic_progress(student.student_id, "top1")

        assert stored is not None
        assert stored.video_completed
        assert stored.total_xp == 15


class TestRevisionComplete:
    """Tests for apply_revision_complete."""

    def test_marks_revision(self, student, now):
        with get_db() as conn:
            progress = apply_revision_complete(conn, student.student_id, "top1", 2, now)

        assert progress.revisions_completed == [False, True, False, False]
        assert progress.revision_dates[1] is not None
        assert progress.revision_xp == 10
        assert progress.progress_percentage == 10

    def test_repeat_is_noop(self, student, now):
        with get_db() as conn:
            apply_revision_complete(conn, student.student_id, "top1", 1, now)
            progress = apply_revision_complete(
                conn, student.student_id, "top1", 1, now + timedelta(days=1)
            )

        assert progress.revision_xp == 10

    @pytest.mark.parametrize("number", [0, 5])
    def test_out_of_range(self, student, now, number):
        with get_db() as conn:
            with pytest.raises(ValueError):
                apply_revision_complete(conn, student.student_id, "top1", number, now)


class TestListProgress:
    def test_most_complete_first(self, student, now):
        ensure_topic_progress(student.student_id, "top1")
        record_video_complete(student.student_id, "top2", "vid2", now=now)

        rows = list_topic_progress(student.student_id)
        assert [p.topic_id for p in rows] == ["top2", "top1"]

    def test_count_statuses(self, student):
        ensure_topic_progress(student.student_id, "top1")
        ensure_topic_progress(student.student_id, "top2")

        counts = count_statuses(list_topic_progress(student.student_id))
        assert counts == {"MASTERED": 0, "GOOD": 0, "NEEDS_WORK": 2}
