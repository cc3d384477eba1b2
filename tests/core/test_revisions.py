"""Tests for spaced-repetition revision scheduling."""

from datetime import timedelta

import pytest

from gamify.core.mastery import MasteryStatus
from gamify.core.revisions import (
    RevisionAlreadyCompletedError,
    RevisionNotFoundError,
    classify_due,
    complete_revision,
    fetch_all_revisions,
    fetch_dojo_tabs,
    open_material,
    start_topic,
)
from gamify.core.test_attempts import submit_test_score
from gamify.core.topic_progress import get_topic_progress, record_video_complete
from gamify.core.xp_award import get_level
from gamify.db.students_repository import StudentNotFoundError, insert_student
from gamify.utils.time_utils import parse_iso


class TestOpenMaterial:
    """Tests for open_material."""

    def test_first_open_schedules_revision_1(self, student, now):
        entry, created = open_material(student.student_id, "top1", "pdf", now=now)

        assert created
        assert entry.revision_number == 1
        assert parse_iso(entry.due_date) == now + timedelta(days=1)
        assert not entry.is_completed

    def test_reopen_only_refreshes(self, student, now):
        first, _ = open_material(student.student_id, "top1", "pdf", now=now)
        later = now + timedelta(hours=3)
        entry, created = open_material(student.student_id, "top1", "pdf", now=later)

        assert not created
        assert entry.revision_id == first.revision_id
        assert parse_iso(entry.last_opened_at) == later
        assert entry.due_date == first.due_date
        assert len(fetch_all_revisions(student.student_id)) == 1

    def test_material_types_independent(self, student, now):
        open_material(student.student_id, "top1", "pdf", now=now)
        _, created = open_material(student.student_id, "top1", "video", now=now)
        assert created

    def test_unknown_material_type(self, student, now):
        with pytest.raises(ValueError):
            open_material(student.student_id, "top1", "podcast", now=now)

    def test_unknown_student(self, db, now):
        with pytest.raises(StudentNotFoundError):
            open_material("stu99", "top1", "pdf", now=now)


class TestStartTopic:
    def test_schedules_every_type(self, student, now):
        created = start_topic(student.student_id, "top1", now=now)
        assert sorted(e.material_type for e in created) == ["pdf", "test", "video"]

    def test_skips_started_types(self, student, now):
        open_material(student.student_id, "top1", "pdf", now=now)
        created = start_topic(student.student_id, "top1", now=now)
        assert sorted(e.material_type for e in created) == ["test", "video"]


class TestCompleteRevision:
    """Tests for complete_revision."""

    def test_full_chain(self, student, now):
        """Revisions 1..4 are due 1, 7, 14 and 30 days after the previous step."""
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        moment = now
        for number, interval in [(2, 7), (3, 14), (4, 30)]:
            moment = parse_iso(entry.due_date)
            completion = complete_revision(entry.revision_id, student.student_id, now=moment)
            entry = completion.next_revision

            assert entry.revision_number == number
            assert parse_iso(entry.due_date) == moment + timedelta(days=interval)
            assert entry.first_opened_at == completion.revision.first_opened_at

        last = complete_revision(entry.revision_id, student.student_id, now=moment)
        assert last.next_revision is None
        assert len(fetch_all_revisions(student.student_id)) == 4

    def test_completion_awards_xp(self, student, now):
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        completion = complete_revision(entry.revision_id, student.student_id, now=now)

        assert completion.award.success
        assert completion.award.xp_earned == 10
        assert completion.revision.is_completed
        assert completion.revision.completed_date is not None
        assert get_level(student.student_id).total_points == 10

    def test_completion_updates_topic_progress(self, student, now):
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        completion = complete_revision(entry.revision_id, student.student_id, now=now)

        assert completion.progress.revisions_completed[0]
        assert completion.progress.revision_xp == 10
        assert get_topic_progress(student.student_id, "top1").progress_percentage == 10

    def test_consecutive_completions_not_blocked_by_cooldown(self, student, now):
        """Each revision is its own cooldown target."""
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        first = complete_revision(entry.revision_id, student.student_id, now=now)
        second = complete_revision(
            first.next_revision.revision_id, student.student_id, now=now + timedelta(seconds=1)
        )
        assert second.award.success

    def test_already_completed(self, student, now):
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        complete_revision(entry.revision_id, student.student_id, now=now)

        with pytest.raises(RevisionAlreadyCompletedError):
            complete_revision(entry.revision_id, student.student_id, now=now)

    def test_unknown_revision(self, student, now):
        with pytest.raises(RevisionNotFoundError):
            complete_revision("nope", student.student_id, now=now)

    def test_other_students_revision(self, student, now):
        other = insert_student(name="Ravi")
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)

        with pytest.raises(RevisionNotFoundError):
            complete_revision(entry.revision_id, other.student_id, now=now)

    def test_topic_mastered_when_everything_done(self, student, now):
        """Video, test and four revisions reach 100% and MASTERED."""
        record_video_complete(student.student_id, "top1", "vid1", now=now)
        submit_test_score(student.student_id, "top1", "test1", 20, now=now)
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        completion = None
        while entry is not None:
            completion = complete_revision(entry.revision_id, student.student_id, now=now)
            entry = completion.next_revision

        assert completion.progress.progress_percentage == 100
        assert completion.progress.status == MasteryStatus.MASTERED


class TestDojo:
    """Tests for classify_due and fetch_dojo_tabs."""

    def test_classify_due(self, now):
        assert classify_due((now - timedelta(hours=1)).isoformat(), now) == "overdue"
        assert classify_due((now + timedelta(hours=1)).isoformat(), now) == "today"
        assert classify_due((now + timedelta(days=1)).isoformat(), now) == "upcoming"

    def test_earlier_today_is_overdue(self, now):
        due = now.replace(hour=0, minute=30)
        assert classify_due(due.isoformat(), now) == "overdue"

    def test_naive_now_treated_as_utc(self, now):
        naive = now.replace(tzinfo=None)
        assert classify_due((now + timedelta(hours=2)).isoformat(), naive) == "today"

    def test_tabs(self, student, now):
        sid = student.student_id
        # Due two days ago
        open_material(sid, "top1", "pdf", now=now - timedelta(days=3))
        # Due later today
        open_material(sid, "top2", "pdf", now=now - timedelta(hours=18))
        # Due tomorrow
        open_material(sid, "top3", "pdf", now=now)

        tabs = fetch_dojo_tabs(sid, now=now)

        assert [e.topic_id for e in tabs.overdue] == ["top1"]
        assert [e.topic_id for e in tabs.today] == ["top2"]
        assert [e.topic_id for e in tabs.upcoming] == ["top3"]

    def test_completed_revisions_hidden(self, student, now):
        entry, _ = open_material(student.student_id, "top1", "pdf", now=now)
        complete_revision(entry.revision_id, student.student_id, now=now)

        tabs = fetch_dojo_tabs(student.student_id, now=now)
        pending = tabs.overdue + tabs.today + tabs.upcoming
        assert [e.revision_number for e in pending] == [2]
