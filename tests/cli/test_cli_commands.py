"""Tests for gamify CLI commands."""

import pytest
from typer.testing import CliRunner

from gamify.cli.commands import app
from gamify.db.students_repository import get_all_students

runner = CliRunner()


@pytest.fixture
def cli_env(db):
    """Environment pointing the CLI at the isolated database."""
    return {"GAMIFY_DB_PATH": str(db)}


def _invoke(args, env):
    return runner.invoke(app, args, env=env)


class TestStudentCommands:
    """Tests for add-student and students."""

    def test_add_student(self, cli_env):
        result = _invoke(["add-student", "Ana", "--surname", "Rao"], cli_env)

        assert result.exit_code == 0
        assert "stu01" in result.stdout
        assert [s.full_name for s in get_all_students()] == ["Ana Rao"]

    def test_add_duplicate_fails(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["add-student", "Ana"], cli_env)
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_add_bad_email_fails(self, cli_env):
        result = _invoke(["add-student", "Ana", "--email", "nope"], cli_env)
        assert result.exit_code == 1

    def test_add_unknown_role_fails(self, cli_env):
        result = _invoke(["add-student", "Ana", "--role", "owner"], cli_env)
        assert result.exit_code == 1

    def test_list_empty(self, cli_env):
        result = _invoke(["students"], cli_env)
        assert result.exit_code == 0
        assert "No students registered" in result.stdout

    def test_list(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["students"], cli_env)
        assert "Ana" in result.stdout


class TestXPCommands:
    """Tests for award, level and leaderboard."""

    def test_award_and_level(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)

        result = _invoke(["award", "stu01", "video_watch", "v1"], cli_env)
        assert result.exit_code == 0
        assert "+15 XP" in result.stdout

        result = _invoke(["level", "stu01"], cli_env)
        assert result.exit_code == 0
        assert "Level 1" in result.stdout
        assert "985 XP to level 2" in result.stdout

    def test_award_cooldown(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        _invoke(["award", "stu01", "note_read", "n1"], cli_env)
        result = _invoke(["award", "stu01", "note_read", "n1"], cli_env)

        assert result.exit_code == 0
        assert "cooldown" in result.stdout.lower()

    def test_award_unknown_student(self, cli_env):
        result = _invoke(["award", "stu99", "note_read", "n1"], cli_env)
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_award_low_score(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["award", "stu01", "test_score", "t1", "--score", "2"], cli_env)
        assert "No XP earned" in result.stdout

    def test_leaderboard(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        _invoke(["award", "stu01", "note_read", "n1"], cli_env)

        result = _invoke(["leaderboard"], cli_env)
        assert result.exit_code == 0
        assert "Ana" in result.stdout

    def test_leaderboard_empty(self, cli_env):
        result = _invoke(["leaderboard"], cli_env)
        assert "No students ranked yet" in result.stdout


class TestStudyCommands:
    """Tests for submit-test, open, dojo and complete-revision."""

    def test_submit_test(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["submit-test", "stu01", "top1", "t1", "14"], cli_env)

        assert result.exit_code == 0
        assert "Attempt #1" in result.stdout
        assert "PASSED" in result.stdout

    def test_submit_test_bad_score(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["submit-test", "stu01", "top1", "t1", "25"], cli_env)
        assert result.exit_code == 1

    def test_open_and_dojo(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)

        result = _invoke(["open", "stu01", "top1", "pdf"], cli_env)
        assert result.exit_code == 0
        assert "Revision 1 scheduled" in result.stdout

        result = _invoke(["open", "stu01", "top1", "pdf"], cli_env)
        assert "Already scheduled" in result.stdout

        result = _invoke(["dojo", "stu01"], cli_env)
        assert result.exit_code == 0
        assert "Upcoming (1)" in result.stdout

    def test_open_bad_type(self, cli_env):
        _invoke(["add-student", "Ana"], cli_env)
        result = _invoke(["open", "stu01", "top1", "podcast"], cli_env)
        assert result.exit_code == 1

    def test_complete_revision(self, cli_env):
        from gamify.core.revisions import fetch_all_revisions

        _invoke(["add-student", "Ana"], cli_env)
        _invoke(["open", "stu01", "top1", "pdf"], cli_env)
        revision_id = fetch_all_revisions("stu01")[0].revision_id

        result = _invoke(["complete-revision", "stu01", revision_id], cli_env)
        assert result.exit_code == 0
        assert "Revision 1 completed" in result.stdout
        assert "+10 XP" in result.stdout

        result = _invoke(["complete-revision", "stu01", revision_id], cli_env)
        assert result.exit_code == 1
        assert "already completed" in result.stdout

    def test_init_db(self, cli_env):
        result = _invoke(["init-db"], cli_env)
        assert result.exit_code == 0
        assert "Database ready" in result.stdout
