"""Tests for app configuration loading and fallbacks."""

from pathlib import Path

from gamify.config.app_config import (
    AppConfig,
    CONFIG_FILE,
    clear_config_cache,
    load_app_config,
)


def _write_config(root: Path, text: str) -> None:
    path = root / CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        clear_config_cache()

        config = load_app_config()
        assert isinstance(config, AppConfig)
        assert config.xp.cooldown_seconds == 180
        assert config.xp.cooldown_ms == 180_000
        assert config.xp.xp_per_level == 1000
        assert config.api.port == 8000

    def test_reads_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _write_config(tmp_path, "xp:\n  cooldown_seconds: 60\napi:\n  port: 9000\n")
        clear_config_cache()

        config = load_app_config()
        assert config.xp.cooldown_seconds == 60
        assert config.xp.xp_per_level == 1000
        assert config.api.port == 9000

    def test_cached_until_reload(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        clear_config_cache()
        first = load_app_config()

        _write_config(tmp_path, "xp:\n  xp_per_level: 500\n")
        assert load_app_config() is first
        assert load_app_config(force_reload=True).xp.xp_per_level == 500
        clear_config_cache()

    def test_empty_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _write_config(tmp_path, "")
        clear_config_cache()

        assert load_app_config().xp.cooldown_seconds == 180
        clear_config_cache()


class TestDbPath:
    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("GAMIFY_DB_PATH", raising=False)
        assert AppConfig().db_path == Path("db/gamify.db")

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GAMIFY_DB_PATH", str(tmp_path / "x.db"))
        assert AppConfig().db_path == tmp_path / "x.db"


class TestConfiguredCooldown:
    def test_shorter_window_from_config(self, tmp_path, monkeypatch, now):
        """The award path reads the cooldown length from config."""
        from datetime import timedelta

        from gamify.core.xp_award import award_xp
        from gamify.db.database import init_db
        from gamify.db.students_repository import insert_student

        monkeypatch.chdir(tmp_path)
        _write_config(tmp_path, "xp:\n  cooldown_seconds: 10\n")
        clear_config_cache()
        init_db(tmp_path / "db" / "cfg.db")
        s = insert_student(name="Ana")

        award_xp("note_read", "n1", s.student_id, now=now)
        result = award_xp("note_read", "n1", s.student_id, now=now + timedelta(seconds=10))
        assert result.success
        clear_config_cache()
