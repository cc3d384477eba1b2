"""Shared fixtures: isolated database, config and fixed clock."""

from datetime import datetime, timezone

import pytest

from gamify.config.app_config import clear_config_cache
from gamify.db.database import init_db
from gamify.db.students_repository import insert_student


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh database under tmp_path with default configuration."""
    # No data/config in tmp_path, so defaults apply
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GAMIFY_DB_PATH", raising=False)
    clear_config_cache()

    db_path = tmp_path / "db" / "test.db"
    init_db(db_path)
    yield db_path

    clear_config_cache()


@pytest.fixture
def student(db):
    """A registered student."""
    return insert_student(name="Ana", surname="Rao", email="ana@example.com")


@pytest.fixture
def now():
    """Fixed reference time: 2026-03-10 09:00 UTC."""
    return datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
