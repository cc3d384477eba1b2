"""SQLite database connection and schema management.

Provides connection management and schema initialization for the gamify backend.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/gamify.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/gamify.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Return the path of the active database."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db(immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Args:
        immediate: Take the write lock up front (BEGIN IMMEDIATE). Used by
            read-check-write sequences such as the XP award.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM students").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS students (
            student_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            surname TEXT NOT NULL DEFAULT '',
            email TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT 'student' CHECK(role IN ('student', 'mentor', 'admin')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- One mentor per student
        CREATE TABLE IF NOT EXISTS mentor_assignments (
            student_id TEXT PRIMARY KEY REFERENCES students(student_id) ON DELETE CASCADE,
            mentor_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            assigned_at TEXT NOT NULL
        );

        -- current_level is derived from total_xp and rewritten on every award
        CREATE TABLE IF NOT EXISTS level_system (
            student_id TEXT PRIMARY KEY REFERENCES students(student_id) ON DELETE CASCADE,
            total_xp INTEGER NOT NULL DEFAULT 0 CHECK(total_xp >= 0),
            current_level INTEGER NOT NULL DEFAULT 1,
            updated_at TEXT NOT NULL
        );

        -- Append-only
        CREATE TABLE IF NOT EXISTS xp_events (
            event_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            topic_id TEXT NOT NULL DEFAULT '',
            material_id TEXT NOT NULL DEFAULT '',
            event_type TEXT NOT NULL,
            xp INTEGER NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS xp_cooldowns (
            cooldown_key TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            last_awarded_at INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS subjects (
            subject_id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS topics (
            topic_id TEXT PRIMARY KEY,
            subject_id TEXT NOT NULL REFERENCES subjects(subject_id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS study_materials (
            material_id TEXT PRIMARY KEY,
            topic_id TEXT NOT NULL REFERENCES topics(topic_id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            content_type TEXT NOT NULL CHECK(content_type IN (
                'video', 'pdf', 'notes', 'slides', 'test', 'test-solution', 'reference', 'extra'
            )),
            resource_url TEXT NOT NULL DEFAULT '',
            duration_minutes INTEGER,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS topic_progress (
            progress_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            topic_id TEXT NOT NULL,
            video_xp INTEGER NOT NULL DEFAULT 0,
            test_xp INTEGER NOT NULL DEFAULT 0,
            revision_xp INTEGER NOT NULL DEFAULT 0,
            total_xp INTEGER NOT NULL DEFAULT 0,
            video_completed INTEGER NOT NULL DEFAULT 0,
            test_score INTEGER NOT NULL DEFAULT 0,
            test_completed INTEGER NOT NULL DEFAULT 0,
            revision_1_completed INTEGER NOT NULL DEFAULT 0,
            revision_1_date TEXT,
            revision_2_completed INTEGER NOT NULL DEFAULT 0,
            revision_2_date TEXT,
            revision_3_completed INTEGER NOT NULL DEFAULT 0,
            revision_3_date TEXT,
            revision_4_completed INTEGER NOT NULL DEFAULT 0,
            revision_4_date TEXT,
            status TEXT NOT NULL DEFAULT 'NEEDS_WORK' CHECK(status IN ('MASTERED', 'GOOD', 'NEEDS_WORK')),
            progress_percentage INTEGER NOT NULL DEFAULT 0,
            started_at TEXT NOT NULL,
            last_updated TEXT NOT NULL,
            UNIQUE(student_id, topic_id)
        );

        CREATE TABLE IF NOT EXISTS revision_schedule (
            revision_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            topic_id TEXT NOT NULL,
            material_type TEXT NOT NULL CHECK(material_type IN ('pdf', 'video', 'test')),
            revision_number INTEGER NOT NULL CHECK(revision_number BETWEEN 1 AND 4),
            first_opened_at TEXT NOT NULL,
            last_opened_at TEXT NOT NULL,
            due_date TEXT NOT NULL,
            completed_date TEXT,
            is_completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            UNIQUE(student_id, topic_id, material_type, revision_number)
        );

        -- Append-only
        CREATE TABLE IF NOT EXISTS test_attempts (
            attempt_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
            topic_id TEXT NOT NULL,
            test_material_id TEXT NOT NULL,
            attempt_number INTEGER NOT NULL,
            score INTEGER NOT NULL,
            max_score INTEGER NOT NULL DEFAULT 20,
            created_at TEXT NOT NULL,
            UNIQUE(student_id, test_material_id, attempt_number)
        );

        CREATE INDEX IF NOT EXISTS idx_xp_events_student ON xp_events(student_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_revision_due ON revision_schedule(student_id, is_completed, due_date);
        CREATE INDEX IF NOT EXISTS idx_topics_subject ON topics(subject_id);
        CREATE INDEX IF NOT EXISTS idx_materials_topic ON study_materials(topic_id);
        CREATE INDEX IF NOT EXISTS idx_level_total ON level_system(total_xp);
        """
    )
