"""Repository functions for study content.

Subjects contain topics; topics contain study materials.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from typing import Literal

import structlog

from gamify.db.database import get_db
from gamify.utils.time_utils import to_iso, utc_now

logger = structlog.get_logger(__name__)

ContentType = Literal[
    "video", "pdf", "notes", "slides", "test", "test-solution", "reference", "extra"
]

CONTENT_TYPES: tuple[str, ...] = (
    "video",
    "pdf",
    "notes",
    "slides",
    "test",
    "test-solution",
    "reference",
    "extra",
)


class ContentNotFoundError(Exception):
    """Raised when a subject, topic or material does not exist."""

    def __init__(self, kind: str, content_id: str):
        self.kind = kind
        self.content_id = content_id
        super().__init__(f"{kind.capitalize()} '{content_id}' not found")


@dataclass
class SubjectRecord:
    subject_id: str
    name: str
    description: str
    created_at: str


@dataclass
class TopicRecord:
    topic_id: str
    subject_id: str
    title: str
    description: str
    created_at: str


@dataclass
class MaterialRecord:
    material_id: str
    topic_id: str
    title: str
    content_type: str
    resource_url: str
    duration_minutes: int | None
    created_at: str


def insert_subject(name: str, description: str = "") -> SubjectRecord:
    """Insert a subject.

    Raises:
        sqlite3.IntegrityError: If a subject with the same name exists
    """
    record = SubjectRecord(
        subject_id=uuid.uuid4().hex,
        name=name,
        description=description,
        created_at=to_iso(utc_now()),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO subjects (subject_id, name, description, created_at) VALUES (?, ?, ?, ?)",
            (record.subject_id, record.name, record.description, record.created_at),
        )

    logger.debug("subjects.inserted", subject_id=record.subject_id)
    return record


def get_all_subjects() -> list[SubjectRecord]:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM subjects ORDER BY name").fetchall()
    return [SubjectRecord(**dict(row)) for row in rows]


def insert_topic(subject_id: str, title: str, description: str = "") -> TopicRecord:
    """Insert a topic under an existing subject.

    Raises:
        ContentNotFoundError: If the subject does not exist
    """
    record = TopicRecord(
        topic_id=uuid.uuid4().hex,
        subject_id=subject_id,
        title=title,
        description=description,
        created_at=to_iso(utc_now()),
    )
    with get_db() as conn:
        _require(conn, "subjects", "subject_id", subject_id, "subject")
        conn.execute(
            """
            INSERT INTO topics (topic_id, subject_id, title, description, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record.topic_id, subject_id, title, description, record.created_at),
        )

    logger.debug("topics.inserted", topic_id=record.topic_id, subject_id=subject_id)
    return record


def get_topics_for_subject(subject_id: str) -> list[TopicRecord]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM topics WHERE subject_id = ? ORDER BY created_at, title",
            (subject_id,),
        ).fetchall()
    return [TopicRecord(**dict(row)) for row in rows]


def get_topic_by_id(topic_id: str) -> TopicRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM topics WHERE topic_id = ?", (topic_id,)
        ).fetchone()
    if row is None:
        return None
    return TopicRecord(**dict(row))


def insert_material(
    topic_id: str,
    title: str,
    content_type: ContentType,
    resource_url: str = "",
    duration_minutes: int | None = None,
) -> MaterialRecord:
    """Insert a study material under an existing topic.

    Raises:
        ContentNotFoundError: If the topic does not exist
        ValueError: If content_type is not a known type
    """
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unknown content type '{content_type}'")

    record = MaterialRecord(
        material_id=uuid.uuid4().hex,
        topic_id=topic_id,
        title=title,
        content_type=content_type,
        resource_url=resource_url,
        duration_minutes=duration_minutes,
        created_at=to_iso(utc_now()),
    )
    with get_db() as conn:
        _require(conn, "topics", "topic_id", topic_id, "topic")
        conn.execute(
            """
            INSERT INTO study_materials (
                material_id, topic_id, title, content_type,
                resource_url, duration_minutes, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.material_id,
                topic_id,
                title,
                content_type,
                resource_url,
                duration_minutes,
                record.created_at,
            ),
        )

    logger.debug("materials.inserted", material_id=record.material_id, topic_id=topic_id)
    return record


def get_material_by_id(material_id: str) -> MaterialRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM study_materials WHERE material_id = ?", (material_id,)
        ).fetchone()
    if row is None:
        return None
    return MaterialRecord(**dict(row))


def get_materials_by_topic(topic_ids: list[str]) -> dict[str, list[MaterialRecord]]:
    """Get materials for several topics, grouped by topic_id.

    Topics without materials are absent from the result.
    """
    if not topic_ids:
        return {}

    placeholders = ", ".join("?" for _ in topic_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM study_materials WHERE topic_id IN ({placeholders}) "
            "ORDER BY created_at, title",
            topic_ids,
        ).fetchall()

    grouped: dict[str, list[MaterialRecord]] = {}
    for row in rows:
        material = MaterialRecord(**dict(row))
        grouped.setdefault(material.topic_id, []).append(material)
    return grouped


def _require(
    conn: sqlite3.Connection, table: str, column: str, value: str, kind: str
) -> None:
    row = conn.execute(
        f"SELECT 1 FROM {table} WHERE {column} = ?", (value,)
    ).fetchone()
    if row is None:
        raise ContentNotFoundError(kind, value)
