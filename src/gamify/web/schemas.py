"""Pydantic schemas for Web API.

Serialization models for students, XP, progress, revisions, tests,
leaderboard and study content.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from gamify.core.xp_rules import XPEventType


# =============================================================================
# STUDENT SCHEMAS
# =============================================================================


class StudentCreate(BaseModel):
    """Request body for creating a student."""

    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(default="", max_length=100)
    email: str = Field(default="", max_length=200)
    role: Literal["student", "mentor", "admin"] = "student"


class StudentResponse(BaseModel):
    """Response for a student."""

    student_id: str
    name: str
    surname: str
    email: str
    role: str
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class StudentListResponse(BaseModel):
    """Response for list of students."""

    students: list[StudentResponse]
    count: int


class MentorAssignRequest(BaseModel):
    mentor_id: str


class MentorStudentResponse(BaseModel):
    """A mentor's student with level data."""

    student_id: str
    name: str
    surname: str
    total_xp: int
    current_level: int
    rank: int | None = None


class StudentStatsResponse(BaseModel):
    student_id: str
    total_xp: int
    current_level: int
    xp_to_next: int
    topics_started: int
    topic_statuses: dict[str, int]
    rank: int | None = None


# =============================================================================
# XP SCHEMAS
# =============================================================================


class XPAwardRequest(BaseModel):
    """Request body for awarding XP."""

    student_id: str
    event_type: XPEventType
    material_id: str = Field(..., min_length=1)
    topic_id: str = ""
    score: int | None = Field(default=None, ge=0, le=20)


class XPAwardResponse(BaseModel):
    success: bool
    xp_earned: int
    new_total_xp: int
    old_level: int
    new_level: int
    leveled_up: bool
    message: str = ""
    cooldown_remaining_ms: int = 0
    event_id: str | None = None


class LevelResponse(BaseModel):
    """Level bar for a student."""

    student_id: str
    total_points: int
    current_level: int
    xp_to_next: int
    next_level: int
    progress_percent: float


class XPEventResponse(BaseModel):
    event_id: str
    topic_id: str
    material_id: str
    event_type: str
    xp: int
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class TopicProgressResponse(BaseModel):
    progress_id: str
    student_id: str
    topic_id: str
    video_xp: int
    test_xp: int
    revision_xp: int
    total_xp: int
    video_completed: bool
    test_score: int
    test_completed: bool
    revisions_completed: list[bool]
    revision_dates: list[str | None]
    status: str
    progress_percentage: int
    started_at: str
    last_updated: str


class VideoCompleteRequest(BaseModel):
    material_id: str = Field(..., min_length=1)


class VideoCompleteResponse(BaseModel):
    progress: TopicProgressResponse
    award: XPAwardResponse


# =============================================================================
# TEST ATTEMPT SCHEMAS
# =============================================================================


class TestScoreRequest(BaseModel):
    """Request body for submitting a test score."""

    student_id: str
    topic_id: str
    material_id: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=20)


class TestAttemptResponse(BaseModel):
    attempt_id: str
    student_id: str
    topic_id: str
    test_material_id: str
    attempt_number: int
    score: int
    max_score: int
    created_at: str
    result: str


class TestSubmissionResponse(BaseModel):
    attempt: TestAttemptResponse
    progress: TopicProgressResponse
    award: XPAwardResponse


# =============================================================================
# REVISION SCHEMAS
# =============================================================================


class OpenMaterialRequest(BaseModel):
    student_id: str
    topic_id: str
    material_type: Literal["pdf", "video", "test"]


class RevisionResponse(BaseModel):
    revision_id: str
    student_id: str
    topic_id: str
    material_type: str
    revision_number: int
    first_opened_at: str
    last_opened_at: str
    due_date: str
    completed_date: str | None
    is_completed: bool
    created_at: str


class OpenMaterialResponse(BaseModel):
    revision: RevisionResponse
    created: bool


class CompleteRevisionRequest(BaseModel):
    student_id: str


class CompleteRevisionResponse(BaseModel):
    revision: RevisionResponse
    next_revision: RevisionResponse | None
    progress: TopicProgressResponse
    award: XPAwardResponse


class DojoResponse(BaseModel):
    overdue: list[RevisionResponse]
    today: list[RevisionResponse]
    upcoming: list[RevisionResponse]


# =============================================================================
# LEADERBOARD SCHEMAS
# =============================================================================


class LeaderboardEntryResponse(BaseModel):
    rank: int
    student_id: str
    name: str
    total_xp: int
    level: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]
    count: int


# =============================================================================
# CONTENT SCHEMAS
# =============================================================================


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""


class SubjectResponse(BaseModel):
    subject_id: str
    name: str
    description: str
    created_at: str

    model_config = {"from_attributes": True}


class TopicCreate(BaseModel):
    subject_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""


class TopicResponse(BaseModel):
    topic_id: str
    subject_id: str
    title: str
    description: str
    created_at: str

    model_config = {"from_attributes": True}


class MaterialCreate(BaseModel):
    topic_id: str
    title: str = Field(..., min_length=1, max_length=200)
    content_type: Literal[
        "video", "pdf", "notes", "slides", "test", "test-solution", "reference", "extra"
    ]
    resource_url: str = ""
    duration_minutes: int | None = Field(default=None, ge=0)


class MaterialResponse(BaseModel):
    material_id: str
    topic_id: str
    title: str
    content_type: str
    resource_url: str
    duration_minutes: int | None
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    version: str
    database: str
    cooldown_seconds: int
    timestamp: str
