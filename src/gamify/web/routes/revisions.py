"""Revision (dojo) endpoints."""

from fastapi import APIRouter, HTTPException, status

from gamify.core.revisions import (
    RevisionAlreadyCompletedError,
    RevisionEntry,
    RevisionNotFoundError,
    complete_revision,
    fetch_all_revisions,
    fetch_dojo_tabs,
    open_material,
)
from gamify.db.students_repository import StudentNotFoundError
from gamify.web.schemas import (
    CompleteRevisionRequest,
    CompleteRevisionResponse,
    DojoResponse,
    OpenMaterialRequest,
    OpenMaterialResponse,
    RevisionResponse,
    TopicProgressResponse,
    XPAwardResponse,
)

router = APIRouter(prefix="/api/revisions", tags=["revisions"])


def _to_response(entry: RevisionEntry) -> RevisionResponse:
    return RevisionResponse(**entry.to_dict())


@router.post("/open", response_model=OpenMaterialResponse)
async def open_study_material(request: OpenMaterialRequest) -> OpenMaterialResponse:
    """Register a material open; schedules revision 1 on first open."""
    try:
        entry, created = open_material(
            request.student_id, request.topic_id, request.material_type
        )
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return OpenMaterialResponse(revision=_to_response(entry), created=created)


@router.post("/{revision_id}/complete", response_model=CompleteRevisionResponse)
async def complete(revision_id: str, request: CompleteRevisionRequest) -> CompleteRevisionResponse:
    """Complete a revision, schedule the next one and award XP."""
    try:
        completion = complete_revision(revision_id, request.student_id)
    except RevisionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RevisionAlreadyCompletedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return CompleteRevisionResponse(
        revision=_to_response(completion.revision),
        next_revision=(
            _to_response(completion.next_revision) if completion.next_revision else None
        ),
        progress=TopicProgressResponse(**completion.progress.to_dict()),
        award=XPAwardResponse(**completion.award.to_dict()),
    )


@router.get("/{student_id}/dojo", response_model=DojoResponse)
async def dojo(student_id: str) -> DojoResponse:
    """Pending revisions split into overdue, today and upcoming."""
    try:
        tabs = fetch_dojo_tabs(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return DojoResponse(
        overdue=[_to_response(e) for e in tabs.overdue],
        today=[_to_response(e) for e in tabs.today],
        upcoming=[_to_response(e) for e in tabs.upcoming],
    )


@router.get("/{student_id}", response_model=list[RevisionResponse])
async def all_revisions(student_id: str) -> list[RevisionResponse]:
    """Every revision of a student by due date."""
    try:
        entries = fetch_all_revisions(student_id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return [_to_response(e) for e in entries]
