"""Study content endpoints: subjects, topics and materials."""

import sqlite3

from fastapi import APIRouter, HTTPException, status

from gamify.db.content_repository import (
    ContentNotFoundError,
    get_all_subjects,
    get_materials_by_topic,
    get_topic_by_id,
    get_topics_for_subject,
    insert_material,
    insert_subject,
    insert_topic,
)
from gamify.web.schemas import (
    MaterialCreate,
    MaterialResponse,
    SubjectCreate,
    SubjectResponse,
    TopicCreate,
    TopicResponse,
)

router = APIRouter(prefix="/api", tags=["content"])


@router.get("/subjects", response_model=list[SubjectResponse])
async def list_subjects() -> list[SubjectResponse]:
    return [SubjectResponse.model_validate(s) for s in get_all_subjects()]


@router.post("/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(request: SubjectCreate) -> SubjectResponse:
    try:
        subject = insert_subject(request.name, request.description)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Subject '{request.name}' already exists",
        )
    return SubjectResponse.model_validate(subject)


@router.get("/subjects/{subject_id}/topics", response_model=list[TopicResponse])
async def list_topics(subject_id: str) -> list[TopicResponse]:
    return [TopicResponse.model_validate(t) for t in get_topics_for_subject(subject_id)]


@router.post("/topics", response_model=TopicResponse, status_code=status.HTTP_201_CREATED)
async def create_topic(request: TopicCreate) -> TopicResponse:
    try:
        topic = insert_topic(request.subject_id, request.title, request.description)
    except ContentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TopicResponse.model_validate(topic)


@router.get("/topics/{topic_id}/materials", response_model=list[MaterialResponse])
async def list_materials(topic_id: str) -> list[MaterialResponse]:
    if get_topic_by_id(topic_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic '{topic_id}' not found",
        )
    materials = get_materials_by_topic([topic_id]).get(topic_id, [])
    return [MaterialResponse.model_validate(m) for m in materials]


@router.post("/materials", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(request: MaterialCreate) -> MaterialResponse:
    try:
        material = insert_material(
            request.topic_id,
            request.title,
            request.content_type,
            resource_url=request.resource_url,
            duration_minutes=request.duration_minutes,
        )
    except ContentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MaterialResponse.model_validate(material)
