"""
Story CRUD endpoints
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from api.dependencies import get_db
from api.middleware import get_request_id
from core.config import settings
from curation.exporter import resolve_story_content
from curation.repository import StoryRepository
from schemas.api import DeleteResponse
from schemas.stories import StoryCreate, StoryDetail, StoryRead, StoryUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/stories", tags=["Stories"])


@router.get("", response_model=List[StoryRead])
async def list_stories(db: AsyncSession = Depends(get_db)):
    stories = await StoryRepository(db).list()
    return [StoryRead.model_validate(s) for s in stories]


@router.post("", response_model=StoryRead, status_code=201)
async def create_story(request: Request, payload: StoryCreate, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] POST /api/stories - title={payload.title!r}")

    story = await StoryRepository(db).create(payload)
    return StoryRead.model_validate(story)


@router.get("/{story_id}", response_model=StoryDetail)
async def get_story(story_id: int, db: AsyncSession = Depends(get_db)):
    """Story with content read from content_file when not stored inline"""
    story = StoryRead.model_validate(await StoryRepository(db).get(story_id))
    return StoryDetail(
        **story.model_dump(),
        resolved_content=resolve_story_content(story, settings.DATA_DIR)
    )


@router.put("/{story_id}", response_model=StoryRead)
async def update_story(
    request: Request,
    story_id: int,
    payload: StoryUpdate,
    db: AsyncSession = Depends(get_db)
):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] PUT /api/stories/{story_id} - fields={sorted(payload.model_fields_set)}")

    story = await StoryRepository(db).update(story_id, payload)
    return StoryRead.model_validate(story)


@router.delete("/{story_id}", response_model=DeleteResponse)
async def delete_story(request: Request, story_id: int, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] DELETE /api/stories/{story_id}")

    await StoryRepository(db).delete(story_id)
    return DeleteResponse()
