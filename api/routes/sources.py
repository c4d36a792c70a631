"""
Source CRUD, stage pipeline and tile verification endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from api.dependencies import get_db
from api.middleware import get_request_id
from curation.repository import SORTABLE_SOURCE_FIELDS, SourceRepository
from curation.stage_gate import Stage, gate_report, next_stage_requirements
from models.base import Era, SourceType
from schemas.api import DeleteResponse, StageGateReport
from schemas.sources import SourceCreate, SourceRead, SourceUpdate, TileUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sources", tags=["Sources"])


@router.get("", response_model=List[SourceRead])
async def list_sources(
    request: Request,
    era: Optional[Era] = Query(None, description="Filter by era"),
    stage: Optional[int] = Query(None, ge=1, le=4, description="Filter by stage"),
    source_type: Optional[SourceType] = Query(None, description="Filter by source type"),
    has_tiles: Optional[bool] = Query(None, description="Only sources with (true) or without (false) tiles"),
    sort: str = Query("year_start", description=f"One of: {', '.join(SORTABLE_SOURCE_FIELDS)}"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db)
):
    """
    List sources.

    Null sort values always come last, whatever the order.
    """
    request_id = get_request_id(request)
    logger.info(
        f"[{request_id}] GET /api/sources - filters: era={era}, stage={stage}, "
        f"source_type={source_type}, has_tiles={has_tiles}, sort={sort} {order}"
    )

    if sort not in SORTABLE_SOURCE_FIELDS:
        raise HTTPException(
            status_code=422,
            detail=f"sort must be one of: {', '.join(SORTABLE_SOURCE_FIELDS)}"
        )

    repo = SourceRepository(db)
    sources = await repo.list(
        era=era.value if era else None,
        stage=stage,
        source_type=source_type.value if source_type else None,
        has_tiles=has_tiles,
        sort=sort,
        order=order
    )

    logger.info(f"[{request_id}] Returned {len(sources)} sources")
    return [SourceRead.model_validate(s) for s in sources]


@router.post("", response_model=SourceRead, status_code=201)
async def create_source(request: Request, payload: SourceCreate, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] POST /api/sources - name={payload.name!r}")

    source = await SourceRepository(db).create(payload)
    return SourceRead.model_validate(source)


@router.get("/{source_id}", response_model=SourceRead)
async def get_source(source_id: int, db: AsyncSession = Depends(get_db)):
    source = await SourceRepository(db).get(source_id)
    return SourceRead.model_validate(source)


@router.put("/{source_id}", response_model=SourceRead)
async def update_source(
    request: Request,
    source_id: int,
    payload: SourceUpdate,
    db: AsyncSession = Depends(get_db)
):
    """
    Partial update.

    A stage change is checked against the updated fields; a blocked change
    returns 409 with every violation.
    """
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] PUT /api/sources/{source_id} - fields={sorted(payload.model_fields_set)}")

    source = await SourceRepository(db).update(source_id, payload)
    return SourceRead.model_validate(source)


@router.delete("/{source_id}", response_model=DeleteResponse)
async def delete_source(request: Request, source_id: int, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] DELETE /api/sources/{source_id}")

    await SourceRepository(db).delete(source_id)
    return DeleteResponse()


@router.get("/{source_id}/gate", response_model=StageGateReport)
async def get_stage_gate(source_id: int, db: AsyncSession = Depends(get_db)):
    """What the source still needs to reach each later stage"""
    source = SourceRead.model_validate(await SourceRepository(db).get(source_id))
    stage = Stage(source.stage)
    next_stage = Stage(stage + 1) if stage < Stage.MAP_READY else None
    violations = next_stage_requirements(source)

    return StageGateReport(
        source_id=source.id,
        stage=int(stage),
        stage_label=stage.label,
        next_stage=int(next_stage) if next_stage else None,
        next_stage_label=next_stage.label if next_stage else None,
        can_advance=next_stage is not None and not violations,
        violations=violations,
        requirements=gate_report(source)
    )


@router.post("/{source_id}/advance", response_model=SourceRead)
async def advance_source(request: Request, source_id: int, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] POST /api/sources/{source_id}/advance")

    source = await SourceRepository(db).advance(source_id)
    return SourceRead.model_validate(source)


@router.post("/{source_id}/revert", response_model=SourceRead)
async def revert_source(request: Request, source_id: int, db: AsyncSession = Depends(get_db)):
    request_id = get_request_id(request)
    logger.info(f"[{request_id}] POST /api/sources/{source_id}/revert")

    source = await SourceRepository(db).revert(source_id)
    return SourceRead.model_validate(source)


@router.patch("/{source_id}/tiles/{tile_index}", response_model=SourceRead)
async def set_tile_georeferenced(
    request: Request,
    source_id: int,
    tile_index: int,
    payload: TileUpdate,
    db: AsyncSession = Depends(get_db)
):
    request_id = get_request_id(request)
    logger.info(
        f"[{request_id}] PATCH /api/sources/{source_id}/tiles/{tile_index} - "
        f"georeferenced={payload.georeferenced}"
    )

    source = await SourceRepository(db).set_tile_georeferenced(source_id, tile_index, payload.georeferenced)
    return SourceRead.model_validate(source)
