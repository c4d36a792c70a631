"""
Download endpoints for the viewer's imagery config and CZML
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.dependencies import get_db
from api.middleware import get_request_id
from core.config import settings
from curation.exporter import build_czml, build_export_config
from curation.repository import load_snapshot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/export", tags=["Export"])


def _attachment(content, filename: str, media_type: str) -> JSONResponse:
    return JSONResponse(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/config")
async def export_config(request: Request, db: AsyncSession = Depends(get_db)):
    """Imagery and vector layers of every Map-Ready source"""
    request_id = get_request_id(request)
    sources, _ = await load_snapshot(db)
    config = build_export_config(sources)

    logger.info(
        f"[{request_id}] GET /api/export/config - "
        f"{len(config['imagery'])} imagery, {len(config['vectors'])} vectors"
    )
    return _attachment(config, "imagery-config.json", "application/json")


@router.get("/czml")
async def export_czml(request: Request, db: AsyncSession = Depends(get_db)):
    """CZML points for every Map-Ready source with bounds"""
    request_id = get_request_id(request)
    sources, _ = await load_snapshot(db)
    czml = build_czml(sources, settings.CZML_DOCUMENT_NAME)

    logger.info(f"[{request_id}] GET /api/export/czml - {len(czml) - 1} entities")
    return _attachment(czml, "historical.czml", "application/json")
