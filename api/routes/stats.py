"""
Dashboard statistics and timeline endpoint
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_db
from api.middleware import get_request_id
from curation.repository import load_snapshot
from curation.timeline import compute_stats
from schemas.stats import TimelineStats
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Statistics"])


@router.get("/stats", response_model=TimelineStats)
async def get_stats(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Get source statistics and the timeline.

    Returns:
    - Totals by stage, era and source type
    - Adaptive-width timeline buckets (sources past stage 1, every story)
    - Sources without a start year
    """
    request_id = get_request_id(request)

    logger.info(f"[{request_id}] GET /api/stats")

    sources, stories = await load_snapshot(db)
    stats = compute_stats(sources, stories)

    logger.info(
        f"[{request_id}] Stats: {stats.total} sources, "
        f"{stats.story_total} stories, {len(stats.buckets)} buckets"
    )

    return stats
