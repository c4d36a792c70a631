import logging
from typing import Any, Dict, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from core.config import settings
from curation.exporter import StaticExporter
from curation.repository import load_snapshot

logger = logging.getLogger(__name__)


class ExportScheduler:
    """Periodically rewrites the static data bundle from the database"""

    def __init__(self, interval_minutes: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.interval_minutes = interval_minutes or settings.EXPORT_INTERVAL_MINUTES
        self.engine = create_async_engine(settings.DATABASE_URL, echo=False)
        self.SessionLocal = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def run_export_job(self) -> Optional[Dict[str, Any]]:
        """Job to export sources, stories and stats as static JSON"""
        logger.info("Scheduler: Starting static export job")
        async with self.SessionLocal() as session:
            try:
                sources, stories = await load_snapshot(session)
                exporter = StaticExporter(settings.EXPORT_DIR, settings.DATA_DIR)
                return exporter.export(sources, stories)
            except Exception as e:
                logger.error(f"Scheduler: Static export job failed - {e}")
                return None

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_export_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="static_export_job",
            replace_existing=True
        )
        self.scheduler.start()
        logger.info(f"Export Scheduler started (every {self.interval_minutes} minutes)")

    async def stop(self):
        """Stop the scheduler and release its database connections"""
        if self.scheduler.running:
            self.scheduler.shutdown()
        await self.engine.dispose()
        logger.info("Export Scheduler stopped")
