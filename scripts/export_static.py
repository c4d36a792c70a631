"""
Script to write the static data bundle (sources, stories, stats, imagery config)
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from core.config import settings
from core.logging import setup_logging
from curation.exporter import StaticExporter
from curation.repository import load_snapshot

logger = logging.getLogger(__name__)


async def export_static(output_dir: str, data_dir: str):
    """Snapshot the database and export it"""

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=False,
    )

    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    try:
        async with AsyncSessionLocal() as session:
            sources, stories = await load_snapshot(session)

        summary = StaticExporter(output_dir, data_dir).export(sources, stories)
        logger.info(f"Wrote {', '.join(summary['files'])} to {summary['output_dir']}")

    except Exception as e:
        logger.error(f"Static export error: {str(e)}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output-dir", default=settings.EXPORT_DIR)
    parser.add_argument("--data-dir", default=settings.DATA_DIR)
    args = parser.parse_args()

    setup_logging()
    asyncio.run(export_static(args.output_dir, args.data_dir))
