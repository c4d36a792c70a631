"""
Script to import "<id>-<slug>.json" source and story folders into the database
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
from core.database import create_tables
from core.logging import setup_logging
from curation.importer import RecordImporter

logger = logging.getLogger(__name__)


async def import_records(sources_dir: str, stories_dir: str):
    """Create tables if needed and upsert every record file"""

    await create_tables()

    # Create database engine
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
            importer = RecordImporter(session, sources_dir, stories_dir)
            result = await importer.run()

            for detail in result.get("error_details", []):
                logger.warning(f"Skipped {detail['file']}: {detail['error_message']}")

            logger.info(
                f"Import {result['status']}: "
                f"Sources={result['sources_imported']}, "
                f"Stories={result['stories_imported']}, "
                f"Failed={result['records_failed']}"
            )

    except Exception as e:
        logger.error(f"Import error: {str(e)}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--sources-dir", default=settings.SOURCES_DIR)
    parser.add_argument("--stories-dir", default=settings.STORIES_DIR)
    args = parser.parse_args()

    setup_logging()
    asyncio.run(import_records(args.sources_dir, args.stories_dir))
