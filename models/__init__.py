"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (SourceType, Era, TileType)
    source: Historical geographic sources and their pipeline stage
    story: Narrative artifacts linked to sources

Usage:
    from models.source import Source
    from models.story import Story
    from models.base import SourceType, Era

Example:
    source = Source(
        name="Green's Map of Manchester",
        source_type=SourceType.MAP_OVERLAY.value,
        era=Era.INDUSTRIAL.value,
        year_start=1794,
    )
    session.add(source)
    await session.commit()

Relationships:
    - Story.source_ids → Source.id (non-owning, no foreign key)
    - Tiles are embedded in Source.tiles and owned by their Source
"""

from models.base import Base, SourceType, Era, TileType
from models.source import Source
from models.story import Story

__all__ = [
    "Base",
    "SourceType",
    "Era",
    "TileType",
    "Source",
    "Story",
]
