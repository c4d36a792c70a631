"""
Pydantic schemas for data validation and serialization.

Schemas:
    sources: Source and Tile write/read models
    stories: Story write/read models
    stats: Timeline aggregate (counts, buckets, undated sources)
    api: Health, stage gate report and error envelopes

Read models (SourceRead, StoryRead) are what the pure pipeline functions
consume; they are built from ORM rows with model_validate().

Usage:
    from schemas.sources import SourceCreate, SourceRead
    from schemas.stats import TimelineStats

Example:
    source = SourceRead.model_validate(orm_source)
    violations = evaluate_stage_gate(source, 3)
"""

from schemas.sources import Tile, SourceCreate, SourceUpdate, SourceRead
from schemas.stories import StoryCreate, StoryUpdate, StoryRead, StoryDetail
from schemas.stats import TimelineStats, TimelineBucket
from schemas.api import HealthCheckResponse, StageGateReport, ErrorResponse

__all__ = [
    "Tile",
    "SourceCreate",
    "SourceUpdate",
    "SourceRead",
    "StoryCreate",
    "StoryUpdate",
    "StoryRead",
    "StoryDetail",
    "TimelineStats",
    "TimelineBucket",
    "HealthCheckResponse",
    "StageGateReport",
    "ErrorResponse",
]
