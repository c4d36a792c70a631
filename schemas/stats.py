"""
Pydantic schemas for the timeline aggregate.

Python attributes are snake_case; the JSON keys consumed by the dashboard
and the static frontend are camelCase aliases.
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class StageCount(BaseModel):
    stage: int
    count: int


class EraCount(BaseModel):
    era: str
    count: int


class TypeCount(BaseModel):
    source_type: str
    count: int


class TimelineSourceEntry(BaseModel):
    """Lightweight projection of a source inside a bucket"""
    id: int
    name: str
    year_start: int
    era: str
    stage: int
    source_type: str


class TimelineStoryEntry(BaseModel):
    """Lightweight projection of a story inside a bucket"""
    id: int
    title: str
    year_start: int
    era: str


class TimelineBucket(BaseModel):
    """Half-open year interval [start, end)"""
    start: int
    end: int
    sources: List[TimelineSourceEntry] = Field(default_factory=list)
    stories: List[TimelineStoryEntry] = Field(default_factory=list)


class UndatedSourceEntry(BaseModel):
    id: int
    name: str
    era: str
    stage: int
    source_type: str


class TimelineStats(BaseModel):
    """Aggregate over the full current snapshot of sources and stories"""
    total: int
    story_total: int = Field(..., alias="storyTotal")
    by_stage: List[StageCount] = Field(default_factory=list, alias="byStage")
    by_era: List[EraCount] = Field(default_factory=list, alias="byEra")
    by_type: List[TypeCount] = Field(default_factory=list, alias="byType")
    buckets: List[TimelineBucket] = Field(default_factory=list)
    undated: List[UndatedSourceEntry] = Field(default_factory=list)
    
    def stage_count(self, stage: int) -> int:
        for entry in self.by_stage:
            if entry.stage == stage:
                return entry.count
        return 0
    
    def bucket_for(self, year: int) -> Optional[TimelineBucket]:
        for bucket in self.buckets:
            if bucket.start <= year < bucket.end:
                return bucket
        return None
    
    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "total": 2,
                "storyTotal": 0,
                "byStage": [{"stage": 3, "count": 1}, {"stage": 4, "count": 1}],
                "byEra": [{"era": "roman", "count": 1}, {"era": "victorian", "count": 1}],
                "byType": [{"source_type": "map_overlay", "count": 2}],
                "buckets": [
                    {"start": 0, "end": 100, "sources": [
                        {"id": 2, "name": "Mamucium fort plan", "year_start": 79,
                         "era": "roman", "stage": 4, "source_type": "map_overlay"}
                    ], "stories": []},
                    {"start": 1850, "end": 1875, "sources": [
                        {"id": 1, "name": "OS Town Plan", "year_start": 1850,
                         "era": "victorian", "stage": 3, "source_type": "map_overlay"}
                    ], "stories": []}
                ],
                "undated": []
            }
        }
