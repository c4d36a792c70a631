"""
Timeline bucketing and dashboard statistics.

Source density varies enormously by era (one map every few centuries in
antiquity, dozens per decade in the modern period), so the timeline uses a
piecewise bucket width: coarse near year 0, fine near the present.

Everything here is pure and recomputed from scratch on every call; there is
no cached aggregate to invalidate.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from models.base import ERA_ORDER
from schemas.sources import SourceRead
from schemas.stories import StoryRead
from schemas.stats import (
    EraCount,
    StageCount,
    TimelineBucket,
    TimelineSourceEntry,
    TimelineStats,
    TimelineStoryEntry,
    TypeCount,
    UndatedSourceEntry,
)


@dataclass(frozen=True)
class BucketRange:
    start: int
    end: int
    width: int


BUCKET_RANGES: Tuple[BucketRange, ...] = (
    BucketRange(0, 1500, 100),
    BucketRange(1500, 1750, 50),
    BucketRange(1750, 1900, 25),
    BucketRange(1900, 2100, 10),
)
FALLBACK_WIDTH = 10


def bucket_width(year: int) -> int:
    """Width of the bucket holding year.

    The first range whose end exceeds the year wins, so a year exactly on a
    boundary (1500, 1750, 1900) belongs to the finer range that starts there.
    Years before 0 fall into the first range.
    """
    for bucket_range in BUCKET_RANGES:
        if year < bucket_range.end:
            return bucket_range.width
    return FALLBACK_WIDTH


def bucket_bounds(year: int) -> Tuple[int, int]:
    """Half-open [start, end) of the bucket holding year."""
    width = bucket_width(year)
    start = (year // width) * width
    return start, start + width


def _era_sort_key(era: str, first_seen: Dict[str, int]) -> Tuple[int, int]:
    # Unknown eras keep their raw key and sort ahead of the canonical ones
    if era in ERA_ORDER:
        return (0, ERA_ORDER.index(era))
    return (-1, first_seen[era])


def compute_stats(sources: Iterable[SourceRead], stories: Iterable[StoryRead]) -> TimelineStats:
    """Aggregate counts and adaptive-width timeline buckets.

    - total / byStage / byEra / byType count every source, dated or not
    - buckets hold dated sources with stage > 1 (stage-1 entries are still
      provisional) and every story; only non-empty buckets are emitted,
      ordered by start
    - undated lists sources without year_start

    Era values are not validated here; an unrecognised era is counted under
    its raw key.
    """
    sources = list(sources)
    stories = list(stories)

    by_stage: Dict[int, int] = {}
    by_era: Dict[str, int] = {}
    by_type: Dict[str, int] = {}
    era_first_seen: Dict[str, int] = {}

    for source in sources:
        by_stage[source.stage] = by_stage.get(source.stage, 0) + 1
        by_era[source.era] = by_era.get(source.era, 0) + 1
        by_type[source.source_type] = by_type.get(source.source_type, 0) + 1
        era_first_seen.setdefault(source.era, len(era_first_seen))

    buckets: Dict[int, TimelineBucket] = {}

    def bucket_for(year: int) -> TimelineBucket:
        start, end = bucket_bounds(year)
        if start not in buckets:
            buckets[start] = TimelineBucket(start=start, end=end)
        return buckets[start]

    undated = []
    for source in sources:
        if source.year_start is None:
            undated.append(UndatedSourceEntry(
                id=source.id,
                name=source.name,
                era=source.era,
                stage=source.stage,
                source_type=source.source_type,
            ))
            continue
        if source.stage <= 1:
            continue
        bucket_for(source.year_start).sources.append(TimelineSourceEntry(
            id=source.id,
            name=source.name,
            year_start=source.year_start,
            era=source.era,
            stage=source.stage,
            source_type=source.source_type,
        ))

    for story in stories:
        if story.year_start is None:
            continue
        bucket_for(story.year_start).stories.append(TimelineStoryEntry(
            id=story.id,
            title=story.title,
            year_start=story.year_start,
            era=story.era,
        ))

    return TimelineStats(
        total=len(sources),
        story_total=len(stories),
        by_stage=[StageCount(stage=stage, count=count) for stage, count in sorted(by_stage.items())],
        by_era=[
            EraCount(era=era, count=by_era[era])
            for era in sorted(by_era, key=lambda e: _era_sort_key(e, era_first_seen))
        ],
        by_type=[TypeCount(source_type=t, count=count) for t, count in by_type.items()],
        buckets=[buckets[start] for start in sorted(buckets)],
        undated=undated,
    )
