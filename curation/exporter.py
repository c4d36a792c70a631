"""
Static export for the map-viewing frontend.

Builds the JSON documents the static site fetches (sources, stories, stats,
imagery config) and the CZML document consumed by the 3D viewer. The
builders are pure; StaticExporter only adds the file writing.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from core.exceptions import ExportError
from curation.stage_gate import Stage
from curation.timeline import compute_stats
from models.base import SourceType
from schemas.sources import SourceRead
from schemas.stories import StoryRead

logger = logging.getLogger(__name__)

CZML_CLOCK_START_YEAR = 79
CZML_CLOCK_END_YEAR = 2025
CZML_CURRENT_TIME = "1850-01-01T00:00:00Z"
SECONDS_PER_YEAR = 31536000


def _bounds(source: SourceRead) -> Optional[Dict[str, float]]:
    if not source.has_bounds:
        return None
    return {
        "west": source.bounds_west,
        "south": source.bounds_south,
        "east": source.bounds_east,
        "north": source.bounds_north,
    }


def _map_ready(sources: Iterable[SourceRead]) -> List[SourceRead]:
    return [s for s in sources if s.stage == Stage.MAP_READY]


def build_export_config(sources: Iterable[SourceRead], generated: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Imagery/vector layer config for the viewer.

    Only Map-Ready sources are exported: map overlays with their tiles under
    "imagery", vector features under "vectors".
    """
    ready = _map_ready(sources)
    imagery = [
        {
            "id": s.id,
            "name": s.name,
            "era": s.era,
            "yearStart": s.year_start,
            "yearEnd": s.year_end,
            "tiles": [tile.model_dump(exclude_none=True) for tile in s.tiles],
            "bounds": _bounds(s),
        }
        for s in ready
        if s.source_type == SourceType.MAP_OVERLAY.value
    ]
    vectors = [
        {
            "id": s.id,
            "name": s.name,
            "era": s.era,
            "yearStart": s.year_start,
            "yearEnd": s.year_end,
            "bounds": _bounds(s),
        }
        for s in ready
        if s.source_type == SourceType.VECTOR_FEATURES.value
    ]
    return {
        "imagery": imagery,
        "vectors": vectors,
        "generated": (generated or datetime.utcnow()).isoformat() + "Z",
    }


def _pad_year(year: int) -> str:
    return str(year).zfill(4)


def build_czml(sources: Iterable[SourceRead], document_name: str) -> List[Dict[str, Any]]:
    """
    CZML packets: the document/clock packet, then one point per Map-Ready
    source that has a full bounding box, placed at the box centre and
    available from year_start to year_end.
    """
    czml: List[Dict[str, Any]] = [
        {
            "id": "document",
            "name": document_name,
            "version": "1.0",
            "clock": {
                "interval": (
                    f"{_pad_year(CZML_CLOCK_START_YEAR)}-01-01T00:00:00Z/"
                    f"{_pad_year(CZML_CLOCK_END_YEAR)}-12-31T23:59:59Z"
                ),
                "currentTime": CZML_CURRENT_TIME,
                "multiplier": SECONDS_PER_YEAR,
                "range": "LOOP_STOP",
                "step": "SYSTEM_CLOCK_MULTIPLIER",
            },
        }
    ]

    for source in _map_ready(sources):
        if not source.has_bounds:
            continue

        year_start = source.year_start if source.year_start is not None else CZML_CLOCK_START_YEAR
        year_end = source.year_end if source.year_end is not None else CZML_CLOCK_END_YEAR
        center_lon = (source.bounds_west + source.bounds_east) / 2
        center_lat = (source.bounds_south + source.bounds_north) / 2

        czml.append({
            "id": f"source-{source.id}",
            "name": source.name,
            "description": source.description or "",
            "availability": f"{_pad_year(year_start)}-01-01T00:00:00Z/{_pad_year(year_end)}-12-31T23:59:59Z",
            "position": {"cartographicDegrees": [center_lon, center_lat, 0]},
            "point": {
                "pixelSize": 10,
                "color": {"rgba": [255, 165, 0, 255]},
                "outlineColor": {"rgba": [255, 255, 255, 255]},
                "outlineWidth": 2,
            },
            "properties": {
                "source_id": source.id,
                "source_type": source.source_type,
                "era": source.era,
            },
        })

    return czml


def resolve_story_content(story: StoryRead, data_dir: Union[str, Path]) -> Optional[str]:
    """
    Inline content wins; otherwise read content_file from data_dir.

    Paths that escape data_dir and missing files resolve to None.
    """
    if story.content:
        return story.content
    if not story.content_file:
        return None

    base = Path(data_dir).resolve()
    path = (base / story.content_file).resolve()
    if base != path and base not in path.parents:
        logger.warning(f"Story {story.id} content_file escapes the data directory: {story.content_file}")
        return None
    if not path.is_file():
        logger.warning(f"Story {story.id} content_file not found: {path}")
        return None
    return path.read_text(encoding="utf-8")


class StaticExporter:
    """
    Writes the static data bundle.

    Files:
    - sources.json: every source
    - stories.json: every story with resolvedContent
    - stats.json: compute_stats() output (camelCase keys)
    - export-config.json: build_export_config() output
    """

    def __init__(self, output_dir: Union[str, Path], data_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.data_dir = Path(data_dir)

    def export(self, sources: List[SourceRead], stories: List[StoryRead]) -> Dict[str, Any]:
        """
        Write all files and return a summary.

        Raises:
            ExportError: The output directory or a file could not be written
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(
                "Cannot create export directory",
                context={"output_dir": str(self.output_dir)},
                original_exception=e
            )

        story_docs = []
        for story in stories:
            doc = story.model_dump(mode="json")
            doc["resolvedContent"] = resolve_story_content(story, self.data_dir)
            story_docs.append(doc)

        documents = {
            "sources.json": [s.model_dump(mode="json") for s in sources],
            "stories.json": story_docs,
            "stats.json": compute_stats(sources, stories).model_dump(mode="json", by_alias=True),
            "export-config.json": build_export_config(sources),
        }

        for file_name, document in documents.items():
            self._write_json(file_name, document)

        summary = {
            "output_dir": str(self.output_dir),
            "sources": len(sources),
            "stories": len(stories),
            "files": sorted(documents),
        }
        logger.info(
            f"Static export complete: {len(sources)} sources, {len(stories)} stories -> {self.output_dir}"
        )
        return summary

    def _write_json(self, file_name: str, document: Any) -> None:
        path = self.output_dir / file_name
        try:
            path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        except (OSError, TypeError) as e:
            raise ExportError(
                f"Failed to write {file_name}",
                context={"output_dir": str(self.output_dir), "file_name": file_name},
                original_exception=e
            )
