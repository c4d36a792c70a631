"""
Static export, imagery config and CZML tests
"""

import json
from datetime import datetime

import pytest

from core.exceptions import ExportError
from curation.exporter import StaticExporter, build_czml, build_export_config, resolve_story_content
from conftest import make_source, make_story, map_ready_source

BOUNDS = {"bounds_west": -2.3, "bounds_south": 53.4, "bounds_east": -2.1, "bounds_north": 53.6}


class TestBuildExportConfig:
    """Test imagery/vector config for the viewer"""

    def test_only_map_ready_sources_are_exported(self):
        sources = [
            map_ready_source(id=1, name="Ready"),
            map_ready_source(id=2, name="Almost", stage=3),
        ]
        config = build_export_config(sources)

        assert [entry["name"] for entry in config["imagery"]] == ["Ready"]
        assert config["vectors"] == []

    def test_split_by_source_type(self):
        sources = [
            map_ready_source(id=1, source_type="map_overlay", **BOUNDS),
            map_ready_source(id=2, source_type="vector_features"),
            map_ready_source(id=3, source_type="3d_model"),
        ]
        config = build_export_config(sources)

        assert [e["id"] for e in config["imagery"]] == [1]
        assert [e["id"] for e in config["vectors"]] == [2]
        assert "tiles" not in config["vectors"][0]

    def test_entry_shape(self):
        source = map_ready_source(id=7, name="OS 1849", era="victorian", year_start=1849, year_end=1851, **BOUNDS)
        entry = build_export_config([source])["imagery"][0]

        assert entry["yearStart"] == 1849
        assert entry["yearEnd"] == 1851
        assert entry["bounds"] == {"west": -2.3, "south": 53.4, "east": -2.1, "north": 53.6}
        assert entry["tiles"] == [
            {"url": "https://tiles.example.org/{z}/{x}/{y}.png", "label": "", "georeferenced": True}
        ]

    def test_missing_bounds_are_null(self):
        entry = build_export_config([map_ready_source()])["imagery"][0]
        assert entry["bounds"] is None

    def test_generated_timestamp(self):
        config = build_export_config([], generated=datetime(2024, 1, 15, 10, 30))
        assert config["generated"] == "2024-01-15T10:30:00Z"


class TestBuildCzml:
    """Test CZML document generation"""

    def test_document_packet(self):
        document = build_czml([], "Manchester Historical Data")[0]

        assert document["id"] == "document"
        assert document["name"] == "Manchester Historical Data"
        assert document["clock"]["interval"] == "0079-01-01T00:00:00Z/2025-12-31T23:59:59Z"
        assert document["clock"]["currentTime"] == "1850-01-01T00:00:00Z"
        assert document["clock"]["multiplier"] == 31536000
        assert document["clock"]["range"] == "LOOP_STOP"

    def test_point_at_bounds_centre(self):
        czml = build_czml([map_ready_source(id=4, year_start=1849, year_end=1851, **BOUNDS)], "doc")

        assert len(czml) == 2
        packet = czml[1]
        assert packet["id"] == "source-4"
        lon, lat, height = packet["position"]["cartographicDegrees"]
        assert lon == pytest.approx(-2.2)
        assert lat == pytest.approx(53.5)
        assert height == 0
        assert packet["availability"] == "1849-01-01T00:00:00Z/1851-12-31T23:59:59Z"
        assert packet["properties"]["era"] == "victorian"

    def test_years_default_and_pad(self):
        czml = build_czml([map_ready_source(year_start=None, year_end=None, **BOUNDS)], "doc")
        assert czml[1]["availability"] == "0079-01-01T00:00:00Z/2025-12-31T23:59:59Z"

    def test_skips_sources_without_bounds_or_not_ready(self):
        sources = [
            map_ready_source(id=1),
            map_ready_source(id=2, stage=2, **BOUNDS),
        ]
        assert len(build_czml(sources, "doc")) == 1


class TestResolveStoryContent:
    """Test story content resolution"""

    def test_inline_content_wins(self, tmp_path):
        (tmp_path / "story.md").write_text("from file")
        story = make_story(content="inline", content_file="story.md")
        assert resolve_story_content(story, tmp_path) == "inline"

    def test_reads_content_file(self, tmp_path):
        (tmp_path / "stories").mkdir()
        (tmp_path / "stories" / "canal.md").write_text("# The canal\n")
        story = make_story(content="", content_file="stories/canal.md")
        assert resolve_story_content(story, tmp_path) == "# The canal\n"

    def test_missing_file_is_none(self, tmp_path):
        story = make_story(content_file="nope.md")
        assert resolve_story_content(story, tmp_path) is None

    def test_path_outside_data_dir_is_none(self, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (tmp_path / "secret.txt").write_text("secret")
        story = make_story(content_file="../secret.txt")
        assert resolve_story_content(story, data_dir) is None

    def test_no_content_at_all(self, tmp_path):
        assert resolve_story_content(make_story(), tmp_path) is None


class TestStaticExporter:
    """Test static bundle writing"""

    def test_writes_all_documents(self, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "canal.md").write_text("Canal story")
        output_dir = tmp_path / "public" / "data"

        sources = [map_ready_source(id=1, **BOUNDS), make_source(id=2, stage=1)]
        stories = [make_story(id=1, content_file="canal.md", year_start=1761)]

        summary = StaticExporter(output_dir, data_dir).export(sources, stories)

        assert summary["sources"] == 2
        assert summary["stories"] == 1
        assert summary["files"] == ["export-config.json", "sources.json", "stats.json", "stories.json"]

        written_stories = json.loads((output_dir / "stories.json").read_text())
        assert written_stories[0]["resolvedContent"] == "Canal story"

        stats = json.loads((output_dir / "stats.json").read_text())
        assert stats["total"] == 2
        assert stats["storyTotal"] == 1
        assert "byStage" in stats

        config = json.loads((output_dir / "export-config.json").read_text())
        assert [e["id"] for e in config["imagery"]] == [1]

        written_sources = json.loads((output_dir / "sources.json").read_text())
        assert [s["id"] for s in written_sources] == [1, 2]

    def test_unwritable_output_raises_export_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(ExportError):
            StaticExporter(blocker / "out", tmp_path).export([], [])
