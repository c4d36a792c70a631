"""
Curation pipeline components for historical map sources.

Modules:
    stage_gate: Stage enum, gate rules and transition validation (pure)
    timeline: Adaptive-width timeline buckets and dashboard stats (pure)
    locking: Per-source async locks serialising stage changes
    repository: Source/story persistence with gated stage changes
    importer: Loads "<id>-<slug>.json" record folders into the database
    exporter: Static JSON bundle, imagery config and CZML builders
    scheduler: APScheduler integration for periodic static exports

Architecture:
    Requests flow through the repository, which builds read models and asks
    the stage gate evaluator before writing a stage change. The timeline
    aggregator and the exporters only ever see read models, so they can be
    called from the API, from scripts or from the scheduler alike.

Usage:
    from curation.stage_gate import evaluate_stage_gate, validate_transition
    from curation.timeline import compute_stats
    from curation.repository import SourceRepository, load_snapshot

Example:
    repo = SourceRepository(session)
    source = await repo.advance(source_id)

    sources, stories = await load_snapshot(session)
    stats = compute_stats(sources, stories)
    print(f"{stats.total} sources in {len(stats.buckets)} buckets")
"""

from curation.stage_gate import Stage, evaluate_stage_gate, validate_transition
from curation.timeline import compute_stats
from curation.repository import SourceRepository, StoryRepository
from curation.importer import RecordImporter
from curation.exporter import StaticExporter
from curation.scheduler import ExportScheduler

__all__ = [
    "Stage",
    "evaluate_stage_gate",
    "validate_transition",
    "compute_stats",
    "SourceRepository",
    "StoryRepository",
    "RecordImporter",
    "StaticExporter",
    "ExportScheduler",
]
