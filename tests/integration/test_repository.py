"""
Repository tests against an in-memory SQLite database
"""

import asyncio

import pytest
import pytest_asyncio

from core.exceptions import InvalidRecordError, ResourceNotFoundError, StageTransitionError
from curation.repository import SourceRepository, StoryRepository, load_snapshot
from schemas.sources import SourceCreate, SourceUpdate
from schemas.stories import StoryCreate, StoryUpdate

GEOREF_TILE = {"url": "https://tiles.example.org/{z}/{x}/{y}.png", "georeferenced": True}


@pytest.fixture
def repo(db_session, lock_registry):
    return SourceRepository(db_session, enforce_gates=True, locks=lock_registry)


@pytest_asyncio.fixture
async def seeded(repo):
    """Three sources with different years, eras and tiles"""
    created = []
    for payload in (
        {"name": "OS Town Plan", "era": "victorian", "year_start": 1849},
        {"name": "Mamucium", "era": "roman", "year_start": 79, "tiles": [GEOREF_TILE]},
        {"name": "Undated sketch", "era": "modern"},
    ):
        created.append(await repo.create(SourceCreate(**payload)))
    return created


# =============================================================================
# CRUD
# =============================================================================

@pytest.mark.asyncio
async def test_create_starts_at_stage_one(repo):
    source = await repo.create(SourceCreate(name="  Plan  ", description="", source_url=""))

    assert source.id is not None
    assert source.stage == 1
    assert source.name == "Plan"
    assert source.description is None
    assert source.source_url is None
    assert source.tiles == []
    assert source.created_at is not None


@pytest.mark.asyncio
async def test_get_missing_raises(repo):
    with pytest.raises(ResourceNotFoundError):
        await repo.get(999)


@pytest.mark.asyncio
async def test_delete(repo, seeded):
    await repo.delete(seeded[0].id)

    assert await repo.find(seeded[0].id) is None
    assert await repo.count() == 2


@pytest.mark.asyncio
async def test_update_refreshes_updated_at(repo, seeded):
    before = seeded[0].updated_at
    await asyncio.sleep(0.01)

    source = await repo.update(seeded[0].id, SourceUpdate(notes="checked"))

    assert source.notes == "checked"
    assert source.updated_at > before


# =============================================================================
# Listing
# =============================================================================

@pytest.mark.asyncio
async def test_list_sorted_by_year_with_nulls_last(repo, seeded):
    ascending = await repo.list()
    descending = await repo.list(order="desc")

    assert [s.name for s in ascending] == ["Mamucium", "OS Town Plan", "Undated sketch"]
    assert [s.name for s in descending] == ["OS Town Plan", "Mamucium", "Undated sketch"]


@pytest.mark.asyncio
async def test_list_filters(repo, seeded):
    assert [s.name for s in await repo.list(era="roman")] == ["Mamucium"]
    assert [s.name for s in await repo.list(has_tiles=True)] == ["Mamucium"]
    assert len(await repo.list(has_tiles=False)) == 2
    assert len(await repo.list(stage=1)) == 3
    assert await repo.list(stage=2) == []
    assert len(await repo.list(source_type="map_overlay")) == 3


@pytest.mark.asyncio
async def test_list_rejects_unknown_sort(repo):
    with pytest.raises(ValueError):
        await repo.list(sort="drop table")


# =============================================================================
# Stage changes
# =============================================================================

@pytest.mark.asyncio
async def test_advance_blocked_then_allowed(repo, seeded):
    source_id = seeded[0].id

    with pytest.raises(StageTransitionError) as exc_info:
        await repo.advance(source_id)
    assert exc_info.value.violations == ["Stage 2 requires source url"]
    assert (await repo.get(source_id)).stage == 1

    await repo.update(source_id, SourceUpdate(source_url="https://example.org/map"))
    source = await repo.advance(source_id)

    assert source.stage == 2


@pytest.mark.asyncio
async def test_full_pipeline_and_revert(repo, seeded):
    source_id = seeded[1].id
    await repo.update(source_id, SourceUpdate(
        source_url="https://example.org/fort",
        iiif_url="https://example.org/iiif",
        georeference_url="https://example.org/georef",
    ))

    for expected in (2, 3, 4):
        assert (await repo.advance(source_id)).stage == expected

    with pytest.raises(StageTransitionError):
        await repo.advance(source_id)

    assert (await repo.revert(source_id)).stage == 3


@pytest.mark.asyncio
async def test_revert_at_stage_one_raises(repo, seeded):
    with pytest.raises(StageTransitionError) as exc_info:
        await repo.revert(seeded[0].id)
    assert "first stage" in exc_info.value.violations[0]


@pytest.mark.asyncio
async def test_update_validates_stage_against_merged_fields(repo, seeded):
    """Setting source_url and moving to stage 2 in one request is allowed"""
    source = await repo.update(seeded[0].id, SourceUpdate(source_url="https://example.org/map", stage=2))
    assert source.stage == 2


@pytest.mark.asyncio
async def test_blocked_update_changes_nothing(repo, seeded):
    source_id = seeded[0].id

    with pytest.raises(StageTransitionError) as exc_info:
        await repo.update(source_id, SourceUpdate(notes="should not stick", stage=2))

    assert exc_info.value.violations == ["Stage 2 requires source url"]
    source = await repo.get(source_id)
    assert source.stage == 1
    assert source.notes is None


@pytest.mark.asyncio
async def test_update_warns_and_applies_when_gates_not_enforced(db_session, lock_registry, seeded, caplog):
    lenient = SourceRepository(db_session, enforce_gates=False, locks=lock_registry)

    source = await lenient.update(seeded[0].id, SourceUpdate(stage=2))

    assert source.stage == 2
    assert "despite unmet requirements" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [3, 4])
async def test_lenient_update_still_refuses_stage_jumps(db_session, lock_registry, seeded, target):
    lenient = SourceRepository(db_session, enforce_gates=False, locks=lock_registry)

    with pytest.raises(StageTransitionError):
        await lenient.update(seeded[0].id, SourceUpdate(notes="should not stick", stage=target))

    source = await lenient.get(seeded[0].id)
    assert source.stage == 1
    assert source.notes is None


@pytest.mark.asyncio
async def test_update_rejects_year_end_before_stored_year_start(repo, seeded):
    source_id = seeded[0].id

    with pytest.raises(InvalidRecordError):
        await repo.update(source_id, SourceUpdate(year_end=1800))

    source = await repo.get(source_id)
    assert source.year_start == 1849
    assert source.year_end is None


@pytest.mark.asyncio
async def test_update_accepts_year_end_after_stored_year_start(repo, seeded):
    source = await repo.update(seeded[0].id, SourceUpdate(year_end=1851))
    assert (source.year_start, source.year_end) == (1849, 1851)


@pytest.mark.asyncio
async def test_transition_stage_is_strict_even_when_lenient(db_session, lock_registry, seeded):
    lenient = SourceRepository(db_session, enforce_gates=False, locks=lock_registry)

    with pytest.raises(StageTransitionError):
        await lenient.transition_stage(seeded[0].id, 2)


# =============================================================================
# Tiles
# =============================================================================

@pytest.mark.asyncio
async def test_set_tile_georeferenced(repo, seeded):
    source = await repo.set_tile_georeferenced(seeded[1].id, 0, False)
    assert source.tiles[0]["georeferenced"] is False

    source = await repo.set_tile_georeferenced(seeded[1].id, 0, True)
    assert source.tiles[0]["georeferenced"] is True


@pytest.mark.asyncio
async def test_set_tile_bad_index(repo, seeded):
    with pytest.raises(ResourceNotFoundError):
        await repo.set_tile_georeferenced(seeded[1].id, 3, True)


# =============================================================================
# Stories and snapshot
# =============================================================================

@pytest.mark.asyncio
async def test_story_crud(db_session):
    stories = StoryRepository(db_session)

    story = await stories.create(StoryCreate(title="Canal", year_start=1761, era="industrial", source_ids=[1]))
    assert story.id is not None

    story = await stories.update(story.id, StoryUpdate(description="Opened 1761"))
    assert story.description == "Opened 1761"
    assert story.source_ids == [1]

    await stories.delete(story.id)
    with pytest.raises(ResourceNotFoundError):
        await stories.get(story.id)


@pytest.mark.asyncio
async def test_load_snapshot(db_session, seeded):
    await StoryRepository(db_session).create(StoryCreate(title="Canal", year_start=1761))

    sources, stories = await load_snapshot(db_session)

    assert [s.name for s in sources] == ["OS Town Plan", "Mamucium", "Undated sketch"]
    assert stories[0].title == "Canal"
    assert sources[1].tiles[0].georeferenced is True
