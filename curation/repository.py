"""
Repositories for sources and stories.

The pure pipeline functions (stage gate, timeline, exporters) never see the
session; they receive read models built here. Every stage change goes
through SourceRepository so the gate check and the write happen inside one
per-source critical section.
"""

from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func, and_
import logging

from core.config import settings
from core.exceptions import DatabaseError, InvalidRecordError, ResourceNotFoundError, StageTransitionError
from curation.locking import SourceLockRegistry, source_locks
from curation.stage_gate import Stage, evaluate_stage_gate, validate_transition
from models.source import Source
from models.story import Story
from schemas.sources import SourceCreate, SourceRead, SourceUpdate
from schemas.stories import StoryCreate, StoryRead, StoryUpdate

logger = logging.getLogger(__name__)


SORTABLE_SOURCE_FIELDS = (
    "id",
    "name",
    "year_start",
    "year_end",
    "stage",
    "era",
    "source_type",
    "created_at",
    "updated_at",
)


class SourceRepository:
    """
    Source persistence with gated stage changes.

    Responsibilities:
    - CRUD over the sources table
    - Filtering and null-last sorting for list views
    - Stage transitions checked by the stage gate evaluator
    - Refreshing updated_at on every mutation
    """

    def __init__(
        self,
        db_session: AsyncSession,
        enforce_gates: Optional[bool] = None,
        locks: Optional[SourceLockRegistry] = None
    ):
        self.db = db_session
        self.enforce_gates = settings.ENFORCE_STAGE_GATES if enforce_gates is None else enforce_gates
        self.locks = locks or source_locks

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(self, source_id: int) -> Optional[Source]:
        result = await self.db.execute(select(Source).where(Source.id == source_id))
        return result.scalar_one_or_none()

    async def get(self, source_id: int) -> Source:
        """Fetch a source or raise ResourceNotFoundError"""
        source = await self.find(source_id)
        if source is None:
            raise ResourceNotFoundError(
                f"Source {source_id} not found",
                context={"resource": "source", "resource_id": source_id}
            )
        return source

    async def list(
        self,
        era: Optional[str] = None,
        stage: Optional[int] = None,
        source_type: Optional[str] = None,
        has_tiles: Optional[bool] = None,
        sort: str = "year_start",
        order: str = "asc"
    ) -> List[Source]:
        """
        List sources with optional filters.

        Rows with a NULL sort value always come last, whatever the order;
        ties are broken by id.
        """
        if sort not in SORTABLE_SOURCE_FIELDS:
            raise ValueError(f"sort must be one of: {', '.join(SORTABLE_SOURCE_FIELDS)}")
        if order not in ("asc", "desc"):
            raise ValueError("order must be 'asc' or 'desc'")

        filters = []
        if era:
            filters.append(Source.era == era)
        if stage is not None:
            filters.append(Source.stage == stage)
        if source_type:
            filters.append(Source.source_type == source_type)

        query = select(Source)
        if filters:
            query = query.where(and_(*filters))

        column = getattr(Source, sort)
        query = query.order_by(
            column.is_(None),
            column.desc() if order == "desc" else column.asc(),
            Source.id.asc()
        )

        result = await self.db.execute(query)
        sources = result.scalars().all()

        # Tiles live in a JSON column; filter in Python to stay dialect-neutral
        if has_tiles is not None:
            sources = [s for s in sources if bool(s.tiles) == has_tiles]

        return sources

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Source))
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: SourceCreate) -> Source:
        """Create a source; new sources always start at stage 1"""
        payload = data.model_dump()
        now = datetime.utcnow()
        source = Source(
            **payload,
            stage=int(Stage.DISCOVERED),
            created_at=now,
            updated_at=now
        )
        self.db.add(source)
        await self._commit("INSERT", source_id=None)
        await self.db.refresh(source)

        logger.info(f"Created source {source.id} ({source.name!r})")
        return source

    async def update(self, source_id: int, data: SourceUpdate) -> Source:
        """
        Apply a partial update.

        A stage change is validated against the merged field values, so a
        request may fill in source_url and move to stage 2 at the same time.

        Raises:
            ResourceNotFoundError: Unknown source id
            InvalidRecordError: year_end earlier than year_start after the update
            StageTransitionError: Stage change skips a stage, or fails its gate
                while gates are enforced
        """
        changes = data.changes()
        target_stage = changes.pop("stage", None)

        async with self.locks.hold(source_id):
            source = await self._get_for_update(source_id)
            current_stage = source.stage

            for key, value in changes.items():
                setattr(source, key, value)

            await self._check_year_range(source)

            if target_stage is not None and target_stage != current_stage:
                await self._check_transition(source, target_stage, strict=self.enforce_gates)
                source.stage = target_stage

            source.updated_at = datetime.utcnow()
            await self._commit("UPDATE", source_id=source_id)
            await self.db.refresh(source)

        logger.info(f"Updated source {source_id}: fields={sorted(changes)} stage={source.stage}")
        return source

    async def delete(self, source_id: int) -> None:
        async with self.locks.hold(source_id):
            source = await self.get(source_id)
            await self.db.delete(source)
            await self._commit("DELETE", source_id=source_id)
        self.locks.discard(source_id)
        logger.info(f"Deleted source {source_id}")

    async def transition_stage(self, source_id: int, target_stage: int) -> Source:
        """
        Explicit gated transition to target_stage (current +/- 1).

        Always strict: a refused transition raises StageTransitionError with
        every violation, whatever ENFORCE_STAGE_GATES says.
        """
        return await self._move(source_id, target_stage=target_stage)

    async def advance(self, source_id: int) -> Source:
        """Move up one stage, gated"""
        return await self._move(source_id, step=1)

    async def revert(self, source_id: int) -> Source:
        """Move down one stage; never gated, but stage 1 has nowhere to go"""
        return await self._move(source_id, step=-1)

    async def _move(
        self,
        source_id: int,
        target_stage: Optional[int] = None,
        step: Optional[int] = None
    ) -> Source:
        async with self.locks.hold(source_id):
            source = await self._get_for_update(source_id)
            previous = source.stage

            # Relative moves resolve their target under the lock
            if step is not None:
                target_stage = previous + step
                self._check_bounds(source_id, previous, target_stage)

            await self._check_transition(source, target_stage, strict=True)

            source.stage = int(target_stage)
            source.updated_at = datetime.utcnow()
            await self._commit("UPDATE", source_id=source_id)
            await self.db.refresh(source)

        logger.info(f"Source {source_id} moved from stage {previous} to stage {source.stage}")
        return source

    @staticmethod
    def _check_bounds(source_id: int, current_stage: int, target_stage: int) -> None:
        if target_stage > Stage.MAP_READY:
            raise StageTransitionError(
                f"Stage {int(Stage.MAP_READY)} ({Stage.MAP_READY.label}) is the final stage",
                violations=[f"Source is already at the final stage ({Stage.MAP_READY.label})"],
                context={"source_id": source_id, "current_stage": current_stage}
            )
        if target_stage < Stage.DISCOVERED:
            raise StageTransitionError(
                f"Stage {int(Stage.DISCOVERED)} ({Stage.DISCOVERED.label}) is the first stage",
                violations=[f"Source is already at the first stage ({Stage.DISCOVERED.label})"],
                context={"source_id": source_id, "current_stage": current_stage}
            )

    async def set_tile_georeferenced(self, source_id: int, tile_index: int, georeferenced: bool) -> Source:
        """
        Mark one tile as verified (or not).

        Un-verifying the last georeferenced tile of a Map-Ready source is
        allowed; the source keeps its stage and a warning is logged.
        """
        async with self.locks.hold(source_id):
            source = await self._get_for_update(source_id)
            tiles = [dict(tile) for tile in (source.tiles or [])]
            if tile_index < 0 or tile_index >= len(tiles):
                raise ResourceNotFoundError(
                    f"Source {source_id} has no tile {tile_index}",
                    context={"resource": "tile", "resource_id": tile_index, "source_id": source_id}
                )

            tiles[tile_index]["georeferenced"] = georeferenced
            # Reassign so the JSON column is flagged dirty
            source.tiles = tiles
            source.updated_at = datetime.utcnow()

            if source.stage >= Stage.MAP_READY:
                violations = evaluate_stage_gate(SourceRead.model_validate(source), source.stage)
                if violations:
                    logger.warning(
                        f"Source {source_id} stays at stage {source.stage} but no longer meets its gate: "
                        f"{'; '.join(violations)}"
                    )

            await self._commit("UPDATE", source_id=source_id)
            await self.db.refresh(source)

        return source

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_for_update(self, source_id: int) -> Source:
        result = await self.db.execute(
            select(Source).where(Source.id == source_id).with_for_update()
        )
        source = result.scalar_one_or_none()
        if source is None:
            raise ResourceNotFoundError(
                f"Source {source_id} not found",
                context={"resource": "source", "resource_id": source_id}
            )
        return source

    async def _check_year_range(self, source: Source) -> None:
        """Partial updates can pair a new year with the stored one"""
        source_id = source.id
        year_start, year_end = source.year_start, source.year_end
        if year_start is None or year_end is None or year_end >= year_start:
            return

        await self.db.rollback()
        raise InvalidRecordError(
            f"Source {source_id}: year_end ({year_end}) cannot be earlier than year_start ({year_start})",
            context={"source_id": source_id, "year_start": year_start, "year_end": year_end}
        )

    async def _check_transition(self, source: Source, target_stage: int, strict: bool) -> None:
        source_id = source.id
        current_stage = source.stage
        # Stage is still the stored one; other fields may already hold pending edits
        result = validate_transition(SourceRead.model_validate(source), target_stage)

        if result.allowed:
            return

        # Only gate violations are relaxed; stages still move one step at a time
        one_step = abs(int(target_stage) - current_stage) == 1
        if strict or not one_step:
            # Rollback expires the instance; only local values are used below
            await self.db.rollback()
            raise StageTransitionError(
                f"Source {source_id} cannot move from stage {current_stage} to stage {target_stage}",
                violations=result.violations,
                context={
                    "source_id": source_id,
                    "current_stage": current_stage,
                    "target_stage": target_stage
                }
            )

        logger.warning(
            f"Source {source_id} moved from stage {current_stage} to stage {target_stage} "
            f"despite unmet requirements: {'; '.join(result.violations)}"
        )

    async def _commit(self, operation: str, source_id: Optional[int]) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(
                f"Failed to {operation.lower()} source",
                context={"operation": operation, "table_name": "sources", "source_id": source_id},
                original_exception=e
            )


class StoryRepository:
    """Story persistence"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get(self, story_id: int) -> Story:
        result = await self.db.execute(select(Story).where(Story.id == story_id))
        story = result.scalar_one_or_none()
        if story is None:
            raise ResourceNotFoundError(
                f"Story {story_id} not found",
                context={"resource": "story", "resource_id": story_id}
            )
        return story

    async def list(self) -> List[Story]:
        result = await self.db.execute(select(Story).order_by(Story.id.asc()))
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Story))
        return result.scalar() or 0

    async def create(self, data: StoryCreate) -> Story:
        now = datetime.utcnow()
        story = Story(**data.model_dump(), created_at=now, updated_at=now)
        self.db.add(story)
        await self._commit("INSERT", story_id=None)
        await self.db.refresh(story)
        logger.info(f"Created story {story.id} ({story.title!r})")
        return story

    async def update(self, story_id: int, data: StoryUpdate) -> Story:
        story = await self.get(story_id)
        changes: Dict[str, Any] = data.changes()
        for key, value in changes.items():
            setattr(story, key, value)
        story.updated_at = datetime.utcnow()
        await self._commit("UPDATE", story_id=story_id)
        await self.db.refresh(story)
        return story

    async def delete(self, story_id: int) -> None:
        story = await self.get(story_id)
        await self.db.delete(story)
        await self._commit("DELETE", story_id=story_id)
        logger.info(f"Deleted story {story_id}")

    async def _commit(self, operation: str, story_id: Optional[int]) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(
                f"Failed to {operation.lower()} story",
                context={"operation": operation, "table_name": "stories", "story_id": story_id},
                original_exception=e
            )


async def load_snapshot(db_session: AsyncSession) -> Tuple[List[SourceRead], List[StoryRead]]:
    """Read every source and story as read models, ordered by id"""
    try:
        source_rows = (await db_session.execute(select(Source).order_by(Source.id.asc()))).scalars().all()
        story_rows = (await db_session.execute(select(Story).order_by(Story.id.asc()))).scalars().all()
    except SQLAlchemyError as e:
        raise DatabaseError(
            "Failed to load sources and stories",
            context={"operation": "SELECT", "table_name": "sources,stories"},
            original_exception=e
        )

    sources = [SourceRead.model_validate(row) for row in source_rows]
    stories = [StoryRead.model_validate(row) for row in story_rows]
    return sources, stories
