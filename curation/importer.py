"""
Import sources and stories from folders of JSON record files.

Each record lives in "<id>-<slug>.json" (the layout the curation app used
before it had a database). Files are processed in numeric id order and
upserted by id, so re-running an import is idempotent. A bad file is
reported and skipped; the rest of the run continues.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from core.exceptions import DataFormatError, InvalidStageError, RecordImportError
from curation.stage_gate import coerce_stage
from models.source import Source
from models.story import Story
from schemas.sources import SourceRead
from schemas.stories import StoryRead

logger = logging.getLogger(__name__)

# Keys kept on disk by the old file store that have no column here
IGNORED_KEYS = ("files", "resolvedContent")


def record_files(directory: Path) -> List[Path]:
    """JSON files in directory ordered by their numeric id prefix"""
    if not directory.is_dir():
        return []

    def id_prefix(path: Path) -> int:
        head = path.name.split("-", 1)[0]
        return int(head) if head.isdigit() else 0

    files = [p for p in directory.iterdir() if p.is_file() and p.suffix == ".json"]
    return sorted(files, key=lambda p: (id_prefix(p), p.name))


class RecordImporter:
    """
    Load record folders into the database.

    Responsibilities:
    - Parse and validate each record file
    - Upsert by id (session.merge)
    - Collect per-file failures without aborting the run
    """

    def __init__(
        self,
        db_session: AsyncSession,
        sources_dir: Union[str, Path],
        stories_dir: Optional[Union[str, Path]] = None
    ):
        self.db = db_session
        self.sources_dir = Path(sources_dir)
        self.stories_dir = Path(stories_dir) if stories_dir else None

    async def run(self) -> Dict[str, Any]:
        """
        Import every source and story file.

        Returns:
            Dictionary with run statistics:
            - status: "success" or "partial_success"
            - sources_imported / stories_imported: records upserted
            - records_failed: files skipped
            - error_details: per-file failures (only when some failed)
        """
        error_details: List[Dict[str, Any]] = []

        logger.info(f"Importing sources from {self.sources_dir}")
        sources_imported = await self._import_folder(
            self.sources_dir, "source", SourceRead, Source, error_details
        )

        stories_imported = 0
        if self.stories_dir is not None:
            logger.info(f"Importing stories from {self.stories_dir}")
            stories_imported = await self._import_folder(
                self.stories_dir, "story", StoryRead, Story, error_details
            )

        await self.db.commit()
        await self._sync_id_sequences()

        result = {
            "status": "success" if not error_details else "partial_success",
            "sources_imported": sources_imported,
            "stories_imported": stories_imported,
            "records_failed": len(error_details),
        }
        if error_details:
            result["error_details"] = error_details

        logger.info(
            f"Import completed: {result['status']} - sources: {sources_imported}, "
            f"stories: {stories_imported}, failed: {len(error_details)}"
        )
        return result

    async def _import_folder(
        self,
        directory: Path,
        record_kind: str,
        schema: Type[BaseModel],
        model,
        error_details: List[Dict[str, Any]]
    ) -> int:
        imported = 0
        for path in record_files(directory):
            try:
                fields = self.load_record(path, record_kind, schema)
                await self.db.merge(model(**fields))
                imported += 1
            except RecordImportError as e:
                error_detail = {
                    "file": path.name,
                    "record_kind": record_kind,
                    "error_type": type(e).__name__,
                    "error_message": e.message,
                }
                error_details.append(error_detail)
                logger.error(
                    f"Skipping {record_kind} file {path.name}: {e.message}",
                    extra={"error_context": error_detail}
                )
        return imported

    def load_record(self, path: Path, record_kind: str, schema: Type[BaseModel]) -> Dict[str, Any]:
        """
        Parse and validate one record file into column values.

        Raises:
            DataFormatError: Invalid JSON, schema violation or bad stage
        """
        context = {"file_path": str(path), "record_kind": record_kind}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DataFormatError("Record file is not readable JSON", context=context, original_exception=e)

        if not isinstance(raw, dict):
            raise DataFormatError("Record file must contain a JSON object", context=context)

        for key in IGNORED_KEYS:
            raw.pop(key, None)

        try:
            record = schema.model_validate(raw)
        except ValidationError as e:
            raise DataFormatError(
                f"Record failed validation: {e.error_count()} error(s)",
                context=context,
                original_exception=e
            )

        fields = record.model_dump()
        if "stage" in fields:
            try:
                coerce_stage(fields["stage"])
            except InvalidStageError as e:
                raise DataFormatError(e.message, context=context, original_exception=e)
        if "tiles" in fields:
            # JSON column stores plain dicts without null keys
            fields["tiles"] = [
                {k: v for k, v in tile.items() if v is not None}
                for tile in fields["tiles"]
            ]

        # Let column defaults fill missing timestamps
        for key in ("created_at", "updated_at"):
            if fields.get(key) is None:
                fields.pop(key, None)

        return fields

    async def _sync_id_sequences(self) -> None:
        """Explicit ids bypass PostgreSQL serial sequences; move them past the max id."""
        bind = self.db.get_bind()
        if bind.dialect.name != "postgresql":
            return
        for table in ("sources", "stories"):
            await self.db.execute(text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 1))"
            ))
        await self.db.commit()
