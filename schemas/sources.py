"""
Pydantic schemas for sources and their tiles
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import SourceType, Era, TileType

BOUND_FIELDS = ("bounds_west", "bounds_south", "bounds_east", "bounds_north")
OPTIONAL_TEXT_FIELDS = ("description", "notes", "source_url", "iiif_url", "georeference_url")


class Tile(BaseModel):
    """A renderable imagery/vector endpoint attached to a source"""
    url: str
    label: str = ""
    georeferenced: bool = False  # true = alignment verified by a person
    type: Optional[TileType] = None  # None behaves as xyz
    wms_layers: Optional[str] = None
    
    class Config:
        use_enum_values = True


class TileUpdate(BaseModel):
    """Body for toggling verification on a single tile"""
    georeferenced: bool


def _check_tiles(tiles: Optional[List[Tile]]) -> Optional[List[Tile]]:
    if not tiles:
        return tiles
    for index, tile in enumerate(tiles):
        if not tile.url.strip():
            raise ValueError(f"tiles[{index}].url cannot be empty")
        if tile.type == TileType.WMS.value and not tile.wms_layers:
            raise ValueError(f"tiles[{index}] is a WMS tile and requires wms_layers")
    return tiles


class SourceWriteBase(BaseModel):
    """Fields shared by create and update payloads"""
    
    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before", check_fields=False)
    def blank_to_none(cls, v):
        """Form submissions send "" for cleared fields"""
        if isinstance(v, str) and not v.strip():
            return None
        return v
    
    @field_validator("tiles", check_fields=False)
    def validate_tiles(cls, v):
        return _check_tiles(v)


class SourceCreate(SourceWriteBase):
    """
    Schema for creating a source.
    
    New sources always start at stage 1 (Discovered), so there is no
    stage field here.
    """
    name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    notes: Optional[str] = None
    source_url: Optional[str] = Field(None, max_length=2048)
    source_type: SourceType = SourceType.MAP_OVERLAY
    era: Era = Era.MODERN
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    bounds_west: Optional[float] = Field(None, ge=-180, le=180)
    bounds_south: Optional[float] = Field(None, ge=-90, le=90)
    bounds_east: Optional[float] = Field(None, ge=-180, le=180)
    bounds_north: Optional[float] = Field(None, ge=-90, le=90)
    iiif_url: Optional[str] = Field(None, max_length=2048)
    georeference_url: Optional[str] = Field(None, max_length=2048)
    tiles: List[Tile] = Field(default_factory=list)
    
    @field_validator("name")
    def clean_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty after stripping")
        return v
    
    @model_validator(mode="after")
    def check_ranges(self):
        if self.year_start is not None and self.year_end is not None and self.year_end < self.year_start:
            raise ValueError("year_end cannot be earlier than year_start")
        present = [getattr(self, f) is not None for f in BOUND_FIELDS]
        if any(present) and not all(present):
            raise ValueError("bounds_west, bounds_south, bounds_east and bounds_north must be given together")
        return self
    
    class Config:
        use_enum_values = True


class SourceUpdate(SourceWriteBase):
    """
    Partial update. Only fields present in the request are applied; a stage
    value goes through the gate check in the repository.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    notes: Optional[str] = None
    source_url: Optional[str] = Field(None, max_length=2048)
    source_type: Optional[SourceType] = None
    era: Optional[Era] = None
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    stage: Optional[int] = Field(None, ge=1, le=4)
    bounds_west: Optional[float] = Field(None, ge=-180, le=180)
    bounds_south: Optional[float] = Field(None, ge=-90, le=90)
    bounds_east: Optional[float] = Field(None, ge=-180, le=180)
    bounds_north: Optional[float] = Field(None, ge=-90, le=90)
    iiif_url: Optional[str] = Field(None, max_length=2048)
    georeference_url: Optional[str] = Field(None, max_length=2048)
    tiles: Optional[List[Tile]] = None
    
    @model_validator(mode="after")
    def check_bounds_together(self):
        given = [f for f in BOUND_FIELDS if f in self.model_fields_set]
        if given and len(given) != len(BOUND_FIELDS):
            raise ValueError("bounds_west, bounds_south, bounds_east and bounds_north must be updated together")
        return self
    
    def changes(self) -> Dict[str, Any]:
        """Fields explicitly sent by the client, tiles as plain dicts"""
        data = self.model_dump(exclude_unset=True)
        # Non-nullable columns cannot be cleared
        for key in ("name", "source_type", "era", "stage", "tiles"):
            if key in data and data[key] is None:
                del data[key]
        return data
    
    class Config:
        use_enum_values = True


class SourceRead(BaseModel):
    """
    Read model handed to the stage gate evaluator, the timeline aggregator
    and the exporters.
    
    era and source_type are plain strings: stored records are not re-validated
    against the enums on the way out.
    """
    id: int
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    source_url: Optional[str] = None
    source_type: str = SourceType.MAP_OVERLAY.value
    era: str = Era.MODERN.value
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    stage: int = 1
    bounds_west: Optional[float] = None
    bounds_south: Optional[float] = None
    bounds_east: Optional[float] = None
    bounds_north: Optional[float] = None
    iiif_url: Optional[str] = None
    georeference_url: Optional[str] = None
    tiles: List[Tile] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    @field_validator("tiles", mode="before")
    def none_tiles(cls, v):
        return [] if v is None else v
    
    @property
    def has_bounds(self) -> bool:
        return all(getattr(self, f) is not None for f in BOUND_FIELDS)
    
    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 3,
                "name": "Ordnance Survey Town Plan 1849",
                "description": "1:1056 town plan, 53 sheets",
                "source_url": "https://maps.nls.uk/os/manchester/",
                "source_type": "map_overlay",
                "era": "victorian",
                "year_start": 1849,
                "year_end": 1851,
                "stage": 4,
                "bounds_west": -2.27,
                "bounds_south": 53.46,
                "bounds_east": -2.2,
                "bounds_north": 53.5,
                "iiif_url": "https://example.org/iiif/manifest.json",
                "georeference_url": "https://example.org/annotations/1849.json",
                "tiles": [
                    {"url": "https://tiles.example.org/1849/{z}/{x}/{y}.png", "label": "Sheet 1", "georeferenced": True}
                ],
                "created_at": "2024-01-15T10:30:00",
                "updated_at": "2024-01-15T10:30:00"
            }
        }
