"""
Pydantic schemas for stories
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import Era


class StoryCreate(BaseModel):
    """Schema for creating a story"""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    content: Optional[str] = None
    content_file: Optional[str] = Field(None, max_length=500)
    year_start: int
    year_end: Optional[int] = None
    era: Era = Era.MODERN
    source_ids: List[int] = Field(default_factory=list)
    
    @field_validator("title")
    def clean_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty after stripping")
        return v
    
    class Config:
        use_enum_values = True


class StoryUpdate(BaseModel):
    """Partial story update"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    content: Optional[str] = None
    content_file: Optional[str] = Field(None, max_length=500)
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    era: Optional[Era] = None
    source_ids: Optional[List[int]] = None
    
    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        # Non-nullable columns cannot be cleared
        for key in ("title", "year_start", "source_ids"):
            if key in data and data[key] is None:
                del data[key]
        return data
    
    class Config:
        use_enum_values = True


class StoryRead(BaseModel):
    """Read model for stories"""
    id: int
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    content_file: Optional[str] = None
    year_start: int
    year_end: Optional[int] = None
    era: str = Era.MODERN.value
    source_ids: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    @field_validator("source_ids", mode="before")
    def none_source_ids(cls, v):
        return [] if v is None else v
    
    class Config:
        from_attributes = True


class StoryDetail(StoryRead):
    """Story with its content resolved from content_file when needed"""
    resolved_content: Optional[str] = None
