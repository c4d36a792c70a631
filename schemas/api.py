"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(default="healthy", description="Overall system status: healthy, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    total_sources: int = 0
    total_stories: int = 0
    
    @model_validator(mode="after")
    def determine_status(self):
        """Determine overall health status"""
        if not self.database_connected:
            self.status = "unhealthy"
        return self
    
    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "total_sources": 42,
                "total_stories": 7
            }
        }


# ============================================================================
# Stage Gate Schemas
# ============================================================================

class StageGateReport(BaseModel):
    """What a source still needs, stage by stage"""
    source_id: int
    stage: int
    stage_label: str
    next_stage: Optional[int] = None
    next_stage_label: Optional[str] = None
    can_advance: bool
    violations: List[str] = Field(default_factory=list, description="Requirements blocking the next stage")
    requirements: Dict[int, List[str]] = Field(
        default_factory=dict,
        description="Unmet cumulative requirements for reaching each stage 2-4"
    )
    
    class Config:
        json_schema_extra = {
            "example": {
                "source_id": 7,
                "stage": 2,
                "stage_label": "Acquired",
                "next_stage": 3,
                "next_stage_label": "Georeferenced",
                "can_advance": False,
                "violations": ["Stage 3 requires georeference url"],
                "requirements": {
                    "2": [],
                    "3": ["Stage 3 requires georeference url"],
                    "4": [
                        "Stage 3 requires georeference url",
                        "Stage 4 requires at least one georeferenced tile"
                    ]
                }
            }
        }


class DeleteResponse(BaseModel):
    success: bool = True


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: Optional[str] = None
    violations: Optional[List[str]] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    
    class Config:
        json_schema_extra = {
            "example": {
                "error": "Stage transition blocked",
                "detail": "Source 4 cannot move from stage 1 to stage 2",
                "violations": ["Stage 2 requires source url"],
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
