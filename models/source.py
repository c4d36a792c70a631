from sqlalchemy import Column, Integer, String, Text, Float, DateTime, JSON, Index
from datetime import datetime
from models.base import Base, SourceType, Era


class Source(Base):
    """
    One historical geographic artifact under curation.
    
    Design:
    - era and source_type are stored as plain strings so that older records
      with unrecognised values still load; the API validates new writes
    - tiles is an ordered JSON list of {url, label, georeferenced, type,
      wms_layers}; order only matters for display layering
    - stage is the pipeline position (1-4); changed only through
      SourceRepository so the gate check runs
    """
    __tablename__ = "sources"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    
    # Descriptive fields
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    source_url = Column(String(2048), nullable=True)
    source_type = Column(String(50), nullable=False, default=SourceType.MAP_OVERLAY.value, index=True)
    era = Column(String(50), nullable=False, default=Era.MODERN.value, index=True)
    
    # Dating (year_start NULL means undated)
    year_start = Column(Integer, nullable=True, index=True)
    year_end = Column(Integer, nullable=True)
    
    # Pipeline
    stage = Column(Integer, nullable=False, default=1, index=True)
    
    # Spatial extent, WGS84 degrees
    bounds_west = Column(Float, nullable=True)
    bounds_south = Column(Float, nullable=True)
    bounds_east = Column(Float, nullable=True)
    bounds_north = Column(Float, nullable=True)
    
    # Stage gate fields
    iiif_url = Column(String(2048), nullable=True)  # IIIF manifest or info.json
    georeference_url = Column(String(2048), nullable=True)  # Georeference annotation or proof
    tiles = Column(JSON, nullable=False, default=list)
    
    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        Index("idx_source_stage_era", "stage", "era"),
    )
    
    def __repr__(self) -> str:
        return f"<Source id={self.id} stage={self.stage} name={self.name!r}>"
