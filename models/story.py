from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from datetime import datetime
from models.base import Base, Era


class Story(Base):
    """
    Narrative artifact placed on the timeline by its own dates.
    
    source_ids is a non-owning list of Source ids; deleting a Source does not
    touch the stories that mention it.
    """
    __tablename__ = "stories"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    content_file = Column(String(500), nullable=True)  # Relative to DATA_DIR
    
    year_start = Column(Integer, nullable=False, index=True)
    year_end = Column(Integer, nullable=True)
    era = Column(String(50), nullable=False, default=Era.MODERN.value)
    
    source_ids = Column(JSON, nullable=False, default=list)
    
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def __repr__(self) -> str:
        return f"<Story id={self.id} title={self.title!r}>"
