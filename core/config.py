"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""
    
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data-geo.db"
    
    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    
    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    
    # Stage pipeline
    ENFORCE_STAGE_GATES: bool = True
    
    # Record folders (one JSON file per record, "<id>-<slug>.json")
    SOURCES_DIR: str = "sources"
    STORIES_DIR: str = "stories"
    DATA_DIR: str = "data"
    
    # Static export
    EXPORT_DIR: str = "public/data"
    EXPORT_SCHEDULE_ENABLED: bool = False
    EXPORT_INTERVAL_MINUTES: int = 30
    CZML_DOCUMENT_NAME: str = "Manchester Historical Data"
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
