"""
Core utilities and configuration for the historical source curation backend.

Modules:
    config: Application configuration and environment variable management
    database: Database connection and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import StageTransitionError, ResourceNotFoundError
    from core.logging import setup_logging

Example:
    setup_logging()
    
    async with async_session_maker() as session:
        repo = SourceRepository(session)
        source = await repo.get(1)
"""

from core.config import settings
from core.logging import setup_logging
from core.exceptions import (
    CurationException,
    InvalidStageError,
    StageTransitionError,
    InvalidRecordError,
    ResourceNotFoundError,
    RecordImportError,
    DataFormatError,
    ExportError,
    DatabaseError,
)

__all__ = [
    "settings",
    "setup_logging",
    # Exceptions
    "CurationException",
    "InvalidStageError",
    "InvalidRecordError",
    "StageTransitionError",
    "ResourceNotFoundError",
    "RecordImportError",
    "DataFormatError",
    "ExportError",
    "DatabaseError",
]
