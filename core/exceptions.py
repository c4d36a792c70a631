"""
Custom exceptions for the curation backend with structured error context.

Stage gate violations are ordinary return values (a list of messages) and
never appear here. These exceptions cover programming errors, blocked
writes, missing records, and failures of the import/export pipelines.

Exception Hierarchy:
    CurationException (base)
    ├── InvalidStageError (also ValueError)
    ├── StageTransitionError
    ├── InvalidRecordError (also ValueError)
    ├── ResourceNotFoundError
    ├── RecordImportError
    │   └── DataFormatError
    ├── ExportError
    └── DatabaseError
"""

from typing import Optional, Dict, Any, List
from datetime import datetime


class CurationException(Exception):
    """
    Base exception for all curation errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information (source id, stage, path, etc.)
        original_exception: The original exception that was caught (if any)
    """
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()
        
        self.context["error_timestamp"] = self.timestamp.isoformat()
        
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception
    
    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"
        
        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        
        return base_msg
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Stage Pipeline Errors
# ============================================================================

class InvalidStageError(CurationException, ValueError):
    """
    Raised when a stage argument is outside 1-4 or not an integer.
    
    This is a caller bug, not a data-quality problem.
    
    Context should include:
        - stage: The offending value
    """
    pass


class StageTransitionError(CurationException):
    """
    Raised by the write path when a stage change is refused.
    
    Attributes:
        violations: Every unmet requirement, in gate order
    
    Context should include:
        - source_id: ID of the source
        - current_stage: Stage before the attempted change
        - target_stage: Requested stage
    """
    
    def __init__(
        self,
        message: str,
        violations: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.violations = list(violations or [])
        self.context["violations"] = self.violations


class InvalidRecordError(CurationException, ValueError):
    """
    Raised when a write would leave a record inconsistent across fields
    (for example year_end earlier than year_start after a partial update).
    
    Context should include:
        - source_id: ID of the source
    """
    pass


# ============================================================================
# Lookup Errors
# ============================================================================

class ResourceNotFoundError(CurationException):
    """
    Raised when a Source or Story does not exist.
    
    Context should include:
        - resource: "source" or "story"
        - resource_id: The requested id
    """
    pass


# ============================================================================
# Import / Export Errors
# ============================================================================

class RecordImportError(CurationException):
    """
    Raised when a record file cannot be imported.
    
    Context should include:
        - file_path: Path to the JSON record
        - record_kind: "source" or "story"
    """
    pass


class DataFormatError(RecordImportError):
    """Record file is not valid JSON or fails schema validation."""
    pass


class ExportError(CurationException):
    """
    Raised when the static export cannot be written.
    
    Context should include:
        - output_dir: Target directory
        - file_name: File being written (if applicable)
    """
    pass


# ============================================================================
# Persistence Errors
# ============================================================================

class DatabaseError(CurationException):
    """
    Raised when database operations fail.
    
    Context should include:
        - operation: Type of database operation (SELECT, INSERT, UPDATE, DELETE)
        - table_name: Name of the table
    """
    pass
