"""
Custom exceptions for the report ETL pipeline with structured error context.

Each exception carries a context dictionary so failures can be logged with
enough detail to identify the endpoint, page or chunk involved.

Exception Hierarchy:
    ETLException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── APIExtractionError
    │   └── NetworkError
    ├── TransformationError
    │   └── DataFormatError
    └── LoadError
        ├── ArchiveError
        └── ChunkInsertError
"""

from typing import Optional, Dict, Any
from datetime import datetime


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (endpoint, page, chunk, etc.)
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
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


class ConfigurationError(ETLException):
    """
    Exception raised when the process cannot start.

    Covers missing credentials, an unknown endpoint selection and an
    invalid time window. Always fatal.
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    The report API answered, but not with usable data.

    Context should include:
        - endpoint: Endpoint name
        - page: Page index that failed
        - status_code: API status code (codStatus), if present
        - status_description: API status description, if present
    """
    pass


class NetworkError(ExtractionError):
    """
    A page request failed at the transport or HTTP layer.

    Context should include:
        - endpoint: Endpoint name
        - page: Page index that failed
        - http_status: HTTP status code, if a response was received
        - response_body: Response body (truncated)
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class DataFormatError(TransformationError):
    """
    A record value cannot be written as a CSV field.

    Context should include:
        - row: Index of the offending record
        - column: Column name
        - value_type: Python type of the value
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class ArchiveError(LoadError):
    """
    Exception raised when writing the CSV archive to object storage fails.

    Context should include:
        - bucket: Destination bucket
        - key: Object key
    """
    pass


class ChunkInsertError(LoadError):
    """
    Exception raised when a chunk insert fails during a bulk load.

    Chunks inserted before the failing one stay committed.

    Context should include:
        - table_name: Destination table
        - chunk_index: 1-based index of the failing chunk
        - total_chunks: Number of chunks in the load
        - rows_committed: Rows inserted by earlier chunks
    """

    def __init__(
        self,
        message: str,
        table_name: str,
        chunk_index: int,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = dict(context or {})
        context.update({"table_name": table_name, "chunk_index": chunk_index})
        super().__init__(message, context, original_exception)
        self.table_name = table_name
        self.chunk_index = chunk_index
