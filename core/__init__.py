"""
Core utilities and configuration for the Argus report ETL.

Modules:
    config: Settings from environment variables and time-window resolution
    database: Async SQLAlchemy engine for destination table inserts
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration
    storage: Supabase Storage client used for CSV archives

Usage:
    from core.config import Settings, resolve_time_window
    from core.database import create_engine
    from core.exceptions import ChunkInsertError, ConfigurationError
    from core.logging import setup_logging

Example:
    settings = Settings()
    setup_logging(settings.LOG_LEVEL)
    window = resolve_time_window(settings)
"""

__all__ = [
    "Settings",
    "resolve_time_window",
    "create_engine",
    "setup_logging",
    "SupabaseObjectStore",
    # Exceptions
    "ETLException",
    "ConfigurationError",
    "ExtractionError",
    "APIExtractionError",
    "NetworkError",
    "TransformationError",
    "DataFormatError",
    "LoadError",
    "ArchiveError",
    "ChunkInsertError",
]
