"""
Core module for audiobook-dl.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - logger: Logging system with console and optional file outputs
    - models: The Record dataclass and its validation
    - collection: The never-empty, snapshot-based record collection
    - config: Configuration loading and validation
    - progress: Progress bar for the batch metadata fetch

Usage:
    from audiobook_dl.core import (
        Config, load_config,
        Record, RecordCollection,
        setup_logging, get_logger,
        AudiobookDlError, ConfigError
    )
"""

from audiobook_dl.core.exceptions import (
    AudiobookDlError,
    ConfigError,
    MetadataFetchError,
    ScriptValidationError,
)
from audiobook_dl.core.logger import (
    get_logger,
    log_fetch_failure,
    setup_logging,
    shutdown_logging,
)
from audiobook_dl.core.models import (
    CookieSource,
    Record,
    is_complete,
    new_record_id,
    validate_record,
)
from audiobook_dl.core.collection import RecordCollection
from audiobook_dl.core.config import (
    Config,
    CsvConfig,
    MetadataConfig,
    OutputConfig,
    ScriptConfig,
    load_config,
)

__all__ = [
    # Config
    "Config",
    "ScriptConfig",
    "CsvConfig",
    "MetadataConfig",
    "OutputConfig",
    "load_config",
    # Models
    "Record",
    "CookieSource",
    "new_record_id",
    "validate_record",
    "is_complete",
    "RecordCollection",
    # Exceptions
    "AudiobookDlError",
    "ConfigError",
    "MetadataFetchError",
    "ScriptValidationError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_fetch_failure",
    "shutdown_logging",
]
