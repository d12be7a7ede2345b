"""
Logging configuration for audiobook-dl.

This module sets up the logging system with multiple outputs:
    - Console: Real-time messages with tqdm-compatible formatting
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - fetch_failures_<ts>.log: Records whose YouTube metadata lookup failed

File outputs are only created when a log directory is configured
(output.log_directory in config.yaml). Without one, logging goes to the
console only, which is the common case for a one-shot script generator.

Usage:
    from audiobook_dl.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Generating script")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (a run timestamp is appended)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
FETCH_FAILURES_PREFIX = "fetch_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log format for console output (compact, tqdm-friendly)
CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    Messages go through tqdm.write(), which prints above an active progress
    bar on stderr instead of tearing it apart.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        """
        Initialize the tqdm-compatible handler.

        Args:
            stream: Output stream for log messages. Defaults to the current
                    sys.stderr, resolved at emit time so that test runners
                    capturing stderr see the output.
        """
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class FetchFailedRecordHandler(logging.Handler):
    """
    Handler that captures metadata fetch failures into a report file.

    This handler listens for log records that carry fetch failure extras
    and writes them to fetch_failures_<ts>.log in a simple, human-readable
    format:

        Author - Title
        https://www.youtube.com/watch?v=xxxxxxxxxxx
        Failed to fetch metadata: 404 Not Found

    The handler looks for specific extra fields in log records:
        - 'fetch_failed_record_label': "Author - Title" (or the record id)
        - 'fetch_failed_url': The canonical watch URL
        - 'fetch_failed_reason': The error message

    Only records containing these fields are written to the report.

    Usage:
        log_fetch_failure(logger, record, watch_url, error_message)
    """

    def __init__(self, report_path: Path) -> None:
        """
        Initialize the failed record handler.

        Args:
            report_path: Path to the report file. It is created/overwritten
                         when open() is called.
        """
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        """
        Write fetch failure info to the report if present in the log record.

        Args:
            record: The log record to check and potentially write.
        """
        if not hasattr(record, "fetch_failed_record_label"):
            return

        if self.report_file is None:
            return

        try:
            label = getattr(record, "fetch_failed_record_label", "Unknown")
            url = getattr(record, "fetch_failed_url", "")
            reason = getattr(record, "fetch_failed_reason", "")

            self.report_file.write(f"{label}\n")
            self.report_file.write(f"{url}\n")
            self.report_file.write(f"{reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created. When None only
                 the console handler is installed.
        verbose: Show DEBUG messages on the console (INFO otherwise).

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add the tqdm-compatible console handler with colors
        3. If log_dir is given:
           a. Create it if missing
           b. Add full log file handler (DEBUG, timestamped format)
           c. Add error log file handler (ERROR+ through ErrorOnlyFilter)
           d. Add the fetch failures report handler

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before starting the event loop.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        handler.close()
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    # urllib3 is chatty at DEBUG about every connection
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = FetchFailedRecordHandler(
        log_dir / f"{FETCH_FAILURES_PREFIX}_{timestamp}.log"
    )
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'audiobook_dl.core.config'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called propagate to the
        root logger, which has no handlers until setup_logging() runs.
    """
    return logging.getLogger(name)


def format_filled_message(label: str, fields: list[str]) -> str:
    """
    Format an 'Auto-filled' message with colors.

    Args:
        label: Record label, usually "Author - Title".
        fields: Names of the fields that were filled.
    """
    return (
        f"{Colors.GREEN}Auto-filled{Colors.RESET} "
        f"{', '.join(fields)}: {label}"
    )


def format_conflict_message(label: str, count: int) -> str:
    """Format a 'Metadata differs' warning message with colors."""
    noun = "field" if count == 1 else "fields"
    return (
        f"{Colors.YELLOW}Metadata differs{Colors.RESET} "
        f"({count} {noun}): {label}"
    )


def log_fetch_failure(
    logger: logging.Logger,
    label: str,
    watch_url: str,
    error_message: str
) -> None:
    """
    Log a record whose metadata fetch failed.

    Logs a WARNING (the failure is recoverable) and attaches the extra
    fields that FetchFailedRecordHandler writes to the failures report.

    Args:
        logger: The logger to use for the message.
        label: Human label for the record ("Author - Title" or its id).
        watch_url: The canonical watch URL that was looked up.
        error_message: Description of why the fetch failed.

    Example:
        log_fetch_failure(
            logger,
            label="Frank Herbert - Dune",
            watch_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            error_message="Failed to fetch metadata: 404 Not Found"
        )
    """
    logger.warning(
        f"Metadata fetch failed: {label} - {error_message}",
        extra={
            "fetch_failed_record_label": label,
            "fetch_failed_url": watch_url,
            "fetch_failed_reason": error_message,
        }
    )


def shutdown_logging() -> None:
    """
    Properly shut down the logging system.

    Flushes and closes all handlers on the root logger and removes them.
    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
