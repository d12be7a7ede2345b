"""
Exception classes for audiobook-dl.

This module defines the custom exceptions used throughout the application.
Malformed user input (a URL that is not a YouTube link, a short CSV row)
is never an exception: those paths return None or drop the row. Only the
conditions below are signalled with exceptions.

Exception Hierarchy:
    AudiobookDlError (base)
        ConfigError - Configuration file issues
        MetadataFetchError - oEmbed lookup failed (network or HTTP status)
        ScriptValidationError - No record (or not every record) can be scripted
"""


class AudiobookDlError(Exception):
    """
    Base exception for all audiobook-dl errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all audiobook-dl errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., record id, URL).

    Example:
        try:
            # some operation
        except AudiobookDlError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'record_id': Record involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(AudiobookDlError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly named config file does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., unknown cookie browser, negative delay)

    Example:
        raise ConfigError(
            "'csv.expected_columns' must be a positive integer",
            details={'field': 'csv.expected_columns', 'value': 0}
        )
    """
    pass


class MetadataFetchError(AudiobookDlError):
    """
    Raised when YouTube metadata could not be fetched for a video.

    This is a NON-CRITICAL error. The reconciliation engine catches it,
    leaves the record unchanged and reports it as per-record state; the
    record stays eligible for a later retry.

    Common causes:
        - Video removed, private or embedding disabled (HTTP 401/403/404)
        - Rate limiting (HTTP 429)
        - Network connectivity issues or timeout
        - Response body is not JSON

    Attributes:
        video_id: The video id that was looked up.
        status_code: HTTP status code for HTTP failures, None for transport errors.

    Example:
        raise MetadataFetchError(
            "Failed to fetch metadata: 404 Not Found",
            video_id="dQw4w9WgXcQ",
            status_code=404
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        video_id: str | None = None,
        status_code: int | None = None
    ) -> None:
        """
        Initialize the fetch error with the looked-up id and HTTP status.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            video_id: The 11-character YouTube id that failed.
            status_code: HTTP status if the server answered, else None.
        """
        super().__init__(message, details)
        self.video_id = video_id
        self.status_code = status_code

    @property
    def is_http_error(self) -> bool:
        """True when the server answered with a non-success status."""
        return self.status_code is not None


class ScriptValidationError(AudiobookDlError):
    """
    Raised when script generation is refused.

    Generation is refused when no record passes the completeness check
    (url, title, author and narrator present, url is a YouTube video), or
    in strict mode when any record fails it. The generator never silently
    produces an empty script.

    Attributes:
        invalid_count: Number of records that failed the check.
        valid_count: Number of records that passed it.

    Example:
        raise ScriptValidationError(
            "3 records invalid",
            invalid_count=3,
            valid_count=0
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        invalid_count: int = 0,
        valid_count: int = 0
    ) -> None:
        super().__init__(message, details)
        self.invalid_count = invalid_count
        self.valid_count = valid_count
