"""
Utility functions for audiobook-dl.

This module provides small helpers shared across the application:
    - Filename sanitization (using yt-dlp's sanitize_filename)
    - Text case transforms for record fields

Usage:
    from audiobook_dl.utils import sanitize_filename, transform_field

    collection = transform_field(collection, record_id, "title", "name")
"""

from typing import Callable

from yt_dlp.utils import sanitize_filename as yt_dlp_sanitize

from audiobook_dl.core.collection import RecordCollection, Snapshot
from audiobook_dl.core.logger import get_logger


logger = get_logger(__name__)


# Fields holding free text that the case transforms apply to
TEXT_FIELDS = ("title", "author", "narrator", "series")


def sanitize_filename(name: str, restricted: bool = False) -> str:
    """
    Sanitize a string for use as part of a filename.

    Uses yt-dlp's sanitize_filename so generated names match what yt-dlp
    itself would produce.

    Args:
        name: The string to sanitize (e.g., book title, author).
        restricted: If True, use more aggressive sanitization that
                   removes all special characters. Default False.

    Examples:
        sanitize_filename("AC/DC")         # "AC⧸DC"
        sanitize_filename("What?!")        # "What？!"
    """
    return yt_dlp_sanitize(name, restricted=restricted)


# =============================================================================
# Text transforms
# =============================================================================

def to_sentence_case(text: str) -> str:
    """First character upper case, the rest lower case."""
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()


def to_name_case(text: str) -> str:
    """
    Capitalize every space-separated word.

    Only single spaces split words, so runs of spaces are preserved.
    Example: "the LORD of the rings" -> "The Lord Of The Rings"
    """
    if not text:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def to_upper_case(text: str) -> str:
    return text.upper()


def to_lower_case(text: str) -> str:
    return text.lower()


TEXT_TRANSFORMS: dict[str, Callable[[str], str]] = {
    "sentence": to_sentence_case,
    "name": to_name_case,
    "upper": to_upper_case,
    "lower": to_lower_case,
}


def transform_field(
    collection: RecordCollection,
    record_id: str,
    field_name: str,
    transform: str
) -> Snapshot:
    """
    Apply a case transform to one text field of one record.

    Args:
        collection: The collection holding the record.
        record_id: Record to change. Unknown ids are a no-op.
        field_name: One of TEXT_FIELDS.
        transform: Key of TEXT_TRANSFORMS ("sentence", "name", "upper", "lower").

    Returns:
        The collection snapshot after the update.

    Raises:
        ValueError: For an unknown field or transform name.
    """
    if field_name not in TEXT_FIELDS:
        raise ValueError(
            f"Cannot transform field '{field_name}'. Valid fields: {', '.join(TEXT_FIELDS)}"
        )
    try:
        func = TEXT_TRANSFORMS[transform]
    except KeyError:
        raise ValueError(
            f"Unknown transform '{transform}'. Valid options: {', '.join(TEXT_TRANSFORMS)}"
        ) from None

    record = collection.get(record_id)
    if record is None:
        logger.debug(f"transform: unknown record id {record_id}")
        return collection.records

    return collection.update(record_id, **{field_name: func(getattr(record, field_name))})
