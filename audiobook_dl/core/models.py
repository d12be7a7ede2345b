"""
Data models for audiobook records.

This module defines the immutable Record dataclass that represents one
audiobook entry (a YouTube video plus its bibliographic metadata), the
cookie source enumeration used by the script generator, and the field
validation used both for user feedback and for the script generation gate.

Design Decisions:
    - Record is frozen; every change produces a new Record via
      dataclasses.replace(), so collection snapshots can be compared by
      identity or value
    - Optional text fields are empty strings rather than None, the way the
      CSV contract and the filename template treat them
    - Ids are opaque uuid4 hex strings, generated once and never reused

Usage:
    from audiobook_dl.core.models import Record, new_record_id

    record = Record.empty()
    record = replace(record, title="Dune", author="Frank Herbert")
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from audiobook_dl.youtube.url import is_valid_youtube_url


# Field names whose text is compared against fetched metadata
METADATA_FIELDS = ("title", "author")

# Field names that must be non-empty for a record to be scripted
REQUIRED_FIELDS = ("url", "title", "author", "narrator")

# Inclusive range for a publication year
MIN_YEAR = 1000
MAX_YEAR = 9999


def new_record_id() -> str:
    """Return a fresh opaque record id."""
    return uuid.uuid4().hex


class CookieSource(str, Enum):
    """
    Browser whose cookies yt-dlp should load (--cookies-from-browser).

    NONE disables the flag. The remaining values are the browser names
    yt-dlp accepts verbatim.
    """
    NONE = "none"
    BRAVE = "brave"
    CHROME = "chrome"
    CHROMIUM = "chromium"
    EDGE = "edge"
    FIREFOX = "firefox"
    OPERA = "opera"
    SAFARI = "safari"
    VIVALDI = "vivaldi"
    WHALE = "whale"

    @classmethod
    def choices(cls) -> list[str]:
        """All accepted values, in declaration order."""
        return [member.value for member in cls]


@dataclass(frozen=True)
class Record:
    """
    Immutable representation of one audiobook entry.

    Attributes:
        id: Opaque identifier, unique within a collection.
            Example: "3f2a9c0e5d7b4e1f8a6c2b9d0e4f7a1c"

        url: Raw or canonical YouTube URL, may be empty.
             Example: "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

        title: Book title. Example: "Dune"

        author: Book author. Example: "Frank Herbert"

        narrator: Narrator name. Example: "Scott Brick"

        series: Series name, empty when the book is standalone.
                Example: "Dune Chronicles"

        series_number: Position within the series, at least 1.

        year: Publication year (1000-9999) or None.
    """

    id: str = field(default_factory=new_record_id)
    url: str = ""
    title: str = ""
    author: str = ""
    narrator: str = ""
    series: str = ""
    series_number: int = 1
    year: int | None = None

    @classmethod
    def empty(cls) -> "Record":
        """Create a new empty record with a fresh id."""
        return cls(id=new_record_id())

    @property
    def label(self) -> str:
        """
        Short human label used in logs and prompts.

        Returns "Author - Title" when both are set, whichever one is set
        otherwise, and the record id as a last resort.
        """
        author = self.author.strip()
        title = self.title.strip()
        if author and title:
            return f"{author} - {title}"
        return author or title or self.id

    @property
    def is_blank(self) -> bool:
        """True if no user-visible field has been filled in."""
        return (
            not self.url.strip()
            and not self.title.strip()
            and not self.author.strip()
            and not self.narrator.strip()
            and not self.series.strip()
            and self.series_number == 1
            and not self.year
        )


def validate_record(record: Record) -> dict[str, str]:
    """
    Validate a record field by field.

    Args:
        record: The record to check.

    Returns:
        Mapping of field name to error message. Empty when the record
        is valid.

    Rules:
        - url: required and must resolve to a YouTube video
        - title, author, narrator: required (non-empty after trim)
        - series_number: at least 1
        - year: 1000-9999 when given
    """
    errors: dict[str, str] = {}

    if not record.url.strip():
        errors["url"] = "YouTube URL is required"
    elif not is_valid_youtube_url(record.url):
        errors["url"] = "Invalid YouTube URL format"

    if not record.title.strip():
        errors["title"] = "Book title is required"
    if not record.author.strip():
        errors["author"] = "Book author is required"
    if not record.narrator.strip():
        errors["narrator"] = "Narrator is required"

    if record.series_number < 1:
        errors["series_number"] = "Series number must be at least 1"
    if record.year is not None and not MIN_YEAR <= record.year <= MAX_YEAR:
        errors["year"] = "Year must be a valid 4-digit number"

    return errors


def is_complete(record: Record) -> bool:
    """
    Check whether a record can be turned into a download command.

    A record is complete when url, title, author and narrator are all
    non-empty after trimming and the url resolves to a YouTube video.
    """
    for name in REQUIRED_FIELDS:
        if not getattr(record, name).strip():
            return False
    return is_valid_youtube_url(record.url)
