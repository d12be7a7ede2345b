"""
Comparison between a record and the metadata fetched for its URL.

Everything here is pure: functions take frozen Records and return new
ones, so they can be used by the interactive reconcile flow and by the
batch auto-fill alike.

Field Mapping:
    record.title   <-> fetched.title
    record.author  <-> fetched.author_name

Rules:
    - A conflict exists when the record field is non-empty after trimming
      and is not exactly equal to the fetched value (no trimming, an empty
      fetched value conflicts too)
    - Both values are kept as they are, so "fetched" adopts exactly what
      YouTube returned
    - auto_fill_empty() writes only into fields that are empty after
      trimming; it never overwrites
    - A "current" choice never changes a field, "fetched" always adopts
      the fetched value
"""

from dataclasses import dataclass, replace
from typing import Literal, Mapping, Sequence

from audiobook_dl.core.models import Record
from audiobook_dl.youtube.metadata import FetchedMetadata


Choice = Literal["current", "fetched"]

CHOICE_CURRENT: Choice = "current"
CHOICE_FETCHED: Choice = "fetched"

# Record field -> FetchedMetadata attribute, in reporting order
FIELD_MAP = (
    ("title", "title"),
    ("author", "author_name"),
)


@dataclass(frozen=True)
class MetadataConflict:
    """
    One field where the record and YouTube disagree.

    Attributes:
        field: "title" or "author".
        current_value: Value in the record.
        fetched_value: Value reported by YouTube.
    """
    field: str
    current_value: str
    fetched_value: str


def compare_metadata(record: Record, fetched: FetchedMetadata) -> list[MetadataConflict]:
    """
    List the fields where the record has a value that differs from YouTube's.

    Title comes first, then author.
    """
    conflicts = []
    for record_field, fetched_attr in FIELD_MAP:
        current = getattr(record, record_field)
        incoming = getattr(fetched, fetched_attr)
        if current.strip() and current != incoming:
            conflicts.append(MetadataConflict(record_field, current, incoming))
    return conflicts


def default_choices(conflicts: Sequence[MetadataConflict]) -> dict[str, Choice]:
    """Keep the current value for every conflicting field."""
    return {conflict.field: CHOICE_CURRENT for conflict in conflicts}


def auto_fill_empty(record: Record, fetched: FetchedMetadata) -> Record:
    """
    Fill title and author from fetched metadata where the record has none.

    Returns the same Record object when nothing was filled.
    """
    changes = {}
    for record_field, fetched_attr in FIELD_MAP:
        incoming = getattr(fetched, fetched_attr)
        if incoming.strip() and not getattr(record, record_field).strip():
            changes[record_field] = incoming
    return replace(record, **changes) if changes else record


def filled_fields(before: Record, after: Record) -> list[str]:
    """Names of the metadata fields that differ between two versions."""
    return [name for name, _ in FIELD_MAP if getattr(before, name) != getattr(after, name)]


def merge_choices(
    record: Record,
    conflicts: Sequence[MetadataConflict],
    choices: Mapping[str, Choice]
) -> Record:
    """
    Apply per-field choices to a record.

    A missing choice counts as "current". Returns the same Record object
    when every choice keeps the current value.
    """
    changes = {}
    for conflict in conflicts:
        if choices.get(conflict.field, CHOICE_CURRENT) == CHOICE_FETCHED:
            changes[conflict.field] = conflict.fetched_value
    return replace(record, **changes) if changes else record


def resolve(
    record: Record,
    fetched: FetchedMetadata,
    conflicts: Sequence[MetadataConflict],
    choices: Mapping[str, Choice]
) -> Record:
    """
    Produce the reconciled record.

    Empty fields are filled regardless of the choices, and conflicting
    fields follow their choice. The two never touch the same field, since
    a conflict requires a non-empty current value.

    Example:
        record  = Record(title="Foo", author="")
        fetched = FetchedMetadata(title="Bar", author_name="Baz")
        conflicts = compare_metadata(record, fetched)   # one title conflict
        resolve(record, fetched, conflicts, {})          # title "Foo", author "Baz"
    """
    return merge_choices(auto_fill_empty(record, fetched), conflicts, choices)
