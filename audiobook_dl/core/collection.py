"""
Record collection management.

The RecordCollection owns the ordered list of audiobook records for a
session. It is the only piece of shared mutable state in the application
and it is mutated in one way only: by replacing the whole snapshot.

Snapshot Discipline:
    - The snapshot is a tuple of frozen Record objects
    - Every operation builds a new tuple and swaps it in; nothing is
      modified in place
    - Every operation returns the new snapshot and notifies subscribers
    - Callers compare snapshots by identity to detect change

Invariant:
    The collection is never empty. Removing the last record replaces it
    with a fresh empty record (new id), and replacing the collection with
    an empty list yields one empty record.

Usage:
    from audiobook_dl.core.collection import RecordCollection

    collection = RecordCollection()
    snapshot = collection.add()
    record_id = snapshot[-1].id
    collection.update(record_id, title="Dune", author="Frank Herbert")
"""

from dataclasses import fields, replace
from typing import Any, Callable, Iterable

from audiobook_dl.core.logger import get_logger
from audiobook_dl.core.models import Record, new_record_id


logger = get_logger(__name__)


Snapshot = tuple[Record, ...]
Subscriber = Callable[[Snapshot], None]

# Attributes update() may touch; id is fixed at creation
EDITABLE_FIELDS = frozenset(f.name for f in fields(Record)) - {"id"}

# Attributes copied by clone(); url is deliberately left empty
CLONED_FIELDS = ("title", "author", "narrator", "series", "series_number", "year")


def _coerce_series_number(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 1
    return number if number >= 1 else 1


def _coerce_year(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        year = int(value)
    except (TypeError, ValueError):
        return None
    return year if year >= 1 else None


class RecordCollection:
    """
    Ordered, never-empty collection of Record objects.

    Attributes:
        records: Current snapshot (tuple of Record).

    Thread Safety:
        Not thread-safe. The application runs on one event loop, and
        callers must observe the latest snapshot between two mutations.
    """

    def __init__(self, records: Iterable[Record] | None = None) -> None:
        initial = tuple(records) if records is not None else ()
        self._records: Snapshot = initial or (Record.empty(),)
        self._imported_ids: frozenset[str] = frozenset()
        self._subscribers: list[Subscriber] = []

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def records(self) -> Snapshot:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def get(self, record_id: str) -> Record | None:
        """Return the record with the given id, or None."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every new snapshot.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, records: Snapshot) -> Snapshot:
        self._records = records or (Record.empty(),)
        for callback in list(self._subscribers):
            callback(self._records)
        return self._records

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self) -> Snapshot:
        """Append a new empty record."""
        return self._commit(self._records + (Record.empty(),))

    def remove(self, record_id: str) -> Snapshot:
        """
        Remove a record.

        If the record is the only one left, the whole collection is replaced
        with a single fresh empty record carrying a new id. Unknown ids leave
        the collection untouched.
        """
        if self.get(record_id) is None:
            logger.debug(f"remove: unknown record id {record_id}")
            return self._records

        self._imported_ids = self._imported_ids - {record_id}

        if len(self._records) == 1:
            return self._commit((Record.empty(),))

        return self._commit(tuple(r for r in self._records if r.id != record_id))

    def clone(self, record_id: str) -> Snapshot:
        """
        Append a copy of a record with a new id and an empty url.

        Unknown ids leave the collection untouched.
        """
        source = self.get(record_id)
        if source is None:
            logger.debug(f"clone: unknown record id {record_id}")
            return self._records

        copied = {name: getattr(source, name) for name in CLONED_FIELDS}
        clone = Record(id=new_record_id(), url="", **copied)
        return self._commit(self._records + (clone,))

    def update(self, record_id: str, **changes: Any) -> Snapshot:
        """
        Merge field values into one record.

        Args:
            record_id: Record to change.
            **changes: Field name to new value. series_number falls back to 1
                       and year to None when the value is not a positive int.

        Raises:
            AttributeError: For a field name Record does not have (or "id").

        Unknown ids leave the collection untouched. An update that changes
        nothing does not produce a new snapshot.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise AttributeError(f"Record has no editable field(s): {', '.join(sorted(unknown))}")

        current = self.get(record_id)
        if current is None:
            logger.debug(f"update: unknown record id {record_id}")
            return self._records

        if "series_number" in changes:
            changes["series_number"] = _coerce_series_number(changes["series_number"])
        if "year" in changes:
            changes["year"] = _coerce_year(changes["year"])

        updated = replace(current, **changes)
        if updated == current:
            return self._records

        return self._commit(
            tuple(updated if r.id == record_id else r for r in self._records)
        )

    def replace_all(self, records: Iterable[Record], imported: bool = False) -> Snapshot:
        """
        Replace the whole collection (CSV import).

        Args:
            records: The new records. An empty iterable yields one empty record.
            imported: Flag the new records as CSV-imported so that the batch
                      metadata fetch skips them until release_imported().
        """
        new_records = tuple(records)
        self._imported_ids = (
            frozenset(r.id for r in new_records) if imported else frozenset()
        )
        return self._commit(new_records)

    def reset(self) -> Snapshot:
        """Drop every record and start over with one empty record."""
        self._imported_ids = frozenset()
        return self._commit((Record.empty(),))

    # =========================================================================
    # CSV-import flags
    # =========================================================================

    def is_imported(self, record_id: str) -> bool:
        return record_id in self._imported_ids

    def release_imported(self, record_ids: Iterable[str] | None = None) -> None:
        """
        Clear the CSV-imported flag.

        Args:
            record_ids: Ids to release. None releases every record.
        """
        if record_ids is None:
            self._imported_ids = frozenset()
        else:
            self._imported_ids = self._imported_ids - frozenset(record_ids)
