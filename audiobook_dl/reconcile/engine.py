"""
Metadata reconciliation engine.

Keeps records in step with the metadata YouTube publishes for their URL.
Two entry points drive it:

    1. Single-record flow (on_url_field_changed / fetch)
       A URL edit is written to the collection at once, then a debounce
       timer starts. When the user has stopped typing, the URL is
       normalized and, if it points at a video not yet processed for that
       record, the oEmbed metadata is fetched. Empty fields are filled;
       conflicting fields are handed to the ConflictResolver callback.

    2. Batch flow (run_batch)
       Walks the collection in order and fetches metadata for every record
       whose canonical URL has not been processed yet, one at a time with a
       fixed pause in between. Only empty fields are filled; conflicts are
       reported but never resolved.

Per-record session:
    IDLE -> PENDING_DEBOUNCE -> FETCHING -> RESOLVED
    FETCHING -> IDLE on failure (the URL stays eligible for a retry)

Stale responses:
    Every fetch takes a generation number from the record's session. A
    result is applied only if no newer fetch started for that record and
    the record's URL still normalizes to the same video. Otherwise it is
    dropped without touching the collection.

Concurrency:
    One asyncio event loop. The blocking HTTP call runs in a worker thread
    (asyncio.to_thread). In-flight fetches are never cancelled, only
    pending debounce timers are.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from audiobook_dl.core.collection import RecordCollection
from audiobook_dl.core.exceptions import MetadataFetchError
from audiobook_dl.core.logger import (
    format_conflict_message,
    format_filled_message,
    get_logger,
    log_fetch_failure,
)
from audiobook_dl.core.models import Record
from audiobook_dl.core.progress import FetchProgressBar
from audiobook_dl.reconcile.comparison import (
    Choice,
    MetadataConflict,
    auto_fill_empty,
    compare_metadata,
    default_choices,
    filled_fields,
    resolve,
)
from audiobook_dl.youtube.metadata import FetchedMetadata, MetadataFetcher
from audiobook_dl.youtube.url import CanonicalUrl, normalize


logger = get_logger(__name__)


DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_BATCH_DELAY_SECONDS = 0.3
DEFAULT_MAX_FETCH_ATTEMPTS = 3


ConflictResolver = Callable[[Record, list[MetadataConflict]], Mapping[str, Choice]]


class SessionPhase(Enum):
    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    FETCHING = "fetching"
    RESOLVED = "resolved"


@dataclass
class RecordSession:
    """
    Reconciliation state kept for one record.

    Attributes:
        phase: Where the record is in the state machine.
        last_video_id: Video id of the last fetch started for this record.
        debounce_task: Pending debounce timer, None once it has fired.
        loading: A fetch is in flight.
        last_error: Message of the last failed fetch, cleared by the next one.
        generation: Incremented by every fetch start; guards stale results.
    """
    phase: SessionPhase = SessionPhase.IDLE
    last_video_id: str | None = None
    debounce_task: asyncio.Task | None = None
    loading: bool = False
    last_error: str | None = None
    generation: int = 0


@dataclass(frozen=True)
class FetchOutcome:
    """
    Result of one metadata fetch for one record.

    Attributes:
        record_id: The record the fetch was made for.
        canonical: The canonical URL that was looked up.
        metadata: What YouTube returned, None on failure.
        conflicts: Fields that differed (both sides non-empty).
        filled: Fields that were empty and got filled.
        error: Failure message, None on success.
        applied: The result was written to the collection.
        stale: The result arrived after the record moved on and was dropped.
    """
    record_id: str
    canonical: CanonicalUrl
    metadata: FetchedMetadata | None = None
    conflicts: tuple[MetadataConflict, ...] = ()
    filled: tuple[str, ...] = ()
    error: str | None = None
    applied: bool = False
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """
    Summary of one run_batch() call.

    Attributes:
        eligible: Records that were fetched.
        filled: Records where at least one empty field was filled.
        unchanged: Records fetched successfully with nothing to fill.
        failed: Records whose fetch failed.
        skipped_exhausted: Records skipped because their URL hit the
                           attempt cap.
        failures: (record label, watch URL, error message) per failure.
    """
    eligible: int = 0
    filled: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped_exhausted: int = 0
    failures: list[tuple[str, str, str]] = field(default_factory=list)


class MetadataReconciler:
    """
    Fetches YouTube metadata for records and merges it into the collection.

    Attributes:
        collection: The records being reconciled.
        fetcher: Metadata source (OEmbedMetadataFetcher in production).
        conflict_resolver: Callback choosing "current"/"fetched" per
                           conflicting field. None keeps current values.
        debounce_seconds: Quiet time after a URL edit before fetching.
        batch_delay_seconds: Pause between two batch fetches.
        max_fetch_attempts: Failed fetches per canonical URL before
                            run_batch() stops trying it.
        show_progress: Draw a progress bar during run_batch().

    Example:
        reconciler = MetadataReconciler(collection, OEmbedMetadataFetcher())
        report = await reconciler.run_batch()
        print(f"{report.filled} records filled, {report.failed} failed")
    """

    def __init__(
        self,
        collection: RecordCollection,
        fetcher: MetadataFetcher,
        conflict_resolver: ConflictResolver | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        max_fetch_attempts: int = DEFAULT_MAX_FETCH_ATTEMPTS,
        show_progress: bool = False
    ) -> None:
        self.collection = collection
        self.fetcher = fetcher
        self.conflict_resolver = conflict_resolver
        self.debounce_seconds = debounce_seconds
        self.batch_delay_seconds = batch_delay_seconds
        self.max_fetch_attempts = max_fetch_attempts
        self.show_progress = show_progress

        self._sessions: dict[str, RecordSession] = {}
        self._processed: set[str] = set()
        self._failures: dict[str, int] = {}

    # =========================================================================
    # State access
    # =========================================================================

    def session(self, record_id: str) -> RecordSession:
        """Return the session for a record, creating it on first use."""
        session = self._sessions.get(record_id)
        if session is None:
            session = RecordSession()
            self._sessions[record_id] = session
        return session

    @property
    def processed_urls(self) -> frozenset[str]:
        return frozenset(self._processed)

    def failure_count(self, watch_url: str) -> int:
        return self._failures.get(watch_url, 0)

    def reset_failures(self) -> None:
        """Forget failure counts so capped URLs become eligible again."""
        self._failures.clear()

    def prune_processed(self) -> None:
        """
        Forget processed URLs and sessions no longer backed by a record.

        A URL removed from the collection and pasted back later is fetched
        again.
        """
        present = set()
        for record in self.collection.records:
            canonical = normalize(record.url)
            if canonical is not None:
                present.add(canonical.watch_url)
        self._processed &= present

        live_ids = {record.id for record in self.collection.records}
        for record_id in list(self._sessions):
            if record_id not in live_ids:
                self._drop_session(record_id)

    def _drop_session(self, record_id: str) -> None:
        session = self._sessions.pop(record_id)
        if session.debounce_task is not None:
            session.debounce_task.cancel()

    def cancel_pending(self) -> None:
        """Cancel every pending debounce timer."""
        for session in self._sessions.values():
            if session.debounce_task is not None:
                session.debounce_task.cancel()
                session.debounce_task = None
                if session.phase is SessionPhase.PENDING_DEBOUNCE:
                    session.phase = SessionPhase.IDLE

    # =========================================================================
    # Single-record flow
    # =========================================================================

    def on_url_field_changed(self, record_id: str, raw_value: str) -> asyncio.Task | None:
        """
        Handle an edit of a record's URL field.

        The raw value is stored immediately. Any pending debounce timer for
        the record is cancelled and a new one started; the returned task
        resolves to the FetchOutcome, or None when no fetch was needed.

        Must be called from a running event loop.

        Returns:
            The debounce task, or None when the record does not exist.
        """
        if self.collection.get(record_id) is None:
            logger.debug(f"URL edit for unknown record {record_id} ignored")
            return None

        self.collection.update(record_id, url=raw_value)

        session = self.session(record_id)
        if session.debounce_task is not None:
            session.debounce_task.cancel()

        session.phase = SessionPhase.PENDING_DEBOUNCE
        task = asyncio.get_running_loop().create_task(
            self._debounced_lookup(record_id, raw_value)
        )
        session.debounce_task = task
        return task

    async def _debounced_lookup(self, record_id: str, raw_value: str) -> FetchOutcome | None:
        await asyncio.sleep(self.debounce_seconds)

        session = self.session(record_id)
        # From here on a newer edit must not cancel us
        session.debounce_task = None

        canonical = normalize(raw_value)
        if canonical is None:
            if not session.loading:
                session.phase = SessionPhase.IDLE
            return None

        if canonical.video_id == session.last_video_id:
            logger.debug(f"{canonical.watch_url} already processed for record {record_id}")
            if not session.loading:
                session.phase = SessionPhase.RESOLVED
            return None

        return await self.fetch(record_id, canonical)

    async def fetch(
        self,
        record_id: str,
        canonical: CanonicalUrl,
        resolve_conflicts: bool = True
    ) -> FetchOutcome:
        """
        Fetch metadata for one record and merge it.

        Args:
            record_id: Record to update.
            canonical: Canonical URL to look up.
            resolve_conflicts: Hand conflicts to the resolver callback.
                               False fills empty fields only.

        Returns:
            FetchOutcome describing what happened. Failures are reported in
            the outcome, not raised.
        """
        session = self.session(record_id)
        session.generation += 1
        generation = session.generation
        session.last_video_id = canonical.video_id
        session.phase = SessionPhase.FETCHING
        session.loading = True
        session.last_error = None

        try:
            metadata = await asyncio.to_thread(self.fetcher.fetch_metadata, canonical.video_id)
        except MetadataFetchError as e:
            error = e.message
        else:
            error = None
        finally:
            if session.generation == generation:
                session.loading = False

        if error is not None:
            return self._handle_failure(record_id, canonical, generation, error)

        if not self._is_current(record_id, canonical, generation):
            return self._drop_stale(record_id, canonical, generation, metadata)

        return self._apply(record_id, canonical, metadata, resolve_conflicts)

    def _is_current(self, record_id: str, canonical: CanonicalUrl, generation: int) -> bool:
        session = self._sessions.get(record_id)
        if session is None or session.generation != generation:
            return False
        record = self.collection.get(record_id)
        if record is None:
            return False
        now = normalize(record.url)
        return now is not None and now.video_id == canonical.video_id

    def _drop_stale(
        self,
        record_id: str,
        canonical: CanonicalUrl,
        generation: int,
        metadata: FetchedMetadata | None = None
    ) -> FetchOutcome:
        logger.debug(f"Discarding stale metadata for record {record_id} ({canonical.watch_url})")
        session = self._sessions.get(record_id)
        if session is not None and session.generation == generation:
            # The URL moved away; pasting this video back must fetch again
            session.last_video_id = None
            session.phase = SessionPhase.IDLE
        return FetchOutcome(record_id=record_id, canonical=canonical, metadata=metadata, stale=True)

    def _handle_failure(
        self,
        record_id: str,
        canonical: CanonicalUrl,
        generation: int,
        message: str
    ) -> FetchOutcome:
        self._failures[canonical.watch_url] = self._failures.get(canonical.watch_url, 0) + 1

        if not self._is_current(record_id, canonical, generation):
            self._drop_stale(record_id, canonical, generation)
            return FetchOutcome(record_id=record_id, canonical=canonical, error=message, stale=True)

        session = self.session(record_id)
        session.last_error = message
        session.last_video_id = None
        session.phase = SessionPhase.IDLE

        record = self.collection.get(record_id)
        label = record.label if record is not None else record_id
        log_fetch_failure(logger, label, canonical.watch_url, message)

        return FetchOutcome(record_id=record_id, canonical=canonical, error=message)

    def _apply(
        self,
        record_id: str,
        canonical: CanonicalUrl,
        metadata: FetchedMetadata,
        resolve_conflicts: bool
    ) -> FetchOutcome:
        record = self.collection.get(record_id)
        conflicts = compare_metadata(record, metadata)

        if conflicts:
            logger.warning(format_conflict_message(record.label, len(conflicts)))

        if resolve_conflicts and conflicts:
            if self.conflict_resolver is not None:
                choices = self.conflict_resolver(record, conflicts)
            else:
                choices = default_choices(conflicts)
            resolved = resolve(record, metadata, conflicts, choices)
        else:
            resolved = auto_fill_empty(record, metadata)

        filled = [
            name for name in filled_fields(record, resolved)
            if not getattr(record, name).strip()
        ]
        if resolved is not record:
            self.collection.update(record_id, title=resolved.title, author=resolved.author)
        if filled:
            logger.info(format_filled_message(resolved.label, filled))

        self._processed.add(canonical.watch_url)
        self._failures.pop(canonical.watch_url, None)
        self.session(record_id).phase = SessionPhase.RESOLVED

        return FetchOutcome(
            record_id=record_id,
            canonical=canonical,
            metadata=metadata,
            conflicts=tuple(conflicts),
            filled=tuple(filled),
            applied=True,
        )

    # =========================================================================
    # Batch flow
    # =========================================================================

    def eligible_records(self) -> list[tuple[Record, CanonicalUrl]]:
        """
        Records the next batch would fetch, in collection order.

        A record is eligible when its URL normalizes, it is not flagged as
        CSV-imported, its canonical URL has not been processed, and the URL
        has failed fewer than max_fetch_attempts times. A URL shared by
        several records is fetched for the first of them only.
        """
        eligible = []
        seen = set()
        for record in self.collection.records:
            if self.collection.is_imported(record.id):
                continue
            canonical = normalize(record.url)
            if canonical is None:
                continue
            if canonical.watch_url in self._processed or canonical.watch_url in seen:
                continue
            if self.failure_count(canonical.watch_url) >= self.max_fetch_attempts:
                continue
            seen.add(canonical.watch_url)
            eligible.append((record, canonical))
        return eligible

    def _count_exhausted(self) -> int:
        exhausted = set()
        for record in self.collection.records:
            if self.collection.is_imported(record.id):
                continue
            canonical = normalize(record.url)
            if canonical is None or canonical.watch_url in self._processed:
                continue
            if self.failure_count(canonical.watch_url) >= self.max_fetch_attempts:
                exhausted.add(canonical.watch_url)
        return len(exhausted)

    async def run_batch(self, delay: float | None = None) -> BatchReport:
        """
        Auto-fill empty title/author fields for every eligible record.

        Args:
            delay: Seconds between two fetches, batch_delay_seconds if None.
                   There is no pause after the last record.

        Returns:
            BatchReport with per-outcome counts and the failures.

        Behavior:
            1. Forget processed URLs no longer in the collection
            2. Collect eligible records (see eligible_records())
            3. Fetch them one by one; mark each URL processed before its
               fetch and unmark it again if the fetch fails
            4. A failure is counted and logged; the batch goes on
        """
        if delay is None:
            delay = self.batch_delay_seconds

        self.prune_processed()
        eligible = self.eligible_records()
        report = BatchReport(eligible=len(eligible), skipped_exhausted=self._count_exhausted())

        if report.skipped_exhausted:
            logger.info(
                f"Skipping {report.skipped_exhausted} URL(s) that failed "
                f"{self.max_fetch_attempts} times"
            )

        if not eligible:
            logger.info("No records need metadata")
            return report

        logger.info(f"Fetching metadata for {len(eligible)} record(s)")

        with FetchProgressBar(total=len(eligible), enabled=self.show_progress) as progress:
            for index, (record, canonical) in enumerate(eligible):
                if index > 0 and delay > 0:
                    await asyncio.sleep(delay)

                self._processed.add(canonical.watch_url)
                outcome = await self.fetch(record.id, canonical, resolve_conflicts=False)

                if outcome.error is not None:
                    self._processed.discard(canonical.watch_url)
                    report.failed += 1
                    current = self.collection.get(record.id) or record
                    report.failures.append((current.label, canonical.watch_url, outcome.error))
                    progress.update(failed=True)
                elif outcome.stale:
                    # Record edited or removed mid-batch; the next batch decides
                    self._processed.discard(canonical.watch_url)
                    report.unchanged += 1
                    progress.update()
                elif outcome.filled:
                    report.filled += 1
                    progress.update(filled=True)
                else:
                    report.unchanged += 1
                    progress.update()

        logger.info(
            f"Metadata fetch complete: {report.filled} filled, "
            f"{report.unchanged} unchanged, {report.failed} failed"
        )
        return report
