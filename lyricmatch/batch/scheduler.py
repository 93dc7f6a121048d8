"""
Bulk lyrics matching for playlists

This module drives best-match resolution over a whole playlist. A single
coordinating thread admits entries, in playlist order, into a thread pool
whose size is the in-flight window (3 by default). Each worker resolves one
entry and writes its status and match back into that entry; entries are
updated in place as workers finish, so completion order is arbitrary.

Per-entry lifecycle:
    pending -> searching -> found       match resolved and scored
    pending -> searching -> not_found   nothing found, or the request failed
    pending -> searching -> pending     HTTP 429, or cancelled mid-flight

Rate limiting:
A worker that hits HTTP 429 sets a shared pause flag and puts its entry
back to pending. Before admitting the next entry the coordinator sleeps
for the backoff interval (10 seconds by default) and clears the flag.
The pause applies to the whole queue; the rate-limited entry is picked up
by a later run.

Cancellation:
cancel() sets an event checked before every admission, after waiting for
a free slot, after the backoff, and inside workers around each store call.
Requests already sent are not aborted; the run returns once they finish.
Entries resolved before the cancel keep their status.

Each entry is admitted at most once per run, so every entry has a single
writer. Entries already found, and entries outside a non-empty selection,
are left untouched and cost no requests.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set, Tuple

from ..config.settings import get_settings
from ..lrclib.client import LyricsStore, get_lrclib_client
from ..lrclib.exceptions import LyricsStoreError, is_rate_limit_error
from ..lrclib.models import BatchStats, EntryStatus, PlaylistEntry, SearchStrategy, TrackCandidate
from ..matching.confidence import calculate_confidence
from ..matching.strategy import find_best_match
from ..utils.helpers import clean_track_name, format_filename
from ..utils.logger import get_logger, create_operation_logger


# Worker outcomes
OUTCOME_FOUND = "found"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_RATE_LIMITED = "rate_limited"
OUTCOME_CANCELLED = "cancelled"

DEFAULT_MAX_CONCURRENT = 3
DEFAULT_RATE_LIMIT_BACKOFF = 10.0


class BulkMatchScheduler:
    """Resolve lyrics matches for many playlist entries with bounded concurrency"""

    def __init__(
        self,
        store: Optional[LyricsStore] = None,
        strategy: Optional[SearchStrategy] = None,
        max_concurrent: Optional[int] = None,
        rate_limit_backoff: Optional[float] = None,
        filename_format: Optional[str] = None,
        retry_cleaned_name: Optional[bool] = None,
        on_update: Optional[Callable[[PlaylistEntry], None]] = None,
        show_progress: bool = False
    ):
        """
        Initialize the scheduler

        Args:
            store: Lyrics store, defaults to the shared LRCLIB client
            strategy: Search strategy, defaults to the configured one
            max_concurrent: Size of the in-flight window
            rate_limit_backoff: Seconds to pause the queue after HTTP 429
            filename_format: Pattern used to name found entries without a file_name
            retry_cleaned_name: Retry once with a cleaned track name when nothing is found
            on_update: Called with the entry after every status change, from
                       worker threads as well as the caller's thread
            show_progress: Render a progress bar on the console
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.store = store or get_lrclib_client()
        self.strategy = strategy or self.settings.get_search_strategy()
        self.max_concurrent = max_concurrent or self.settings.batch.concurrency or DEFAULT_MAX_CONCURRENT
        self.rate_limit_backoff = (
            rate_limit_backoff if rate_limit_backoff is not None
            else float(self.settings.batch.rate_limit_backoff)
        )
        self.filename_format = filename_format or self.settings.naming.filename_format
        self.retry_cleaned_name = (
            retry_cleaned_name if retry_cleaned_name is not None
            else self.settings.search.retry_cleaned_name
        )
        self.on_update = on_update
        self.show_progress = show_progress

        self._cancel_event = threading.Event()
        self._paused = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    def cancel(self) -> None:
        """Stop admitting entries; the running process() returns once in-flight work drains"""
        if not self._cancel_event.is_set():
            self.logger.info("Cancellation requested")
        self._cancel_event.set()

    def process(
        self,
        entries: List[PlaylistEntry],
        selected_ids: Optional[Iterable[str]] = None
    ) -> BatchStats:
        """
        Resolve matches for the given entries, updating them in place

        Args:
            entries: Playlist entries
            selected_ids: When non-empty, only entries with these ids are processed

        Returns:
            BatchStats for this run
        """
        self._cancel_event.clear()
        self._paused.clear()

        selection = set(selected_ids or ())
        stats = BatchStats(total_entries=len(entries), start_time=datetime.now())

        targets = [entry for entry in entries if self._should_process(entry, selection)]
        stats.skipped = len(entries) - len(targets)

        if not targets:
            self.logger.info("Nothing to match: all selected entries are already found")
            stats.end_time = datetime.now()
            return stats

        operation = create_operation_logger(__name__, "Lyrics matching", show_progress_bar=self.show_progress)
        operation.start(f"🔎 Matching {len(targets)} tracks ({self.strategy}, {self.max_concurrent} at a time)")

        in_flight = set()
        completed = 0

        with ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="lyricmatch") as executor:
            for entry in targets:
                if self.cancelled:
                    break

                # Wait for a free slot in the window
                while len(in_flight) >= self.max_concurrent:
                    done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                    completed += self._collect(done, stats)
                    operation.progress(f"Matched {completed}/{len(targets)} tracks", completed, len(targets))

                if self.cancelled:
                    break

                if self._paused.is_set():
                    self._wait_for_backoff(operation)

                if self.cancelled:
                    break

                in_flight.add(executor.submit(self._process_entry, entry))

            done, _ = wait(in_flight)
            completed += self._collect(done, stats)
            operation.progress(f"Matched {completed}/{len(targets)} tracks", completed, len(targets))

        stats.cancelled = self.cancelled
        stats.end_time = datetime.now()

        if stats.cancelled:
            operation.warning(f"cancelled after {stats.processed} of {len(targets)} tracks")
        operation.complete(f"✅ Matching finished: {stats}")

        return stats

    def _should_process(self, entry: PlaylistEntry, selection: Set[str]) -> bool:
        if selection and entry.id not in selection:
            return False
        return entry.status != EntryStatus.FOUND

    def _collect(self, done, stats: BatchStats) -> int:
        """Fold finished worker outcomes into the run statistics"""
        for future in done:
            entry_id, outcome, error = future.result()

            if outcome == OUTCOME_CANCELLED:
                continue

            stats.processed += 1
            if outcome == OUTCOME_FOUND:
                stats.found += 1
            elif outcome == OUTCOME_RATE_LIMITED:
                stats.rate_limited += 1
            else:
                stats.not_found += 1
                if error:
                    stats.errors[entry_id] = error

        return len(done)

    def _wait_for_backoff(self, operation) -> None:
        """Hold admissions for the backoff interval, returning early on cancel"""
        operation.warning(f"Rate limited by lyrics store, pausing {self.rate_limit_backoff:g} seconds")
        self._cancel_event.wait(self.rate_limit_backoff)
        self._paused.clear()
        self.logger.info("Resuming after rate-limit pause")

    def _process_entry(self, entry: PlaylistEntry) -> Tuple[str, str, Optional[str]]:
        """
        Resolve one entry (runs in a worker thread)

        Returns:
            Tuple of (entry id, outcome, error message)
        """
        if self.cancelled:
            return entry.id, OUTCOME_CANCELLED, None

        self._set_status(entry, EntryStatus.SEARCHING)

        try:
            match = self._resolve(entry)
        except Exception as e:
            if is_rate_limit_error(e):
                self._paused.set()
                self._set_status(entry, EntryStatus.PENDING)
                retry_after = getattr(e, 'retry_after', None)
                hint = f" (server asked to wait {retry_after:g}s)" if retry_after else ""
                self.logger.warning(
                    f"Rate limited while matching: {entry.artist_name} - {entry.track_name}{hint}"
                )
                return entry.id, OUTCOME_RATE_LIMITED, None

            if isinstance(e, LyricsStoreError):
                self.logger.warning(f"Lookup failed for {entry.artist_name} - {entry.track_name}: {e}")
            else:
                self.logger.error(f"Unexpected error matching {entry.artist_name} - {entry.track_name}", exc_info=e)
            self._set_status(entry, EntryStatus.NOT_FOUND)
            return entry.id, OUTCOME_NOT_FOUND, str(e)

        if self.cancelled:
            self._set_status(entry, EntryStatus.PENDING)
            return entry.id, OUTCOME_CANCELLED, None

        if match is None:
            self.logger.info(f"No lyrics found: {entry.artist_name} - {entry.track_name}")
            self._set_status(entry, EntryStatus.NOT_FOUND)
            return entry.id, OUTCOME_NOT_FOUND, None

        entry.match_data = calculate_confidence(entry.to_query(), match)
        if not entry.file_name:
            entry.file_name = format_filename(
                match.track_name, match.artist_name, match.album_name, self.filename_format
            )
        self.logger.info(
            f"Matched {entry.artist_name} - {entry.track_name} -> "
            f"{match.artist_name} - {match.track_name} ({entry.match_data.confidence_percentage}%)"
        )
        self._set_status(entry, EntryStatus.FOUND)
        return entry.id, OUTCOME_FOUND, None

    def _resolve(self, entry: PlaylistEntry) -> Optional[TrackCandidate]:
        """Best match for an entry, retrying once with a cleaned track name"""
        match = find_best_match(
            self.store,
            entry.track_name,
            entry.artist_name,
            entry.album_name,
            entry.duration,
            self.strategy
        )
        if match or not self.retry_cleaned_name or self.cancelled:
            return match

        cleaned = clean_track_name(entry.track_name)
        if not cleaned or cleaned == entry.track_name:
            return None

        self.logger.debug(f"Retrying with cleaned name: '{entry.track_name}' -> '{cleaned}'")
        return find_best_match(
            self.store,
            cleaned,
            entry.artist_name,
            entry.album_name,
            entry.duration,
            self.strategy
        )

    def _set_status(self, entry: PlaylistEntry, status: EntryStatus) -> None:
        entry.status = status
        if self.on_update:
            try:
                self.on_update(entry)
            except Exception as e:
                self.logger.error(f"Entry update callback failed: {e}", exc_info=e)
