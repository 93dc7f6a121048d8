"""
Data models for lyrics matching

This module defines the data structures shared by the matching pipeline:
what the user is looking for, what the lyrics store returns, how well the
two agree, and the per-entry state tracked during bulk processing.

Architecture Overview:

1. **Search configuration**: SearchMode and SearchStrategy, an explicit
   value handed to the resolver at call time.

2. **Store records**: TrackCandidate mirrors an LRCLIB record and is built
   from the camelCase API payload with `from_lrclib_data()`.

3. **Scoring output**: MatchResult pairs a candidate with its confidence
   score and the ordered reasons behind it.

4. **Batch state**: EntryStatus and PlaylistEntry carry the lifecycle of a
   playlist line through the bulk scheduler; BatchStats summarizes a run.

TrackQuery, TrackCandidate, MatchResult and SearchStrategy are frozen;
PlaylistEntry is mutable and owned by the scheduler while a batch runs.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SearchMode(Enum):
    """
    How the resolver queries the lyrics store

    Values:
        EXACT: Direct lookup by exact fields, free-text search as fallback
               when external lookups are disabled
        FUZZY: Free-text search only
        CACHED: Direct lookup against the cache-only endpoint
    """
    EXACT = "EXACT"
    FUZZY = "FUZZY"
    CACHED = "CACHED"


@dataclass(frozen=True)
class SearchStrategy:
    """
    Search configuration passed to the resolver

    Attributes:
        mode: Search mode
        try_external: Allow the /get endpoint, which may consult external
                      sources (slower); otherwise /get-cached is used
    """
    mode: SearchMode = SearchMode.EXACT
    try_external: bool = True

    def __str__(self) -> str:
        return f"{self.mode.value}{' +external' if self.try_external else ''}"


class EntryStatus(Enum):
    """
    Lifecycle of a playlist entry during bulk matching

    State Transitions:
    PENDING -> SEARCHING -> FOUND (match resolved)
    PENDING -> SEARCHING -> NOT_FOUND (no match or request failed)
    PENDING -> SEARCHING -> PENDING (rate limited or cancelled, eligible for a later pass)

    ERROR is accepted from imported data but never assigned by the scheduler.
    """
    PENDING = "pending"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class TrackQuery:
    """
    The user's search intent

    Attributes:
        track_name: Title as the user knows it
        artist_name: Artist as the user knows it
        album_name: Album name, optional
        duration: Length in seconds, optional (0 means unknown)
    """
    track_name: str
    artist_name: str
    album_name: Optional[str] = None
    duration: Optional[float] = None


@dataclass(frozen=True)
class TrackCandidate:
    """
    A lyrics record from LRCLIB

    Attributes:
        id: LRCLIB record id
        track_name: Title stored in the database
        artist_name: Artist stored in the database
        album_name: Album stored in the database
        duration: Track length in seconds
        instrumental: True when the track has no vocals
        plain_lyrics: Unsynchronized lyrics text
        synced_lyrics: LRC formatted lyrics with timestamps
    """
    id: int
    track_name: str
    artist_name: str
    album_name: str = ""
    duration: float = 0
    instrumental: bool = False
    plain_lyrics: str = ""
    synced_lyrics: str = ""

    @classmethod
    def from_lrclib_data(cls, data: Dict[str, Any]) -> 'TrackCandidate':
        """
        Create TrackCandidate from an LRCLIB API record

        Args:
            data: Record as returned by /get, /get-cached or /search

        Returns:
            TrackCandidate instance

        Raises:
            ValueError: If the record is not a mapping or lacks id/trackName/artistName
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a lyrics record object, got {type(data).__name__}")

        missing = [key for key in ('id', 'trackName', 'artistName') if data.get(key) is None]
        if missing:
            raise ValueError(f"Lyrics record is missing required fields: {', '.join(missing)}")

        return cls(
            id=data['id'],
            track_name=data['trackName'],
            artist_name=data['artistName'],
            album_name=data.get('albumName') or "",
            duration=data.get('duration') or 0,
            instrumental=bool(data.get('instrumental', False)),
            plain_lyrics=data.get('plainLyrics') or "",
            synced_lyrics=data.get('syncedLyrics') or ""
        )

    @property
    def has_synced_lyrics(self) -> bool:
        return bool(self.synced_lyrics)

    @property
    def has_lyrics(self) -> bool:
        return bool(self.synced_lyrics or self.plain_lyrics)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the LRCLIB record shape"""
        return {
            'id': self.id,
            'trackName': self.track_name,
            'artistName': self.artist_name,
            'albumName': self.album_name,
            'duration': self.duration,
            'instrumental': self.instrumental,
            'plainLyrics': self.plain_lyrics,
            'syncedLyrics': self.synced_lyrics,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Scored pairing of a query with a candidate

    Attributes:
        track: The candidate that was scored
        confidence_score: Score in [0, 1]
        confidence_reasons: One explanation per evaluated signal, in the
                            order title, artist, duration
    """
    track: TrackCandidate
    confidence_score: float
    confidence_reasons: Tuple[str, ...] = ()

    @property
    def confidence_percentage(self) -> int:
        return round(self.confidence_score * 100)

    @property
    def confidence_level(self) -> str:
        """Bucket used for display: high (>= 90%), medium (>= 70%) or low"""
        if self.confidence_percentage >= 90:
            return "high"
        if self.confidence_percentage >= 70:
            return "medium"
        return "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'track': self.track.to_dict(),
            'confidenceScore': self.confidence_score,
            'confidenceReasons': list(self.confidence_reasons),
        }


@dataclass
class PlaylistEntry:
    """
    One playlist line tracked through bulk matching

    Attributes:
        id: Stable identifier used for subset selection
        track_name: Title to search for
        artist_name: Artist to search for
        album_name: Album, optional
        duration: Length in seconds, optional
        status: Current lifecycle state
        match_data: Scored match once status is FOUND
        file_name: Output filename, user supplied or derived from the match
    """
    id: str
    track_name: str
    artist_name: str
    album_name: Optional[str] = None
    duration: Optional[float] = None
    status: EntryStatus = EntryStatus.PENDING
    match_data: Optional[MatchResult] = None
    file_name: Optional[str] = None

    @classmethod
    def create(
        cls,
        track_name: str,
        artist_name: str,
        album_name: Optional[str] = None,
        duration: Optional[float] = None,
        file_name: Optional[str] = None
    ) -> 'PlaylistEntry':
        """Create a pending entry with a fresh id"""
        return cls(
            id=str(uuid.uuid4()),
            track_name=track_name,
            artist_name=artist_name,
            album_name=album_name,
            duration=duration,
            file_name=file_name
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlaylistEntry':
        """
        Create PlaylistEntry from a normalized record

        Expects the keys trackName and artistName; albumName, duration,
        fileName, id and status are optional. Alternate spellings are not
        guessed.

        Args:
            data: Normalized entry record

        Returns:
            PlaylistEntry instance

        Raises:
            ValueError: If required fields are missing or values are malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an entry object, got {type(data).__name__}")

        track_name = data.get('trackName')
        artist_name = data.get('artistName')
        if not isinstance(track_name, str) or not track_name.strip():
            raise ValueError("Entry is missing a non-empty 'trackName'")
        if not isinstance(artist_name, str) or not artist_name.strip():
            raise ValueError("Entry is missing a non-empty 'artistName'")

        duration = data.get('duration')
        if duration is not None:
            if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
                raise ValueError(f"Invalid duration for '{track_name}': {duration!r}")

        try:
            status = EntryStatus(data.get('status') or EntryStatus.PENDING.value)
        except ValueError:
            raise ValueError(f"Invalid status for '{track_name}': {data.get('status')!r}")

        match_data = None
        if data.get('matchData'):
            match = data['matchData']
            if not isinstance(match, dict):
                raise ValueError(f"Invalid matchData for '{track_name}': expected an object")
            try:
                score = float(match.get('confidenceScore', 0.0))
            except (TypeError, ValueError):
                raise ValueError(f"Invalid confidenceScore for '{track_name}': {match.get('confidenceScore')!r}")
            match_data = MatchResult(
                track=TrackCandidate.from_lrclib_data(match.get('track')),
                confidence_score=score,
                confidence_reasons=tuple(match.get('confidenceReasons') or ())
            )

        # A found entry without its match cannot be exported, treat it as not processed
        if status == EntryStatus.FOUND and match_data is None:
            status = EntryStatus.PENDING

        return cls(
            id=str(data.get('id') or uuid.uuid4()),
            track_name=track_name,
            artist_name=artist_name,
            album_name=data.get('albumName') or None,
            duration=duration or None,
            status=status,
            match_data=match_data,
            file_name=data.get('fileName') or None
        )

    def to_query(self) -> TrackQuery:
        return TrackQuery(
            track_name=self.track_name,
            artist_name=self.artist_name,
            album_name=self.album_name,
            duration=self.duration
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for reports, using the same keys from_dict reads"""
        data = {
            'id': self.id,
            'trackName': self.track_name,
            'artistName': self.artist_name,
            'albumName': self.album_name,
            'duration': self.duration,
            'status': self.status.value,
            'fileName': self.file_name,
        }
        if self.match_data:
            data['matchData'] = self.match_data.to_dict()
        return data


@dataclass
class BatchStats:
    """
    Summary of one bulk matching run

    Attributes:
        total_entries: Entries in the playlist
        processed: Entries admitted to the worker pool
        found: Entries resolved to a match in this run
        not_found: Entries with no match or a failed request
        rate_limited: Entries returned to pending after HTTP 429
        skipped: Entries not processed (already found or outside the selection)
        cancelled: True when the run stopped on a cancel request
    """
    total_entries: int = 0
    processed: int = 0
    found: int = 0
    not_found: int = 0
    rate_limited: int = 0
    skipped: int = 0
    cancelled: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Share of processed entries that were found (0.0 when nothing ran)"""
        if self.processed == 0:
            return 0.0
        return self.found / self.processed

    @property
    def duration(self) -> Optional[float]:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def __str__(self) -> str:
        return (f"Found: {self.found}/{self.processed} ({self.success_rate:.1%}), "
                f"Not found: {self.not_found}, Rate limited: {self.rate_limited}, "
                f"Skipped: {self.skipped}{' (cancelled)' if self.cancelled else ''}")
