"""
Best-match resolution against the lyrics store

find_best_match() turns a SearchStrategy and the query fields into at most
one candidate:

- EXACT / CACHED: direct lookup first. CACHED, or EXACT/FUZZY without
  try_external, go to the cache-only endpoint. A hit is returned at once.
- FUZZY, or EXACT with try_external disabled: free-text search using the
  available fields. Results are ranked by confidence against the query and
  the best one is returned.
- Nothing found: None.

"Not found" is None. Rate limits and transport failures raise from the
store and are left to the caller, which decides whether to pause, retry or
mark the entry. Retrying with a cleaned track name is also the caller's
job (see clean_track_name in utils.helpers).
"""

from typing import Optional

from ..lrclib.client import LyricsStore
from ..lrclib.models import SearchMode, SearchStrategy, TrackCandidate, TrackQuery
from ..utils.logger import get_logger
from .confidence import rank_candidates


logger = get_logger(__name__)


def uses_direct_lookup(strategy: SearchStrategy) -> bool:
    return strategy.mode in (SearchMode.EXACT, SearchMode.CACHED)


def uses_search_fallback(strategy: SearchStrategy) -> bool:
    return (strategy.mode == SearchMode.FUZZY
            or (strategy.mode == SearchMode.EXACT and not strategy.try_external))


def uses_cached_endpoint(strategy: SearchStrategy) -> bool:
    return strategy.mode == SearchMode.CACHED or not strategy.try_external


def find_best_match(
    store: LyricsStore,
    track_name: str,
    artist_name: str,
    album_name: Optional[str],
    duration: Optional[float],
    strategy: SearchStrategy
) -> Optional[TrackCandidate]:
    """
    Resolve query fields to the single most likely lyrics record

    Args:
        store: Lyrics store to query
        track_name: Track title
        artist_name: Artist name
        album_name: Album name, optional
        duration: Track length in seconds, optional
        strategy: Search mode and external-lookup flag

    Returns:
        Best candidate, or None when neither path finds anything

    Raises:
        LyricsStoreError: When the store request fails (RateLimitError on HTTP 429)
    """
    if uses_direct_lookup(strategy):
        if duration:
            direct = store.get_lyrics(
                track_name,
                artist_name,
                album_name or None,
                duration,
                cached_only=uses_cached_endpoint(strategy)
            )
            if direct:
                logger.debug(f"Direct lookup hit: {direct.artist_name} - {direct.track_name} (id {direct.id})")
                return direct
        else:
            # The direct endpoints require a duration
            logger.debug(f"Skipping direct lookup without duration: {artist_name} - {track_name}")

    if uses_search_fallback(strategy):
        results = store.search_lyrics(
            track_name=track_name or None,
            artist_name=artist_name or None,
            album_name=album_name or None
        )

        if results:
            query = TrackQuery(
                track_name=track_name or "",
                artist_name=artist_name or "",
                album_name=album_name,
                duration=duration
            )
            best = rank_candidates(query, results)[0]
            logger.debug(
                f"Search picked {best.track.artist_name} - {best.track.track_name} "
                f"({best.confidence_percentage}%) out of {len(results)} results"
            )
            return best.track

    return None
