"""
LRCLIB integration package

Data models for queries, candidates and match results, the HTTP client for
the LRCLIB lyrics database and the error types it raises.
"""

from .models import (
    SearchMode,
    SearchStrategy,
    EntryStatus,
    TrackQuery,
    TrackCandidate,
    MatchResult,
    PlaylistEntry,
    BatchStats
)
from .exceptions import (
    LyricsMatcherError,
    LyricsStoreError,
    RateLimitError,
    is_rate_limit_error
)
from .client import LyricsStore, LrclibClient, get_lrclib_client, reset_lrclib_client

__all__ = [
    # Models
    'SearchMode',
    'SearchStrategy',
    'EntryStatus',
    'TrackQuery',
    'TrackCandidate',
    'MatchResult',
    'PlaylistEntry',
    'BatchStats',

    # Errors
    'LyricsMatcherError',
    'LyricsStoreError',
    'RateLimitError',
    'is_rate_limit_error',

    # Client
    'LyricsStore',
    'LrclibClient',
    'get_lrclib_client',
    'reset_lrclib_client',
]
