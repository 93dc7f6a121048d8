"""
Lyrics-Matcher: Find synchronized lyrics on LRCLIB
A command-line tool that turns imprecise song metadata into verified .lrc files.

Lyrics-Matcher takes a song described by title, artist, optional album and
optional duration, finds the best candidate in the public LRCLIB database and
explains how confident it is in that match. Whole playlists can be matched in
one run with a bounded number of concurrent lookups.

## Core Architecture

**Configuration Management (`lyricmatch/config/`)**
- YAML configuration with environment variable overrides
- Search, batch, naming, network and logging sections

**LRCLIB Integration (`lyricmatch/lrclib/`)**
- HTTP client for the /get, /get-cached and /search endpoints
- Immutable models for queries, candidates and match results
- Mutable playlist entries with a small status lifecycle

**Matching (`lyricmatch/matching/`)**
- Weighted confidence scoring with human-readable reasons
- Search strategy selection between direct lookup and free-text search

**Bulk Matching (`lyricmatch/batch/`)**
- Bounded concurrency over a playlist, three lookups at a time by default
- Queue-wide pause after HTTP 429 and cooperative cancellation

**Lyrics Output (`lyricmatch/lyrics/`)**
- .lrc export with configurable file names and playback offset

**Utilities (`lyricmatch/utils/`)**
- Levenshtein similarity, track name cleaning, filename helpers
- Colored console logging with rotating log files
"""

__version__ = "1.0.0"
__author__ = "Lyrics-Matcher Team"
__description__ = "Find synchronized lyrics on LRCLIB with explained confidence scores"
