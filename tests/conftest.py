"""Test configuration and fixtures"""

import threading
import time

import pytest
import tempfile
from pathlib import Path

from lyricmatch.lrclib.client import LyricsStore
from lyricmatch.lrclib.models import TrackCandidate


class FakeLyricsStore(LyricsStore):
    """
    In-memory lyrics store recording every call

    Direct lookups are answered from `records`, keyed by lowercased
    (track, artist); search results from `search_results`, keyed by the
    lowercased track_name (or q). `errors` maps a lowercased track name to
    an exception raised on any call for that track. `delay` slows every
    call down so several can overlap; `delays` overrides it per lowercased
    track name.
    """

    def __init__(self, records=None, search_results=None, errors=None, delay=0.0, delays=None):
        self.records = records or {}
        self.search_results = search_results or {}
        self.errors = errors or {}
        self.delay = delay
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, call):
        with self._lock:
            self.calls.append(call)

    def _pause(self, track_name):
        delay = self.delays.get((track_name or "").lower(), self.delay)
        if delay:
            time.sleep(delay)

    def _maybe_fail(self, track_name):
        error = self.errors.get((track_name or "").lower())
        if error:
            raise error

    def get_lyrics(self, track_name, artist_name, album_name, duration, cached_only=False):
        self._record(('get_cached' if cached_only else 'get', track_name, artist_name, album_name, duration))
        self._pause(track_name)
        self._maybe_fail(track_name)
        return self.records.get((track_name.lower(), artist_name.lower()))

    def search_lyrics(self, query=None, track_name=None, artist_name=None, album_name=None):
        self._record(('search', query, track_name, artist_name, album_name))
        self._pause(track_name or query)
        self._maybe_fail(track_name or query)
        return list(self.search_results.get((track_name or query or "").lower(), []))

    @property
    def call_count(self):
        return len(self.calls)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def blinding_lights():
    """LRCLIB record for Blinding Lights"""
    return TrackCandidate(
        id=123,
        track_name="Blinding Lights",
        artist_name="The Weeknd",
        album_name="After Hours",
        duration=201,
        plain_lyrics="Yeah\nI've been tryna call",
        synced_lyrics="[00:00.50] Yeah\n[00:02.10] I've been tryna call"
    )


@pytest.fixture
def yesterday():
    """LRCLIB record for Yesterday"""
    return TrackCandidate(
        id=456,
        track_name="Yesterday",
        artist_name="The Beatles",
        album_name="Help!",
        duration=125,
        plain_lyrics="Yesterday, all my troubles seemed so far away",
        synced_lyrics="[00:01.00] Yesterday, all my troubles seemed so far away"
    )


@pytest.fixture
def sample_lrclib_record():
    """Raw record as returned by the LRCLIB API"""
    return {
        'id': 3396226,
        'trackName': 'I Want to Live',
        'artistName': 'Borislav Slavov',
        'albumName': "Baldur's Gate 3 (Original Game Soundtrack)",
        'duration': 233,
        'instrumental': False,
        'plainLyrics': "I feel your breath upon my neck",
        'syncedLyrics': "[00:17.12] I feel your breath upon my neck"
    }


@pytest.fixture
def fake_store():
    """Factory for FakeLyricsStore instances"""
    return FakeLyricsStore
