"""
LRCLIB API client for lyrics lookup and search

This module is the only place that talks HTTP. It exposes the two lyrics
store operations the matching layer needs, behind the LyricsStore
interface so tests and alternative backends can stand in for LRCLIB:

- Direct lookup: GET /get (may consult external sources) or GET /get-cached
  with track_name, artist_name, duration and optional album_name. A 404
  means "no such record" and is returned as None.
- Free-text search: GET /search with any of q, track_name, artist_name,
  album_name. Returns a possibly empty list of records.

Failure handling:
- HTTP 429 raises RateLimitError so the bulk scheduler can pause the queue.
- Other non-2xx responses and unparseable bodies raise LyricsStoreError.
- Connection errors and timeouts are retried with exponential backoff and
  then raised as LyricsStoreError.

One client instance is shared by the scheduler's worker threads. A lock
guards the minimum interval between requests; requests.Session is used
for connection pooling.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from ..config.settings import get_settings
from ..utils.helpers import retry_on_failure
from ..utils.logger import get_logger, log_performance
from .exceptions import LyricsStoreError, RateLimitError, RATE_LIMIT_STATUS
from .models import TrackCandidate


class LyricsStore(ABC):
    """Interface of a lyrics database consumed by the matching layer"""

    @abstractmethod
    def get_lyrics(
        self,
        track_name: str,
        artist_name: str,
        album_name: Optional[str],
        duration: float,
        cached_only: bool = False
    ) -> Optional[TrackCandidate]:
        """Direct lookup by exact fields; None when there is no such record"""

    @abstractmethod
    def search_lyrics(
        self,
        query: Optional[str] = None,
        track_name: Optional[str] = None,
        artist_name: Optional[str] = None,
        album_name: Optional[str] = None
    ) -> List[TrackCandidate]:
        """Free-text search; an empty list when nothing matches"""


class LrclibClient(LyricsStore):
    """LRCLIB HTTP API client"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize LRCLIB client

        Args:
            base_url: API root, defaults to settings (https://lrclib.net/api)
            timeout: Request timeout in seconds, defaults to settings
            session: Pre-built requests session (mainly for tests)
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.base_url = (base_url or self.settings.lrclib.base_url).rstrip('/')
        self.timeout = timeout if timeout is not None else self.settings.lrclib.timeout

        # Rate limiting between requests, shared across worker threads
        self._request_lock = threading.Lock()
        self.last_request_time = 0.0
        self.min_request_interval = self.settings.network.min_request_interval

        # HTTP session
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.settings.lrclib.user_agent,
            'Accept': 'application/json'
        })

        # Transient network failures are retried, HTTP status errors are not
        self._send = retry_on_failure(
            max_attempts=max(1, int(self.settings.network.max_retries)),
            delay=float(self.settings.network.retry_delay),
            exceptions=(requests.exceptions.ConnectionError, requests.exceptions.Timeout)
        )(self._send_once)

    def _rate_limit(self) -> None:
        """Apply rate limiting between API requests"""
        with self._request_lock:
            time_since_last = time.time() - self.last_request_time

            if time_since_last < self.min_request_interval:
                time.sleep(self.min_request_interval - time_since_last)

            self.last_request_time = time.time()

    def _send_once(self, url: str, params: Dict[str, Any]) -> requests.Response:
        self._rate_limit()
        return self.session.get(url, params=params, timeout=self.timeout)

    def _request(self, endpoint: str, params: Dict[str, Any], not_found_ok: bool = False) -> Any:
        """
        Perform a GET request and decode the JSON body

        Args:
            endpoint: Path below the API root, e.g. "/search"
            params: Query parameters
            not_found_ok: Return None on 404 instead of raising

        Returns:
            Decoded JSON body, or None for a tolerated 404

        Raises:
            RateLimitError: On HTTP 429
            LyricsStoreError: On other failures
        """
        url = f"{self.base_url}{endpoint}"
        details = {'endpoint': endpoint, 'params': params}

        try:
            response = self._send(url, params)
        except requests.exceptions.RequestException as e:
            raise LyricsStoreError(
                f"Request to {endpoint} failed: {e}",
                details={**details, 'original_error': str(e)}
            ) from e

        if response.status_code == 404 and not_found_ok:
            return None

        if response.status_code == RATE_LIMIT_STATUS:
            retry_after = response.headers.get('Retry-After')
            raise RateLimitError(
                f"Rate limited by LRCLIB on {endpoint} (HTTP 429)",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                details=details
            )

        if not response.ok:
            raise LyricsStoreError(
                f"LRCLIB request to {endpoint} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                details=details
            )

        try:
            return response.json()
        except ValueError as e:
            raise LyricsStoreError(
                f"LRCLIB returned an invalid JSON body for {endpoint}",
                status_code=response.status_code,
                details=details
            ) from e

    @log_performance
    def get_lyrics(
        self,
        track_name: str,
        artist_name: str,
        album_name: Optional[str],
        duration: float,
        cached_only: bool = False
    ) -> Optional[TrackCandidate]:
        """
        Look up a single record by exact fields

        Args:
            track_name: Track title
            artist_name: Artist name
            album_name: Album name, sent only when given
            duration: Track length in seconds (required by LRCLIB)
            cached_only: Use /get-cached, which never reaches external sources

        Returns:
            TrackCandidate, or None when LRCLIB has no such record
        """
        endpoint = '/get-cached' if cached_only else '/get'
        params = {
            'track_name': track_name,
            'artist_name': artist_name,
            'duration': _format_duration_param(duration),
        }
        if album_name:
            params['album_name'] = album_name

        self.logger.debug(f"LRCLIB {endpoint}: {artist_name} - {track_name} ({params['duration']}s)")

        data = self._request(endpoint, params, not_found_ok=True)
        if data is None:
            self.logger.debug(f"No LRCLIB record for: {artist_name} - {track_name}")
            return None

        try:
            return TrackCandidate.from_lrclib_data(data)
        except ValueError as e:
            raise LyricsStoreError(f"Unexpected LRCLIB record from {endpoint}: {e}") from e

    @log_performance
    def search_lyrics(
        self,
        query: Optional[str] = None,
        track_name: Optional[str] = None,
        artist_name: Optional[str] = None,
        album_name: Optional[str] = None
    ) -> List[TrackCandidate]:
        """
        Free-text search

        Args:
            query: Text searched across title, artist and album
            track_name: Title hint
            artist_name: Artist hint
            album_name: Album hint

        Returns:
            Candidates in the order LRCLIB returned them
        """
        params = {}
        if query:
            params['q'] = query
        if track_name:
            params['track_name'] = track_name
        if artist_name:
            params['artist_name'] = artist_name
        if album_name:
            params['album_name'] = album_name

        if not params:
            return []

        self.logger.debug(f"LRCLIB /search: {params}")

        data = self._request('/search', params)
        if not isinstance(data, list):
            raise LyricsStoreError(
                "LRCLIB search returned an unexpected payload",
                details={'params': params}
            )

        candidates = []
        for record in data:
            try:
                candidates.append(TrackCandidate.from_lrclib_data(record))
            except ValueError as e:
                self.logger.warning(f"Skipping malformed LRCLIB search record: {e}")

        self.logger.debug(f"LRCLIB search returned {len(candidates)} candidates")
        return candidates

    def close(self) -> None:
        self.session.close()


def _format_duration_param(duration: float) -> str:
    """LRCLIB accepts integer seconds; keep fractional values as given"""
    if float(duration).is_integer():
        return str(int(duration))
    return str(duration)


# Global client instance for singleton pattern
_lrclib_client: Optional[LrclibClient] = None


def get_lrclib_client() -> LrclibClient:
    """
    Get the global LRCLIB client instance

    Returns:
        Shared LrclibClient configured from settings
    """
    global _lrclib_client
    if not _lrclib_client:
        _lrclib_client = LrclibClient()
    return _lrclib_client


def reset_lrclib_client() -> None:
    """Drop the global client so the next access picks up new settings"""
    global _lrclib_client
    if _lrclib_client:
        _lrclib_client.close()
    _lrclib_client = None
