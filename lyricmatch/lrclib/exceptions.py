"""
Exception classes for Lyrics-Matcher.

A lyrics-store lookup has three outcomes the callers must tell apart:
no candidate (returned as None, never raised), a rate limit (HTTP 429,
transient, handled by pausing the whole batch) and every other transport
failure (reported per entry, the batch goes on).

Exception Hierarchy:
    LyricsMatcherError (base)
        LyricsStoreError - HTTP/network failures talking to LRCLIB
            RateLimitError - HTTP 429 responses
"""

from typing import Optional


RATE_LIMIT_STATUS = 429


class LyricsMatcherError(Exception):
    """
    Base exception for all lyrics-matcher errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (endpoint, params, ...).
    """

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class LyricsStoreError(LyricsMatcherError):
    """
    Raised when a request to the lyrics store fails.

    Covers connection errors, timeouts, unexpected status codes and
    unparseable response bodies. A 404 on a direct lookup is not an error
    and never reaches this class.

    Attributes:
        status_code: HTTP status of the failed response, None for network errors.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class RateLimitError(LyricsStoreError):
    """
    Raised when the lyrics store answers HTTP 429.

    Attributes:
        retry_after: Seconds suggested by the Retry-After header, if any.
    """

    def __init__(
        self,
        message: str = "Rate limited by lyrics store (HTTP 429)",
        retry_after: Optional[float] = None,
        details: Optional[dict] = None
    ) -> None:
        super().__init__(message, status_code=RATE_LIMIT_STATUS, details=details)
        self.retry_after = retry_after


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Check whether an exception signals HTTP 429.

    LyricsStoreError is judged by its status_code alone; its message can
    carry request URLs and parameters. Other exceptions are checked for a
    status_code attribute and then the message text, so errors raised by
    other store implementations are recognized too.
    """
    if isinstance(error, LyricsStoreError):
        return error.status_code == RATE_LIMIT_STATUS
    if getattr(error, 'status_code', None) == RATE_LIMIT_STATUS:
        return True
    return str(RATE_LIMIT_STATUS) in str(error)
