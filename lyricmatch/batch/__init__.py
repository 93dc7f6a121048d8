"""
Bulk matching package

BulkMatchScheduler resolves lyrics for many playlist entries with a bounded
number of concurrent lookups, a queue-wide pause after HTTP 429 and
cooperative cancellation. Entries are updated in place so callers can
render progress per entry.
"""

from .scheduler import BulkMatchScheduler, DEFAULT_MAX_CONCURRENT, DEFAULT_RATE_LIMIT_BACKOFF

__all__ = [
    'BulkMatchScheduler',
    'DEFAULT_MAX_CONCURRENT',
    'DEFAULT_RATE_LIMIT_BACKOFF',
]
