"""
Utility functions and helpers for Lyrics-Matcher
Common functions for string similarity, track name cleaning, filename handling and retries
"""

import re
import time
import functools
from pathlib import Path
from datetime import datetime
from typing import Optional, Union, Tuple, Type, Dict


# Characters not allowed in filenames on common filesystems
UNSAFE_FILENAME_CHARS = r'[<>:"/\\|?*]'

# Built-in filename patterns, selectable by id
FILENAME_FORMATS: Dict[str, str] = {
    'artist-title': '{Artist} - {Title}',
    'title': '{Title}',
    'artist-album-title': '{Artist} - {Album} - {Title}',
    'title-artist': '{Title} - {Artist}',
}

DEFAULT_FILENAME_FORMAT = FILENAME_FORMATS['artist-title']


def levenshtein_distance(a: str, b: str) -> int:
    """
    Calculate the edit distance between two strings

    Insertions, deletions and substitutions all cost 1. The full
    (len(b) + 1) x (len(a) + 1) matrix is built; inputs are short
    track and artist names.

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character edits turning a into b
    """
    if len(a) == 0:
        return len(b)
    if len(b) == 0:
        return len(a)

    # Create matrix, rows follow b and columns follow a
    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]

    # Initialize first row and column
    for i in range(len(b) + 1):
        matrix[i][0] = i
    for j in range(len(a) + 1):
        matrix[0][j] = j

    # Fill matrix
    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            if b[i-1] == a[j-1]:
                matrix[i][j] = matrix[i-1][j-1]
            else:
                matrix[i][j] = min(
                    matrix[i-1][j-1] + 1,  # substitution
                    matrix[i][j-1] + 1,    # insertion
                    matrix[i-1][j] + 1     # deletion
                )

    return matrix[len(b)][len(a)]


def calculate_similarity(str1: str, str2: str) -> float:
    """
    Calculate case-insensitive string similarity using Levenshtein distance

    Two empty strings are identical (1.0); an empty string against a
    non-empty one shares nothing (0.0).

    Args:
        str1: First string
        str2: Second string

    Returns:
        Similarity score between 0.0 and 1.0
    """
    s1 = (str1 or "").lower()
    s2 = (str2 or "").lower()

    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    if not s1 or not s2:
        return 0.0

    if s1 == s2:
        return 1.0

    distance = levenshtein_distance(s1, s2)
    similarity = (max_len - distance) / max_len

    return min(1.0, max(0.0, similarity))


def clean_track_name(track_name: str) -> str:
    """
    Strip edition qualifiers from a track name for a second lookup

    Removes parenthesised and bracketed content, trailing
    "- Remastered ...", "- Explicit" and "- Radio Edit" suffixes and a
    dangling trailing hyphen.

    Args:
        track_name: Original track name

    Returns:
        Cleaned track name (may equal the input)
    """
    cleaned = track_name or ""
    cleaned = re.sub(r'\([^)]*\)', '', cleaned).strip()
    cleaned = re.sub(r'\[[^\]]*\]', '', cleaned).strip()
    cleaned = re.sub(r'-\s*Remastered.*$', '', cleaned, flags=re.IGNORECASE).strip()
    cleaned = re.sub(r'-\s*Explicit$', '', cleaned, flags=re.IGNORECASE).strip()
    cleaned = re.sub(r'-\s*Radio\s*Edit$', '', cleaned, flags=re.IGNORECASE).strip()
    cleaned = re.sub(r'\s+-\s*$', '', cleaned).strip()
    return cleaned


def resolve_filename_format(name_or_pattern: Optional[str]) -> str:
    """
    Turn a built-in format id or a raw pattern into a pattern string

    Args:
        name_or_pattern: Format id such as "title-artist" or a pattern with placeholders

    Returns:
        Pattern string with {Artist}/{Title}/{Album} placeholders
    """
    if not name_or_pattern:
        return DEFAULT_FILENAME_FORMAT
    return FILENAME_FORMATS.get(name_or_pattern, name_or_pattern)


def sanitize_filename(filename: str) -> str:
    """
    Replace filesystem-unsafe characters with underscores

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    return re.sub(UNSAFE_FILENAME_CHARS, '_', filename)


def ensure_lrc_extension(filename: str) -> str:
    """Append .lrc unless the name already ends with it (case-insensitive)"""
    if filename.lower().endswith('.lrc'):
        return filename
    return f"{filename}.lrc"


def format_filename(
    track_name: str,
    artist_name: str,
    album_name: Optional[str] = None,
    pattern: str = DEFAULT_FILENAME_FORMAT
) -> str:
    """
    Build an .lrc filename from a pattern

    Placeholders are substituted literally, then dangling " - " separators
    left by empty fields are removed and unsafe characters replaced.

    Args:
        track_name: Value for {Title}
        artist_name: Value for {Artist}
        album_name: Value for {Album} (empty when missing)
        pattern: Pattern string or built-in format id

    Returns:
        Sanitized filename ending in .lrc
    """
    filename = resolve_filename_format(pattern)

    filename = filename.replace('{Title}', track_name or '')
    filename = filename.replace('{Artist}', artist_name or '')
    filename = filename.replace('{Album}', album_name or '')

    # Clean up separators
    filename = re.sub(r'\s+-\s+$', '', filename)
    filename = re.sub(r'^\s+-\s+', '', filename)
    filename = re.sub(r'\s+-\s+-\s+', ' - ', filename)
    filename = filename.strip()

    return ensure_lrc_extension(sanitize_filename(filename))


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human-readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if not seconds or seconds < 0:
        return "0:00"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    else:
        return f"{minutes}:{secs:02d}"


def format_seconds_delta(delta: float) -> str:
    """Render a duration difference without a trailing .0 (1.0 -> "1", 1.5 -> "1.5")"""
    return f"{round(delta, 2):g}"


def parse_duration_string(duration_str: str) -> Optional[float]:
    """
    Parse duration string to seconds

    Args:
        duration_str: Duration string (e.g., "225", "3:45", "1:23:45")

    Returns:
        Duration in seconds or None if invalid
    """
    if duration_str is None:
        return None

    try:
        parts = str(duration_str).strip().split(':')
        if len(parts) == 1:
            value = float(parts[0])
            return value if value >= 0 else None
        elif len(parts) == 2:
            # mm:ss
            minutes, seconds = map(int, parts)
            return minutes * 60 + seconds
        elif len(parts) == 3:
            # hh:mm:ss
            hours, minutes, seconds = map(int, parts)
            return hours * 3600 + minutes * 60 + seconds
        else:
            return None
    except (ValueError, IndexError):
        return None


def retry_on_failure(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,)
):
    """
    Decorator for retrying functions on failure

    Only the listed exception types are retried; anything else propagates
    immediately. The last failure is re-raised once attempts run out.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between attempts
        backoff: Delay multiplier for exponential backoff
        exceptions: Exception types that trigger a retry
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 1
            current_delay = delay

            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions:
                    if attempt >= max_attempts:
                        raise

                    time.sleep(current_delay)
                    current_delay *= backoff
                    attempt += 1
        return wrapper
    return decorator


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure directory exists, create if necessary

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path_obj = Path(path).expanduser()
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


def create_backup_filename(original_path: Union[str, Path]) -> Path:
    """
    Create backup filename with timestamp

    Args:
        original_path: Original file path

    Returns:
        Backup file path
    """
    path = Path(original_path)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    if path.suffix:
        backup_name = f"{path.stem}.backup_{timestamp}{path.suffix}"
    else:
        backup_name = f"{path.name}.backup_{timestamp}"

    return path.parent / backup_name
