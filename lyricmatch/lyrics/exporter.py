"""
LRC file export for matched tracks

Writes the lyrics of matched candidates to .lrc files. Synchronized lyrics
are preferred; plain lyrics are written as-is when no timed version exists.
A playback offset in seconds becomes an [offset:<ms>] tag in front of
synchronized lyrics.

Existing files are renamed to a timestamped backup before being replaced.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config.settings import get_settings
from ..lrclib.models import EntryStatus, PlaylistEntry, TrackCandidate
from ..utils.helpers import (
    create_backup_filename,
    ensure_directory,
    ensure_lrc_extension,
    format_filename,
    sanitize_filename
)
from ..utils.logger import get_logger


def build_lrc_content(track: TrackCandidate, offset: float = 0.0) -> str:
    """
    Lyrics text to write for a candidate

    Args:
        track: Matched candidate
        offset: Playback offset in seconds, applied to synchronized lyrics only

    Returns:
        File content, empty when the candidate has no lyrics
    """
    content = track.synced_lyrics or track.plain_lyrics or ""

    if offset and track.synced_lyrics:
        content = f"[offset:{round(offset * 1000)}]\n{content}"

    return content


@dataclass
class ExportResult:
    """Files written by one export call"""
    written: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class LrcExporter:
    """Write .lrc files for matched tracks into a directory"""

    def __init__(
        self,
        output_directory: Optional[Union[str, Path]] = None,
        filename_format: Optional[str] = None,
        offset: float = 0.0,
        backup_existing: bool = True
    ):
        """
        Initialize exporter

        Args:
            output_directory: Target directory, defaults to the configured one
            filename_format: Pattern for entries without a file name
            offset: Playback offset in seconds for synchronized lyrics
            backup_existing: Rename existing files before overwriting
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.output_directory = Path(output_directory).expanduser() if output_directory \
            else self.settings.get_output_directory()
        self.filename_format = filename_format or self.settings.naming.filename_format
        self.offset = offset
        self.backup_existing = backup_existing

    def save_track(self, track: TrackCandidate, file_name: Optional[str] = None) -> Optional[Path]:
        """
        Write one candidate's lyrics

        Args:
            track: Matched candidate
            file_name: Explicit file name, sanitized and given an .lrc suffix

        Returns:
            Path written, or None when the candidate has no lyrics
        """
        content = build_lrc_content(track, self.offset)
        if not content:
            self.logger.info(f"No lyrics text to save for {track.artist_name} - {track.track_name}")
            return None

        if file_name:
            name = ensure_lrc_extension(sanitize_filename(file_name))
        else:
            name = format_filename(track.track_name, track.artist_name, track.album_name, self.filename_format)

        output_dir = ensure_directory(self.output_directory)
        lrc_path = output_dir / name

        if lrc_path.exists() and self.backup_existing:
            backup_path = create_backup_filename(lrc_path)
            lrc_path.rename(backup_path)
            self.logger.info(f"Created backup: {backup_path.name}")

        with open(lrc_path, 'w', encoding='utf-8') as f:
            f.write(content)

        self.logger.info(f"Saved lyrics: {lrc_path.name}")
        return lrc_path

    def export_entries(self, entries: Iterable[PlaylistEntry]) -> ExportResult:
        """
        Write files for every found entry

        Entries that are not found, or whose match has no lyrics text, are
        skipped. A failure on one file does not stop the others.

        Args:
            entries: Playlist entries after matching

        Returns:
            ExportResult listing written paths and skipped/failed entry ids
        """
        result = ExportResult()

        for entry in entries:
            if entry.status != EntryStatus.FOUND or not entry.match_data:
                continue

            try:
                path = self.save_track(entry.match_data.track, entry.file_name)
            except OSError as e:
                self.logger.error(f"Failed to save lyrics for {entry.artist_name} - {entry.track_name}: {e}")
                result.failed.append(entry.id)
                continue

            if path:
                result.written.append(path)
            else:
                result.skipped.append(entry.id)

        return result
