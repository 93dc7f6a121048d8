"""
Lyrics output package

Writes matched lyrics to .lrc files, honouring per-entry file names and
the configured filename pattern.
"""

from .exporter import LrcExporter, ExportResult, build_lrc_content

__all__ = [
    'LrcExporter',
    'ExportResult',
    'build_lrc_content',
]
