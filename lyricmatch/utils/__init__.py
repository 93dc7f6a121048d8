"""
Utilities package
Common helpers, logging, and utility functions
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    create_operation_logger,
    log_performance,
    get_current_log_file
)
from .helpers import (
    levenshtein_distance,
    calculate_similarity,
    clean_track_name,
    format_filename,
    resolve_filename_format,
    sanitize_filename,
    ensure_lrc_extension,
    format_duration,
    format_seconds_delta,
    parse_duration_string,
    retry_on_failure,
    ensure_directory,
    create_backup_filename,
    FILENAME_FORMATS,
    DEFAULT_FILENAME_FORMAT
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'create_operation_logger',
    'log_performance',
    'get_current_log_file',

    # Helper exports
    'levenshtein_distance',
    'calculate_similarity',
    'clean_track_name',
    'format_filename',
    'resolve_filename_format',
    'sanitize_filename',
    'ensure_lrc_extension',
    'format_duration',
    'format_seconds_delta',
    'parse_duration_string',
    'retry_on_failure',
    'ensure_directory',
    'create_backup_filename',
    'FILENAME_FORMATS',
    'DEFAULT_FILENAME_FORMAT',
]
