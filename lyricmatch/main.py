"""
Main CLI interface for Lyrics-Matcher

This module provides the command-line interface for finding synchronized
lyrics on LRCLIB and exporting them as .lrc files.

The CLI is built using Click framework and provides commands for:
- Single song lookup with confidence explanation (search)
- Listing every search candidate ranked by confidence (candidates)
- Bulk matching of a normalized JSON playlist (batch)
- Configuration management (config show, set, validate)
"""

import json
import sys
import threading
import click
import functools
from pathlib import Path

from . import __version__
from .config.settings import get_settings, reload_settings
from .lrclib.client import get_lrclib_client, reset_lrclib_client
from .lrclib.models import EntryStatus, MatchResult, PlaylistEntry, SearchMode, SearchStrategy, TrackQuery
from .matching.confidence import calculate_confidence, rank_candidates
from .matching.strategy import find_best_match
from .batch.scheduler import BulkMatchScheduler
from .lyrics.exporter import LrcExporter
from .utils.logger import configure_from_settings, get_logger, get_current_log_file, setup_logging
from .utils.helpers import (
    clean_track_name,
    format_duration,
    parse_duration_string,
    resolve_filename_format,
    FILENAME_FORMATS
)


# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)

LEVEL_COLORS = {
    'high': 'green',
    'medium': 'yellow',
    'low': 'red',
}

STATUS_COLORS = {
    EntryStatus.FOUND: 'green',
    EntryStatus.NOT_FOUND: 'red',
    EntryStatus.PENDING: 'yellow',
    EntryStatus.SEARCHING: 'cyan',
    EntryStatus.ERROR: 'red',
}


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Catches common exceptions and provides user-friendly error messages while
    ensuring proper logging and exit codes.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)  # Standard exit code for SIGINT
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def parse_duration_option(ctx, param, value):
    """Click callback accepting seconds or m:ss"""
    if value is None:
        return None
    seconds = parse_duration_string(value)
    if seconds is None:
        raise click.BadParameter(f"'{value}' is not a duration (use seconds or m:ss)")
    return seconds


def build_strategy(mode, external) -> SearchStrategy:
    """Merge command-line overrides into the configured search strategy"""
    strategy = get_settings().get_search_strategy()
    return SearchStrategy(
        mode=SearchMode(mode.upper()) if mode else strategy.mode,
        try_external=strategy.try_external if external is None else external
    )


def echo_match(result: MatchResult, index: int = None) -> None:
    """Print a scored candidate with its reasons"""
    track = result.track
    color = LEVEL_COLORS[result.confidence_level]
    prefix = f"{index:2d}. " if index is not None else ""

    click.echo(
        f"{prefix}{click.style(f'{result.confidence_percentage:3d}%', fg=color, bold=True)} "
        f"{track.artist_name} - {track.track_name}"
        f"{f' [{track.album_name}]' if track.album_name else ''} "
        f"({format_duration(track.duration)}, id {track.id})"
    )

    lyrics_kind = "synced" if track.has_synced_lyrics else ("plain" if track.has_lyrics else "none")
    if track.instrumental:
        lyrics_kind = "instrumental"
    click.echo(f"      Lyrics: {lyrics_kind}")
    for reason in result.confidence_reasons:
        click.echo(f"      • {reason}")


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    Lyrics-Matcher - Find synchronized lyrics on LRCLIB

    Looks up songs from imprecise metadata, explains how confident each match
    is, and exports the lyrics as .lrc files.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"Lyrics-Matcher v{__version__}")
        return

    if config:
        reload_settings(config)
        reset_lrclib_client()
        configure_from_settings()
        click.echo(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        settings = get_settings()
        setup_logging(
            level="DEBUG",
            log_file=str(get_current_log_file()) if get_current_log_file() else None,
            console_output=True,
            colored_output=settings.logging.colored_output
        )
        logger.console_info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('title')
@click.argument('artist')
@click.option('--album', help='Album name')
@click.option('--duration', '-d', callback=parse_duration_option, help='Track length (seconds or m:ss)')
@click.option('--mode', type=click.Choice(['exact', 'fuzzy', 'cached'], case_sensitive=False), help='Search mode')
@click.option('--external/--cached-only', default=None, help='Allow external lookups (/get) or cache only')
@click.option('--no-retry', is_flag=True, help='Do not retry with a cleaned track name')
@click.option('--save', type=click.Path(file_okay=False), help='Write the lyrics to this directory')
@click.option('--format', 'filename_format', help='Filename pattern or format id')
@click.option('--offset', type=float, default=0.0, help='Lyrics offset in seconds (synced lyrics only)')
@handle_error
def search(title, artist, album, duration, mode, external, no_retry, save, filename_format, offset):
    """
    Find the best lyrics match for a single song

    Args:
        title: Track title
        artist: Artist name
    """
    strategy = build_strategy(mode, external)
    client = get_lrclib_client()

    logger.info(f"Searching {artist} - {title} with strategy {strategy}")
    match = find_best_match(client, title, artist, album, duration, strategy)

    if not match and not no_retry:
        cleaned = clean_track_name(title)
        if cleaned and cleaned != title:
            click.echo(f"No match, retrying as '{cleaned}'")
            match = find_best_match(client, cleaned, artist, album, duration, strategy)

    if not match:
        click.echo(click.style(f"No lyrics found for {artist} - {title}", fg='yellow'))
        sys.exit(1)

    result = calculate_confidence(TrackQuery(title, artist, album, duration), match)
    echo_match(result)

    if save:
        exporter = LrcExporter(save, filename_format=resolve_filename_format(filename_format), offset=offset)
        path = exporter.save_track(match)
        if path:
            click.echo(f"\nSaved to: {path}")
        else:
            click.echo(click.style("Match has no lyrics text, nothing saved", fg='yellow'))


@cli.command()
@click.argument('title')
@click.argument('artist', required=False, default="")
@click.option('--album', help='Album name hint')
@click.option('--duration', '-d', callback=parse_duration_option, help='Track length (seconds or m:ss)')
@click.option('--query', '-q', help='Free-text query instead of field hints')
@click.option('--limit', type=click.IntRange(min=1), default=10, show_default=True, help='Results to show')
@handle_error
def candidates(title, artist, album, duration, query, limit):
    """
    List search results ranked by confidence

    Args:
        title: Track title to compare against
        artist: Artist name to compare against (optional)
    """
    client = get_lrclib_client()

    if query:
        results = client.search_lyrics(query=query)
    else:
        results = client.search_lyrics(track_name=title, artist_name=artist or None, album_name=album)

    if not results:
        click.echo(click.style("No candidates found", fg='yellow'))
        return

    ranked = rank_candidates(TrackQuery(title, artist, album, duration), results)
    click.echo(f"{len(ranked)} candidates, best first:\n")
    for index, result in enumerate(ranked[:limit], 1):
        echo_match(result, index)


def load_playlist(path: Path):
    """
    Read a JSON array of normalized entries

    Raises:
        click.ClickException: If the file is not valid JSON or an entry is malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict) and isinstance(data.get('entries'), list):
        data = data['entries']

    if not isinstance(data, list):
        raise click.ClickException("The playlist file must contain an array of entries")

    entries = []
    for index, item in enumerate(data, 1):
        try:
            entries.append(PlaylistEntry.from_dict(item))
        except ValueError as e:
            raise click.ClickException(f"Entry {index}: {e}")

    return entries


def run_batch(scheduler: BulkMatchScheduler, entries, selected_ids):
    """
    Run the scheduler in a worker thread so Ctrl+C can cancel cooperatively

    Returns:
        BatchStats of the run
    """
    outcome = {}

    def target():
        try:
            outcome['stats'] = scheduler.process(entries, selected_ids)
        except Exception as e:
            outcome['error'] = e

    runner = threading.Thread(target=target, name="lyricmatch-batch", daemon=True)
    runner.start()

    while runner.is_alive():
        try:
            runner.join(timeout=0.5)
        except KeyboardInterrupt:
            click.echo(click.style("\nCancelling, waiting for running lookups to finish...", fg='yellow'))
            scheduler.cancel()

    if 'error' in outcome:
        raise outcome['error']
    return outcome['stats']


@cli.command()
@click.argument('playlist', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--only', 'selected_ids', multiple=True, help='Process only entries with this id (repeatable)')
@click.option('--mode', type=click.Choice(['exact', 'fuzzy', 'cached'], case_sensitive=False), help='Search mode')
@click.option('--external/--cached-only', default=None, help='Allow external lookups (/get) or cache only')
@click.option('--concurrent', '-c', type=click.IntRange(1, 10), help='Concurrent lookups')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), help='Export found lyrics to this directory')
@click.option('--format', 'filename_format', help='Filename pattern or format id')
@click.option('--offset', type=float, default=0.0, help='Lyrics offset in seconds (synced lyrics only)')
@click.option('--report', type=click.Path(dir_okay=False), help='Write entries and results as JSON')
@handle_error
def batch(playlist, selected_ids, mode, external, concurrent, output_dir, filename_format, offset, report):
    """
    Match every entry of a JSON playlist

    The file holds an array of objects with trackName and artistName, and
    optionally albumName, duration (seconds), fileName, id and status.
    Entries already marked found are skipped, so a report can be fed back in
    to retry what is left.

    Args:
        playlist: Path to the JSON playlist
    """
    settings = get_settings()
    entries = load_playlist(playlist)
    filename_format = resolve_filename_format(filename_format or settings.naming.filename_format)

    scheduler = BulkMatchScheduler(
        store=get_lrclib_client(),
        strategy=build_strategy(mode, external),
        max_concurrent=concurrent,
        filename_format=filename_format,
        show_progress=True
    )

    stats = run_batch(scheduler, entries, set(selected_ids))

    click.echo("\nResults:")
    for entry in entries:
        color = STATUS_COLORS.get(entry.status, 'white')
        line = f"   {click.style(f'{entry.status.value:<10}', fg=color)} {entry.artist_name} - {entry.track_name}"
        if entry.match_data:
            level_color = LEVEL_COLORS[entry.match_data.confidence_level]
            line += f"  {click.style(f'{entry.match_data.confidence_percentage}%', fg=level_color)}"
        click.echo(line)

    click.echo(f"\n{stats}")
    if stats.duration is not None:
        click.echo(f"   Total time: {format_duration(stats.duration)}")
    if stats.rate_limited:
        click.echo(click.style(
            f"   {stats.rate_limited} entries were rate limited and left pending; run again to retry them",
            fg='yellow'
        ))

    if output_dir:
        exporter = LrcExporter(output_dir, filename_format=filename_format, offset=offset)
        export = exporter.export_entries(entries)
        click.echo(f"\nSaved {len(export.written)} lyrics files to: {exporter.output_directory}")
        if export.skipped:
            click.echo(f"   {len(export.skipped)} matches had no lyrics text")
        if export.failed:
            click.echo(click.style(f"   {len(export.failed)} files could not be written", fg='red'))

    if report:
        report_path = Path(report)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump([entry.to_dict() for entry in entries], f, indent=2, ensure_ascii=False)
        click.echo(f"Report written to: {report_path}")


# Configuration commands group
@cli.group()
def config():
    """
    Configuration management

    Command group for viewing and modifying search, batch and naming settings.
    """
    pass


@config.command()
@handle_error
def show():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:\n")
    for section, values in settings.to_dict().items():
        click.echo(f"{section.capitalize()}:")
        for key, value in values.items():
            click.echo(f"   {key}: {value}")
        click.echo("")

    click.echo("Filename formats:")
    for format_id, pattern in FILENAME_FORMATS.items():
        click.echo(f"   {format_id}: {pattern}")

    current_log = get_current_log_file()
    click.echo(f"\nLogging: {current_log if current_log else 'Console only'}")


@config.command(name='set')
@click.option('--mode', type=click.Choice(['exact', 'fuzzy', 'cached'], case_sensitive=False), help='Default search mode')
@click.option('--external/--cached-only', default=None, help='Allow external lookups by default')
@click.option('--concurrent', type=click.IntRange(1, 10), help='Concurrent lookups in batch mode')
@click.option('--backoff', type=click.FloatRange(min=0), help='Rate-limit pause in seconds')
@click.option('--format', 'filename_format', help='Filename pattern or format id')
@click.option('--output', type=click.Path(file_okay=False), help='Default lyrics output directory')
@handle_error
def set_config(mode, external, concurrent, backoff, filename_format, output):
    """Update configuration settings and save them"""
    settings = get_settings()
    changes = []

    if mode:
        settings.search.mode = mode.upper()
        changes.append(f"Search mode: {mode.upper()}")
    if external is not None:
        settings.search.try_external = external
        changes.append(f"External lookups: {external}")
    if concurrent:
        settings.batch.concurrency = concurrent
        changes.append(f"Concurrent lookups: {concurrent}")
    if backoff is not None:
        settings.batch.rate_limit_backoff = backoff
        changes.append(f"Rate-limit backoff: {backoff:g}s")
    if filename_format:
        settings.naming.filename_format = resolve_filename_format(filename_format)
        changes.append(f"Filename format: {settings.naming.filename_format}")
    if output:
        settings.naming.output_directory = output
        changes.append(f"Output directory: {output}")

    if changes:
        settings.save_config()
        click.echo("Configuration updated:")
        for change in changes:
            click.echo(f"   • {change}")
    else:
        click.echo("No changes specified")


@config.command()
@handle_error
def validate():
    """Check the configuration for invalid values"""
    errors = get_settings().get_validation_errors()
    if errors:
        click.echo(click.style("Configuration has problems:", fg='red'))
        for error in errors:
            click.echo(f"   • {error}")
        sys.exit(1)
    click.echo(click.style("Configuration OK", fg='green'))


# Entry point for module execution
if __name__ == '__main__':
    cli()
