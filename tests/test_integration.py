"""Integration tests"""

import json

import pytest
import yaml
from click.testing import CliRunner
from unittest.mock import patch
from lyricmatch import __version__
from lyricmatch.config.settings import Settings
from lyricmatch.lrclib.models import SearchMode, TrackCandidate
from lyricmatch.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store(fake_store, blinding_lights, yesterday):
    return fake_store(
        records={
            ("blinding lights", "the weeknd"): blinding_lights,
            ("yesterday", "the beatles"): yesterday,
        },
        search_results={
            "yesterday": [
                TrackCandidate(id=7, track_name="Yesterday (Live)", artist_name="The Beatles", duration=160),
                yesterday,
            ]
        }
    )


class TestCli:
    """Test command-line interface"""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_search_found(self, runner, store):
        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, [
                'search', 'Blinding Lights', 'The Weeknd', '--duration', '3:20', '--mode', 'exact', '--external'
            ])

        assert result.exit_code == 0, result.output
        assert "98%" in result.output
        assert "Duration matches perfectly (±1s)." in result.output
        assert store.calls[0] == ('get', 'Blinding Lights', 'The Weeknd', None, 200)

    def test_search_retries_cleaned_name(self, runner, store):
        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, [
                'search', 'Yesterday - Remastered 2009', 'The Beatles', '-d', '125', '--mode', 'exact', '--external'
            ])

        assert result.exit_code == 0, result.output
        assert "retrying as 'Yesterday'" in result.output

    def test_search_not_found(self, runner, store):
        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, ['search', 'Unknown', 'Nobody', '-d', '100', '--mode', 'exact'])

        assert result.exit_code == 1
        assert "No lyrics found" in result.output

    def test_search_invalid_duration(self, runner):
        result = runner.invoke(cli, ['search', 'Song', 'Artist', '--duration', 'soon'])
        assert result.exit_code == 2

    def test_search_save(self, runner, store, temp_dir):
        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, [
                'search', 'Blinding Lights', 'The Weeknd', '-d', '200', '--mode', 'exact', '--external',
                '--save', str(temp_dir), '--offset', '0.5'
            ])

        assert result.exit_code == 0, result.output
        saved = temp_dir / "The Weeknd - Blinding Lights.lrc"
        assert saved.read_text(encoding='utf-8').startswith("[offset:500]\n")

    def test_candidates_ranked(self, runner, store):
        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, ['candidates', 'Yesterday', 'The Beatles', '-d', '125'])

        assert result.exit_code == 0, result.output
        assert result.output.index("id 456)") < result.output.index("id 7)")
        assert "2 candidates" in result.output

    def test_batch(self, runner, store, temp_dir):
        playlist = temp_dir / "playlist.json"
        playlist.write_text(json.dumps([
            {'id': 'a', 'trackName': 'Blinding Lights', 'artistName': 'The Weeknd', 'duration': 200},
            {'id': 'b', 'trackName': 'Yesterday', 'artistName': 'The Beatles', 'duration': 125},
            {'id': 'c', 'trackName': 'Unknown', 'artistName': 'Nobody', 'duration': 100},
        ]), encoding='utf-8')
        report = temp_dir / "report.json"
        output_dir = temp_dir / "lyrics"

        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, [
                'batch', str(playlist), '--mode', 'exact', '--external',
                '--output-dir', str(output_dir), '--report', str(report)
            ])

        assert result.exit_code == 0, result.output
        assert "Found: 2/3" in result.output

        statuses = {entry['id']: entry['status'] for entry in json.loads(report.read_text(encoding='utf-8'))}
        assert statuses == {'a': 'found', 'b': 'found', 'c': 'not_found'}
        assert sorted(path.name for path in output_dir.iterdir()) == [
            "The Beatles - Yesterday.lrc",
            "The Weeknd - Blinding Lights.lrc",
        ]

    def test_batch_only(self, runner, store, temp_dir):
        playlist = temp_dir / "playlist.json"
        playlist.write_text(json.dumps([
            {'id': 'a', 'trackName': 'Blinding Lights', 'artistName': 'The Weeknd', 'duration': 200},
            {'id': 'b', 'trackName': 'Yesterday', 'artistName': 'The Beatles', 'duration': 125},
        ]), encoding='utf-8')

        with patch('lyricmatch.main.get_lrclib_client', return_value=store):
            result = runner.invoke(cli, ['batch', str(playlist), '--mode', 'exact', '--external', '--only', 'b'])

        assert result.exit_code == 0, result.output
        assert [call[1] for call in store.calls] == ['Yesterday']

    def test_batch_rejects_malformed_entry(self, runner, temp_dir):
        playlist = temp_dir / "playlist.json"
        playlist.write_text(json.dumps([
            {'trackName': 'Blinding Lights', 'artistName': 'The Weeknd'},
            {'trackName': 'No artist'},
        ]), encoding='utf-8')

        result = runner.invoke(cli, ['batch', str(playlist)])

        assert result.exit_code != 0
        assert "Entry 2" in result.output

    def test_batch_rejects_malformed_match_data(self, runner, temp_dir):
        playlist = temp_dir / "playlist.json"
        playlist.write_text(json.dumps([
            {'trackName': 'Blinding Lights', 'artistName': 'The Weeknd', 'matchData': "oops"},
        ]), encoding='utf-8')

        result = runner.invoke(cli, ['batch', str(playlist)])

        assert result.exit_code == 1
        assert "Entry 1" in result.output

    def test_batch_rejects_invalid_json(self, runner, temp_dir):
        playlist = temp_dir / "playlist.json"
        playlist.write_text("{not json", encoding='utf-8')

        result = runner.invoke(cli, ['batch', str(playlist)])

        assert result.exit_code != 0
        assert "Invalid JSON" in result.output

    def test_config_show(self, runner):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0
        assert "Search:" in result.output
        assert "artist-title" in result.output


class TestSettings:
    """Test configuration loading"""

    def test_defaults(self, temp_dir, monkeypatch):
        for name in ('LRCLIB_BASE_URL', 'LYRICMATCH_OUTPUT_DIR', 'LYRICMATCH_SEARCH_MODE', 'LYRICMATCH_LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)
        config_file = temp_dir / "config.yaml"
        config_file.write_text("", encoding='utf-8')

        settings = Settings(str(config_file))

        assert settings.lrclib.base_url == "https://lrclib.net/api"
        assert settings.search.mode == "EXACT"
        assert settings.batch.concurrency == 3
        assert settings.batch.rate_limit_backoff == 10.0
        assert settings.get_validation_errors() == []
        assert str(settings.get_search_strategy()) == "EXACT +external"

    def test_config_file(self, temp_dir, monkeypatch):
        monkeypatch.delenv('LYRICMATCH_SEARCH_MODE', raising=False)
        config_file = temp_dir / "config.yaml"
        config_file.write_text(yaml.dump({
            'search': {'mode': 'FUZZY', 'try_external': False},
            'batch': {'concurrency': 2, 'rate_limit_backoff': 5},
            'unknown_section': {'x': 1},
        }), encoding='utf-8')

        settings = Settings(str(config_file))
        strategy = settings.get_search_strategy()

        assert strategy.mode == SearchMode.FUZZY
        assert strategy.try_external is False
        assert settings.batch.concurrency == 2
        assert settings.batch.rate_limit_backoff == 5

    def test_environment_override(self, temp_dir, monkeypatch):
        config_file = temp_dir / "config.yaml"
        config_file.write_text(yaml.dump({'search': {'mode': 'EXACT'}}), encoding='utf-8')
        monkeypatch.setenv('LYRICMATCH_SEARCH_MODE', 'cached')
        monkeypatch.setenv('LRCLIB_BASE_URL', 'http://localhost:3300/api')

        settings = Settings(str(config_file))

        assert settings.search.mode == 'CACHED'
        assert settings.lrclib.base_url == 'http://localhost:3300/api'

    def test_validation_errors(self, temp_dir):
        config_file = temp_dir / "config.yaml"
        config_file.write_text(yaml.dump({
            'lrclib': {'base_url': 'ftp://example.com'},
            'batch': {'concurrency': 0},
        }), encoding='utf-8')

        settings = Settings(str(config_file))
        settings.search.mode = 'SOMETIMES'
        errors = settings.get_validation_errors()

        assert any("base URL" in error for error in errors)
        assert any("search mode" in error for error in errors)
        assert any("concurrency" in error for error in errors)
        assert settings.validate() is False

    def test_save_config(self, temp_dir, monkeypatch):
        monkeypatch.delenv('LYRICMATCH_SEARCH_MODE', raising=False)
        settings = Settings()
        settings.search.mode = 'FUZZY'
        settings.naming.filename_format = '{Title}'
        saved = temp_dir / "saved.yaml"

        settings.save_config(str(saved))
        reloaded = Settings(str(saved))

        assert reloaded.search.mode == 'FUZZY'
        assert reloaded.naming.filename_format == '{Title}'


class TestLogging:
    """Test logging setup"""

    def test_logger_configuration(self, temp_dir):
        """Test logger can be configured with a rotating file"""
        from lyricmatch.utils.logger import (
            configure_from_settings,
            get_current_log_file,
            get_logger,
            setup_logging,
        )

        log_file = temp_dir / "logs" / "lyricmatch.log"
        try:
            setup_logging(level="DEBUG", log_file=str(log_file), console_output=False)
            logger = get_logger("lyricmatch.test")
            logger.info("file only message")

            assert get_current_log_file() == log_file
            assert "file only message" in log_file.read_text(encoding='utf-8')
        finally:
            configure_from_settings()

    def test_operation_logger(self):
        from lyricmatch.utils.logger import create_operation_logger

        operation = create_operation_logger("lyricmatch.test", "Test operation", show_progress_bar=False)
        operation.start()
        operation.progress("halfway", 1, 2)
        operation.warning("something odd")
        operation.complete()
