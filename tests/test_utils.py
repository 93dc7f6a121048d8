# tests/test_utils.py
"""Test utilities and helpers"""

import random
import string

import pytest
from pathlib import Path
from unittest.mock import Mock, patch
from lyricmatch.utils.helpers import (
    levenshtein_distance,
    calculate_similarity,
    clean_track_name,
    resolve_filename_format,
    sanitize_filename,
    ensure_lrc_extension,
    format_filename,
    format_duration,
    format_seconds_delta,
    parse_duration_string,
    retry_on_failure,
    ensure_directory,
    create_backup_filename,
    DEFAULT_FILENAME_FORMAT
)
from lyricmatch.utils.logger import parse_size


class TestSimilarity:
    """Test Levenshtein distance and similarity"""

    def test_levenshtein_distance(self):
        """Test edit distance on known pairs"""
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("flaw", "lawn") == 2
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_calculate_similarity(self):
        """Test string similarity calculation"""
        assert calculate_similarity("hello", "hello") == 1.0
        assert calculate_similarity("hello", "world") < 0.5
        assert calculate_similarity("", "") == 1.0
        assert calculate_similarity("test", "") == 0.0
        assert calculate_similarity("", "test") == 0.0

    def test_similarity_ignores_case(self):
        """Test comparison is case-insensitive"""
        assert calculate_similarity("The Weeknd", "the weeknd") == 1.0
        assert calculate_similarity("YESTERDAY", "yesterday") == 1.0

    def test_similarity_value(self):
        """Test similarity is 1 - distance / longest length"""
        assert calculate_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_similarity_does_not_strip(self):
        """Test surrounding whitespace counts as characters"""
        assert calculate_similarity(" abc", "abc") == pytest.approx(0.75)

    def test_similarity_random_strings(self):
        """Test range, symmetry and identity on random inputs"""
        rng = random.Random(1234)
        alphabet = string.ascii_letters + " -'()"

        for _ in range(200):
            a = ''.join(rng.choice(alphabet) for _ in range(rng.randint(0, 12)))
            b = ''.join(rng.choice(alphabet) for _ in range(rng.randint(0, 12)))

            score = calculate_similarity(a, b)
            assert 0.0 <= score <= 1.0
            assert score == pytest.approx(calculate_similarity(b, a))
            assert calculate_similarity(a, a) == 1.0


class TestCleanTrackName:
    """Test track name cleaning"""

    def test_removes_remaster_suffix(self):
        assert clean_track_name("Yesterday - Remastered 2009") == "Yesterday"
        assert clean_track_name("Let It Be - remastered") == "Let It Be"

    def test_removes_brackets(self):
        assert clean_track_name("Song (Live) [Bonus Track]") == "Song"
        assert clean_track_name("Track (feat. Someone)") == "Track"

    def test_removes_edit_and_explicit_suffixes(self):
        assert clean_track_name("Hey Jude - Radio Edit") == "Hey Jude"
        assert clean_track_name("Track - Explicit") == "Track"

    def test_removes_dangling_hyphen(self):
        assert clean_track_name("Song (Remix) -") == "Song"

    def test_plain_name_unchanged(self):
        assert clean_track_name("Blinding Lights") == "Blinding Lights"
        assert clean_track_name("") == ""


class TestFilenames:
    """Test filename helpers"""

    def test_sanitize_filename(self):
        """Test unsafe characters become underscores"""
        assert sanitize_filename("AC/DC") == "AC_DC"
        assert sanitize_filename('What?: "Yes"') == 'What__ _Yes_'
        assert sanitize_filename("Plain Name") == "Plain Name"

    def test_ensure_lrc_extension(self):
        assert ensure_lrc_extension("song") == "song.lrc"
        assert ensure_lrc_extension("song.lrc") == "song.lrc"
        assert ensure_lrc_extension("song.LRC") == "song.LRC"

    def test_resolve_filename_format(self):
        assert resolve_filename_format(None) == DEFAULT_FILENAME_FORMAT
        assert resolve_filename_format("title-artist") == "{Title} - {Artist}"
        assert resolve_filename_format("{Album}/{Title}") == "{Album}/{Title}"

    def test_format_filename_default(self):
        assert format_filename("Blinding Lights", "The Weeknd") == "The Weeknd - Blinding Lights.lrc"

    def test_format_filename_patterns(self):
        assert format_filename("Blinding Lights", "The Weeknd", pattern="title") == "Blinding Lights.lrc"
        assert format_filename(
            "Blinding Lights", "The Weeknd", "After Hours", "artist-album-title"
        ) == "The Weeknd - After Hours - Blinding Lights.lrc"

    def test_format_filename_missing_album(self):
        """Test separators left by an empty album are collapsed"""
        assert format_filename(
            "Blinding Lights", "The Weeknd", None, "{Artist} - {Album} - {Title}"
        ) == "The Weeknd - Blinding Lights.lrc"

    def test_format_filename_sanitizes(self):
        assert format_filename("What?", "AC/DC") == "AC_DC - What_.lrc"


class TestDurations:
    """Test duration helpers"""

    def test_format_duration(self):
        """Test duration formatting"""
        assert format_duration(90) == "1:30"
        assert format_duration(3661) == "1:01:01"
        assert format_duration(0) == "0:00"
        assert format_duration(-10) == "0:00"

    def test_format_seconds_delta(self):
        assert format_seconds_delta(1.0) == "1"
        assert format_seconds_delta(1.5) == "1.5"
        assert format_seconds_delta(0.333) == "0.33"
        assert format_seconds_delta(0) == "0"

    def test_parse_duration_string(self):
        """Test duration string parsing"""
        assert parse_duration_string("225") == 225
        assert parse_duration_string("3:45") == 225
        assert parse_duration_string("1:23:45") == 5025
        assert parse_duration_string("200.5") == 200.5
        assert parse_duration_string("invalid") is None
        assert parse_duration_string("3:xx") is None
        assert parse_duration_string("-5") is None
        assert parse_duration_string(None) is None

    def test_parse_size(self):
        assert parse_size("10MB") == 10 * 1024 ** 2
        assert parse_size("500kb") == 500 * 1024
        with pytest.raises(ValueError):
            parse_size("lots")


class TestRetry:
    """Test retry decorator"""

    @patch('lyricmatch.utils.helpers.time.sleep')
    def test_retries_until_success(self, mock_sleep):
        func = Mock(side_effect=[ConnectionError("down"), ConnectionError("down"), "ok"])
        wrapped = retry_on_failure(max_attempts=3, delay=1.0, backoff=2.0, exceptions=(ConnectionError,))(func)

        assert wrapped() == "ok"
        assert func.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('lyricmatch.utils.helpers.time.sleep')
    def test_gives_up_after_max_attempts(self, mock_sleep):
        func = Mock(side_effect=ConnectionError("down"))
        wrapped = retry_on_failure(max_attempts=2, delay=0, exceptions=(ConnectionError,))(func)

        with pytest.raises(ConnectionError):
            wrapped()
        assert func.call_count == 2

    @patch('lyricmatch.utils.helpers.time.sleep')
    def test_other_exceptions_not_retried(self, mock_sleep):
        func = Mock(side_effect=ValueError("bad"))
        wrapped = retry_on_failure(max_attempts=3, delay=0, exceptions=(ConnectionError,))(func)

        with pytest.raises(ValueError):
            wrapped()
        assert func.call_count == 1
        mock_sleep.assert_not_called()


class TestFiles:
    """Test file helpers"""

    def test_ensure_directory(self, temp_dir):
        target = temp_dir / "a" / "b"
        result = ensure_directory(target)
        assert result == target
        assert target.is_dir()

    def test_create_backup_filename(self):
        backup = create_backup_filename(Path("/music/song.lrc"))
        assert backup.parent == Path("/music")
        assert backup.name.startswith("song.backup_")
        assert backup.suffix == ".lrc"
