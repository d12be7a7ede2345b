# tests/test_generator.py
"""Test yt-dlp script and command generation"""

import os
from dataclasses import replace

import pytest

from audiobook_dl.core.exceptions import ScriptValidationError
from audiobook_dl.core.models import CookieSource, Record
from audiobook_dl.script.generator import (
    build_invocation,
    generate_command,
    generate_script,
    prepare_records,
    render_filename,
    select_valid_records,
    write_script,
)

TEMPLATE = "$author - [$series - $series_num] - $title [$narrator].%(ext)s"
WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class TestRenderFilename:
    """Test template substitution"""

    def test_all_placeholders(self, complete_record):
        """Test the default template"""
        assert render_filename(TEMPLATE, complete_record) == (
            "Frank Herbert - [Dune Chronicles - 1] - Dune [Scott Brick].%(ext)s"
        )

    def test_series_num_not_read_as_series(self):
        """Test $series_num is substituted as one placeholder"""
        record = Record(series="S", series_number=7)
        assert render_filename("$series_num|$series", record) == "7|S"

    def test_missing_values_empty(self):
        """Test absent values become empty strings"""
        assert render_filename("$title-$year-$narrator", Record(title="T")) == "T--"

    def test_year(self, complete_record):
        """Test the year placeholder"""
        assert render_filename("$title ($year)", complete_record) == "Dune (1965)"

    def test_unknown_placeholder_untouched(self):
        """Test dollar words that are not placeholders stay as they are"""
        assert render_filename("$publisher $title", Record(title="T")) == "$publisher T"

    def test_sanitize(self):
        """Test sanitized values lose path separators and escape %"""
        record = Record(title="AC/DC 100%", author="A")
        rendered = render_filename("$author/$title", record, sanitize=True)

        assert rendered.startswith("A/")
        assert "/" not in rendered[2:]
        assert "100%%" in rendered


class TestInvocation:
    """Test single command lines"""

    def test_basic(self, complete_record):
        """Test the command line layout and the canonical URL"""
        line = build_invocation(complete_record, "$title.%(ext)s")
        assert line == f"yt-dlp -x --audio-format mp3 -o 'Dune.%(ext)s' '{WATCH_URL}'"

    def test_cookies_and_format(self, complete_record):
        """Test the cookie browser and audio format flags"""
        line = build_invocation(
            complete_record, "$title.%(ext)s",
            cookies_from_browser=CookieSource.FIREFOX,
            audio_format="m4a",
        )
        assert line.startswith("yt-dlp -x --audio-format m4a --cookies-from-browser firefox -o ")

    def test_quoting(self, complete_record):
        """Test single quotes in values are shell-escaped"""
        record = replace(complete_record, title="Ender's Game")
        line = build_invocation(record, "$title.%(ext)s")
        assert "-o 'Ender'\"'\"'s Game.%(ext)s'" in line


class TestScript:
    """Test script and command output"""

    def test_script_layout(self, complete_record):
        """Test header lines, one line per record and trailing newline"""
        other = replace(complete_record, title="Dune Messiah", series_number=2)
        script = generate_script([complete_record, other], TEMPLATE)
        lines = script.split("\n")

        assert lines[0] == "#!/bin/sh"
        assert lines[1].startswith("#")
        assert lines[2] == "set -u"
        assert lines[3].startswith("command -v yt-dlp")
        assert lines[4] == ""
        assert lines[5].startswith("yt-dlp ")
        assert "Dune Messiah" in lines[6]
        assert script.endswith("\n")
        assert len(lines) == 8

    def test_command(self, complete_record):
        """Test invocations are chained with &&"""
        other = replace(complete_record, title="Dune Messiah")
        command = generate_command([complete_record, other], TEMPLATE)

        assert command.count(" && ") == 1
        assert not command.endswith("\n")
        assert command.startswith("yt-dlp ")

    def test_write_script_is_executable(self, temp_dir, complete_record):
        """Test the script file gets the executable bit"""
        path = temp_dir / "download.sh"
        write_script(path, generate_script([complete_record], TEMPLATE))

        assert os.access(path, os.X_OK)
        assert path.read_text(encoding="utf-8").startswith("#!/bin/sh\n")


class TestValidationGate:
    """Test record selection before generation"""

    def test_select_excludes_missing_narrator(self, complete_record):
        """Test records with empty narrator are excluded"""
        incomplete = replace(complete_record, narrator="")
        valid, invalid = select_valid_records([complete_record, incomplete])
        assert valid == [complete_record]
        assert invalid == [incomplete]

    def test_select_excludes_bad_url(self, complete_record):
        """Test records whose URL is not YouTube are excluded"""
        bad = replace(complete_record, url="https://example.com/book")
        assert select_valid_records([bad]) == ([], [bad])

    def test_prepare_refuses_when_nothing_valid(self):
        """Test an explicit error when no record qualifies"""
        with pytest.raises(ScriptValidationError) as exc_info:
            prepare_records([Record(), Record(title="T")])

        assert exc_info.value.message == "2 records invalid"
        assert exc_info.value.valid_count == 0

    def test_prepare_skips_invalid(self, complete_record):
        """Test incomplete records are skipped by default"""
        assert prepare_records([complete_record, Record()]) == [complete_record]

    def test_prepare_strict(self, complete_record):
        """Test strict mode refuses on any incomplete record"""
        with pytest.raises(ScriptValidationError) as exc_info:
            prepare_records([complete_record, Record()], strict=True)
        assert exc_info.value.invalid_count == 1

    def test_prepare_refuses_empty_list(self):
        """Test an empty record list names the real problem"""
        with pytest.raises(ScriptValidationError) as exc_info:
            prepare_records([])

        assert exc_info.value.message == "No records to script"
        assert exc_info.value.invalid_count == 0
