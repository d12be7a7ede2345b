# tests/test_cli.py
"""Test the command-line interface"""

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from audiobook_dl import __version__
from audiobook_dl.cli import cli
from audiobook_dl.core.config import CONFIG_ENV_VAR
from audiobook_dl.library.csv_codec import read_csv_file

from tests.conftest import OTHER_VIDEO_ID, VIDEO_ID, WATCH_URL

CSV_TEXT = "\n".join([
    "URL,Title,Author,Narrator,Series,Series Number,Year",
    f"https://youtu.be/{VIDEO_ID},,,Reader One,,1,",
    f"https://youtu.be/{OTHER_VIDEO_ID},Gangnam Style,PSY,Reader Two,,1,2012",
])

COMPLETE_CSV_TEXT = "\n".join([
    "URL,Title,Author,Narrator,Series,Series Number,Year",
    f"https://youtu.be/{VIDEO_ID},Dune,Frank Herbert,Scott Brick,Dune Chronicles,1,1965",
    "https://youtu.be/nothing,No Narrator,Someone,,,1,",
])


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workdir(temp_dir, monkeypatch):
    """Empty working directory with a no-delay config"""
    monkeypatch.chdir(temp_dir)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    (temp_dir / "config.yaml").write_text(
        "metadata:\n  debounce_seconds: 0\n  batch_delay_seconds: 0\n",
        encoding="utf-8"
    )
    return temp_dir


@pytest.fixture
def books_csv(workdir):
    path = workdir / "books.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def complete_csv(workdir):
    path = workdir / "complete.csv"
    path.write_text(COMPLETE_CSV_TEXT, encoding="utf-8")
    return path


class TestGroup:
    """Test global options"""

    def test_version(self, runner):
        """Test --version"""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_without_command(self, runner):
        """Test the group prints help when called alone"""
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "fetch" in result.output

    def test_bad_config(self, runner, workdir, complete_csv):
        """Test configuration errors exit with 1"""
        (workdir / "config.yaml").write_text("csv:\n  expected_columns: 0\n", encoding="utf-8")
        result = runner.invoke(cli, ["command", str(complete_csv)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_missing_explicit_config(self, runner, workdir, complete_csv):
        """Test --config must point at an existing file"""
        result = runner.invoke(
            cli, ["--config", str(workdir / "missing.yaml"), "command", str(complete_csv)]
        )
        assert result.exit_code == 1


class TestLinks:
    """Test normalize and info"""

    def test_normalize(self, runner):
        """Test canonical URLs are printed and rejects reported"""
        result = runner.invoke(cli, ["normalize", f"youtu.be/{VIDEO_ID}?t=3", "not a url"])
        assert result.exit_code == 2
        assert WATCH_URL in result.output
        assert "Not a YouTube video URL: not a url" in result.output

    def test_info_without_fetch(self, runner, workdir):
        """Test id and thumbnails are shown"""
        result = runner.invoke(cli, ["info", f"https://youtu.be/{VIDEO_ID}", "--no-fetch"])
        assert result.exit_code == 0
        assert f"Video id:   {VIDEO_ID}" in result.output
        assert "maxresdefault.jpg" in result.output

    def test_info_with_fetch(self, runner, workdir, fake_fetcher):
        """Test YouTube title and channel are shown"""
        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=fake_fetcher):
            result = runner.invoke(cli, ["info", WATCH_URL])
        assert result.exit_code == 0
        assert "Never Gonna Give You Up" in result.output
        assert "Rick Astley" in result.output

    def test_info_fetch_failure(self, runner, workdir):
        """Test lookup failures exit with 4"""
        from tests.conftest import FakeFetcher

        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=FakeFetcher()):
            result = runner.invoke(cli, ["info", WATCH_URL])
        assert result.exit_code == 4

    def test_info_invalid_url(self, runner):
        """Test a non-YouTube URL exits with 2"""
        result = runner.invoke(cli, ["info", "https://example.com"])
        assert result.exit_code == 2


class TestMetadataCommands:
    """Test fetch, reconcile and transform"""

    def test_fetch_fills_empty_fields(self, runner, books_csv, fake_fetcher):
        """Test the batch fills the empty record and skips the filled one"""
        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=fake_fetcher):
            result = runner.invoke(cli, ["fetch", str(books_csv)])

        assert result.exit_code == 0, result.output
        records = read_csv_file(books_csv)
        assert records[0].title == "Never Gonna Give You Up"
        assert records[0].author == "Rick Astley"
        assert records[1].title == "Gangnam Style"
        assert fake_fetcher.calls == [VIDEO_ID]

    def test_fetch_release_imported(self, runner, books_csv, fake_fetcher, workdir):
        """Test --release-imported looks up every record and writes to -o"""
        output = workdir / "out.csv"
        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=fake_fetcher):
            result = runner.invoke(
                cli, ["fetch", str(books_csv), "--release-imported", "-o", str(output)]
            )

        assert result.exit_code == 0, result.output
        assert fake_fetcher.calls == [VIDEO_ID, OTHER_VIDEO_ID]
        assert read_csv_file(output)[1].title == "Gangnam Style"
        assert read_csv_file(books_csv)[0].title == ""

    def test_reconcile_accept_fetched(self, runner, books_csv, fake_fetcher):
        """Test --accept fetched adopts every differing value"""
        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=fake_fetcher):
            result = runner.invoke(cli, ["reconcile", str(books_csv), "--accept", "fetched"])

        assert result.exit_code == 0, result.output
        records = read_csv_file(books_csv)
        assert records[0].title == "Never Gonna Give You Up"
        assert records[1].title == "PSY - GANGNAM STYLE"
        assert records[1].author == "officialpsy"

    def test_reconcile_prompts(self, runner, books_csv, fake_fetcher):
        """Test interactive choices per conflicting field"""
        with patch("audiobook_dl.cli.OEmbedMetadataFetcher", return_value=fake_fetcher):
            result = runner.invoke(
                cli, ["reconcile", str(books_csv)], input="fetched\ncurrent\n"
            )

        assert result.exit_code == 0, result.output
        records = read_csv_file(books_csv)
        assert records[1].title == "PSY - GANGNAM STYLE"
        assert records[1].author == "PSY"

    def test_transform(self, runner, books_csv):
        """Test a case transform over one column"""
        result = runner.invoke(cli, ["transform", str(books_csv), "title", "upper"])

        assert result.exit_code == 0, result.output
        records = read_csv_file(books_csv)
        assert records[1].title == "GANGNAM STYLE"
        assert records[1].narrator == "Reader Two"
        assert records[0].title == ""

    def test_transform_rejects_unknown_field(self, runner, books_csv):
        """Test field names are checked by click"""
        result = runner.invoke(cli, ["transform", str(books_csv), "url", "upper"])
        assert result.exit_code == 2


class TestScriptCommands:
    """Test script and command"""

    def test_script(self, runner, complete_csv, workdir):
        """Test the script is written with complete records only"""
        output = workdir / "dl.sh"
        result = runner.invoke(cli, ["script", str(complete_csv), "-o", str(output)])

        assert result.exit_code == 0, result.output
        content = output.read_text(encoding="utf-8")
        assert content.startswith("#!/bin/sh\n")
        assert "Frank Herbert - [Dune Chronicles - 1] - Dune [Scott Brick]" in content
        assert "No Narrator" not in content
        assert os.access(output, os.X_OK)

    def test_script_strict(self, runner, complete_csv, workdir):
        """Test --strict refuses when a record is incomplete"""
        output = workdir / "dl.sh"
        result = runner.invoke(cli, ["script", str(complete_csv), "-o", str(output), "--strict"])
        assert result.exit_code == 2
        assert not output.exists()

    def test_script_nothing_valid(self, runner, books_csv, workdir):
        """Test an explicit error when no record can be scripted"""
        (workdir / "books.csv").write_text(
            "URL,Title,Author,Narrator,Series,Series Number,Year\n,,,,,,\nx,t,a,,,1,\n",
            encoding="utf-8"
        )
        result = runner.invoke(cli, ["script", str(books_csv)])
        assert result.exit_code == 2
        assert "records invalid" in result.output

    def test_script_header_only(self, runner, workdir):
        """Test a CSV without rows reports that there is nothing to script"""
        path = workdir / "empty.csv"
        path.write_text("URL,Title,Author,Narrator,Series,Series Number,Year\n", encoding="utf-8")

        result = runner.invoke(cli, ["script", str(path)])

        assert result.exit_code == 2
        assert "No records to script" in result.output
        assert "records invalid" not in result.output

    def test_command(self, runner, complete_csv):
        """Test the chained command with overrides"""
        result = runner.invoke(cli, [
            "command", str(complete_csv),
            "--cookies-from-browser", "firefox",
            "--template", "$title.%(ext)s",
        ])

        assert result.exit_code == 0, result.output
        assert "yt-dlp -x --audio-format mp3 --cookies-from-browser firefox -o 'Dune.%(ext)s'" in result.output
