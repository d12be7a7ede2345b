# tests/test_logger.py
"""Test logging setup and the progress bar counters"""

import logging

import pytest

from audiobook_dl.core.logger import (
    FETCH_FAILURES_PREFIX,
    LOG_ERRORS_PREFIX,
    LOG_FULL_PREFIX,
    get_logger,
    log_fetch_failure,
    setup_logging,
    shutdown_logging,
)
from audiobook_dl.core.progress import FetchProgressBar


@pytest.fixture
def clean_logging():
    yield
    shutdown_logging()


class TestLogging:
    """Test handler installation and log files"""

    def test_console_only(self, clean_logging):
        """Test no directory means a single console handler"""
        setup_logging(None)
        assert len(logging.getLogger().handlers) == 1

    def test_log_files(self, temp_dir, clean_logging):
        """Test the three log files and the failure report"""
        setup_logging(temp_dir / "logs")
        logger = get_logger("audiobook_dl.test")

        logger.info("plain message")
        logger.error("broken")
        log_fetch_failure(
            logger,
            "Frank Herbert - Dune",
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "Failed to fetch metadata: 404 Not Found"
        )
        shutdown_logging()

        files = {path.name.split("_2")[0]: path for path in (temp_dir / "logs").iterdir()}
        assert set(files) == {LOG_FULL_PREFIX, LOG_ERRORS_PREFIX, FETCH_FAILURES_PREFIX}

        full = files[LOG_FULL_PREFIX].read_text(encoding="utf-8")
        assert "plain message" in full
        assert "Metadata fetch failed" in full

        errors = files[LOG_ERRORS_PREFIX].read_text(encoding="utf-8")
        assert "broken" in errors
        assert "plain message" not in errors

        report = files[FETCH_FAILURES_PREFIX].read_text(encoding="utf-8")
        assert report == (
            "Frank Herbert - Dune\n"
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ\n"
            "Failed to fetch metadata: 404 Not Found\n\n"
        )

    def test_shutdown_removes_handlers(self):
        """Test shutdown leaves the root logger without handlers"""
        setup_logging(None)
        shutdown_logging()
        assert logging.getLogger().handlers == []


class TestFetchProgressBar:
    """Test the progress counters"""

    def test_disabled_bar_counts(self):
        """Test a disabled bar still keeps the tallies"""
        with FetchProgressBar(total=3, enabled=False) as progress:
            progress.update(filled=True)
            progress.update()
            progress.update(failed=True)

        assert progress.completed == 3
        assert (progress.filled, progress.unchanged, progress.failed) == (1, 1, 1)
        assert progress.task_id is None

    def test_status_text(self):
        """Test the failure count shows only after a failure"""
        progress = FetchProgressBar(total=2, enabled=False)
        assert "✗" not in progress._get_status_text()
        progress.update(failed=True)
        assert "✗ 1" in progress._get_status_text()
