"""
audiobook-dl: Build yt-dlp download scripts for audiobooks hosted on YouTube.

This package keeps a list of audiobook records (YouTube URL, title,
author, narrator, series, series number, year), fills in missing titles
and authors from YouTube, and turns the list into a shell script or a
single command that downloads every book as audio with a descriptive
file name.

Architecture:
    youtube/    - URL normalization, oEmbed metadata lookup, thumbnails
    reconcile/  - Conflict detection and the debounced/batch fetch engine
    core/       - Records, collection, configuration, logging, exceptions
    library/    - CSV import and export
    script/     - yt-dlp script and command generation
    utils/      - Filename sanitization and text case transforms
    cli.py      - Command-line interface

Usage:
    Command Line:
        audiobook-dl fetch books.csv
        audiobook-dl reconcile books.csv
        audiobook-dl script books.csv -o download.sh
        audiobook-dl command books.csv

    Python API:
        import asyncio
        from pathlib import Path

        from audiobook_dl.core import RecordCollection
        from audiobook_dl.library import read_csv_file
        from audiobook_dl.reconcile import MetadataReconciler
        from audiobook_dl.script import generate_script, prepare_records
        from audiobook_dl.youtube import OEmbedMetadataFetcher

        collection = RecordCollection(read_csv_file(Path("books.csv")))
        reconciler = MetadataReconciler(collection, OEmbedMetadataFetcher())
        asyncio.run(reconciler.run_batch())

        records = prepare_records(collection.records)
        print(generate_script(records, "$author - $title.%(ext)s"))

Configuration:
    Optional config.yaml in the current directory (see core/config.py):

        script:
          filename_template: "$author - [$series - $series_num] - $title [$narrator].%(ext)s"
          cookies_from_browser: firefox

Dependencies:
    - requests: oEmbed HTTP lookups
    - yt-dlp: Filename sanitization (and the tool the scripts call)
    - click: CLI framework
    - rich-click: CLI colors
    - rich: Progress bar
    - tqdm: Progress-safe console logging
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for the config path
"""

__version__ = "0.1.0"
__author__ = "audiobook-dl"
__license__ = "MIT"

# Convenience imports for common usage
from audiobook_dl.core import (
    AudiobookDlError,
    Config,
    ConfigError,
    MetadataFetchError,
    Record,
    RecordCollection,
    ScriptValidationError,
    get_logger,
    load_config,
    setup_logging,
)
from audiobook_dl.youtube import CanonicalUrl, normalize

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    "Record",
    "RecordCollection",
    # Exceptions
    "AudiobookDlError",
    "ConfigError",
    "MetadataFetchError",
    "ScriptValidationError",
    # YouTube
    "CanonicalUrl",
    "normalize",
]
