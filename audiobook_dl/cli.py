"""
Command-line interface for audiobook-dl.

This module implements the CLI using Click, providing the commands to
check YouTube links, fill in book metadata from YouTube, and turn a CSV
list of audiobooks into a yt-dlp download script.
rich-click is used for the output colors.

Commands:
    audiobook-dl normalize <url>...            Print canonical watch URLs
    audiobook-dl info <url>                    Video id, thumbnails, YouTube title/channel
    audiobook-dl fetch <books.csv>             Fill empty titles/authors from YouTube
    audiobook-dl reconcile <books.csv>         Fetch and resolve differences interactively
    audiobook-dl transform <books.csv> <field> <transform>
                                               Change the letter case of a column
    audiobook-dl script <books.csv>            Write a download script
    audiobook-dl command <books.csv>           Print one chained download command

Global Options:
    --config <path>     Configuration file (default: ./config.yaml if present)
    --verbose           Show debug messages
    --version           Show version and exit

Usage:
    # Fill missing metadata in place, then generate the script
    audiobook-dl fetch books.csv
    audiobook-dl script books.csv -o download-audiobooks.sh
    sh download-audiobooks.sh

    # Use browser cookies for age-restricted or members-only videos
    audiobook-dl script books.csv --cookies-from-browser firefox

Exit Codes:
    0   Success
    1   Configuration error or unexpected error
    2   Validation error (no scriptable records, rejected URLs)
    4   Other errors (metadata lookup, file access)
    130 Interrupted by user
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.COMMAND_GROUPS = {
    "cli": [
        {
            "name": "Links",
            "commands": ["normalize", "info"],
        },
        {
            "name": "Metadata",
            "commands": ["fetch", "reconcile", "transform"],
        },
        {
            "name": "Download",
            "commands": ["script", "command"],
        },
    ],
}

from audiobook_dl import __version__
from audiobook_dl.core import (
    AudiobookDlError,
    Config,
    ConfigError,
    CookieSource,
    Record,
    RecordCollection,
    ScriptValidationError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from audiobook_dl.library import read_csv_file, write_csv_file
from audiobook_dl.reconcile import (
    CHOICE_CURRENT,
    CHOICE_FETCHED,
    BatchReport,
    Choice,
    MetadataConflict,
    MetadataReconciler,
)
from audiobook_dl.script import (
    generate_command,
    generate_script,
    prepare_records,
    write_script,
)
from audiobook_dl.utils import TEXT_FIELDS, TEXT_TRANSFORMS, transform_field
from audiobook_dl.youtube import OEmbedMetadataFetcher, normalize
from audiobook_dl.youtube.metadata import THUMBNAIL_FILES, thumbnail_url

logger = get_logger(__name__)


DEFAULT_SCRIPT_NAME = "download-audiobooks.sh"


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool, version: bool) -> None:
    """
    audiobook-dl: Download audiobooks from YouTube with proper file names.

    Keeps a CSV list of audiobooks (URL, title, author, narrator, series,
    series number, year), fills missing titles and authors from YouTube,
    and writes a yt-dlp script that downloads every book as audio.

    \b
    BASIC USAGE:
        audiobook-dl fetch books.csv                  # Fill empty titles/authors
        audiobook-dl script books.csv                 # Write download-audiobooks.sh

    \b
    METADATA:
        audiobook-dl reconcile books.csv              # Choose between CSV and YouTube values
        audiobook-dl transform books.csv title name   # Name Case every title

    \b
    LINKS:
        audiobook-dl normalize "youtu.be/dQw4w9WgXcQ?t=30"
        audiobook-dl info "https://youtu.be/dQw4w9WgXcQ"
    """
    if version:
        click.echo(f"audiobook-dl {__version__}")
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


# =============================================================================
# Shared plumbing
# =============================================================================

def _execute(ctx: click.Context, action: Callable[[Config], None]) -> None:
    """
    Run one command body with configuration, logging and error handling.

    Maps errors to exit codes the same way for every command.
    """
    try:
        config = load_config(ctx.obj["config_path"])
        setup_logging(config.output.log_directory, verbose=ctx.obj["verbose"])
        logger.debug(f"audiobook-dl {__version__}")
        action(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        if e.details.get("field"):
            click.echo(f"Check '{e.details['field']}' in your config file", err=True)
        sys.exit(1)

    except ScriptValidationError as e:
        click.echo(f"Validation error: {e.message}", err=True)
        if e.invalid_count:
            click.echo(
                "Every record needs a YouTube URL, title, author and narrator",
                err=True
            )
        sys.exit(2)

    except AudiobookDlError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.debug(f"Details: {e.details}")
        sys.exit(4)

    except OSError as e:
        click.echo(f"File error: {e}", err=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    except (click.ClickException, click.Abort):
        raise

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _read_records(path: Path, config: Config) -> list[Record]:
    records = read_csv_file(path, config.csv.has_header, config.csv.expected_columns)
    logger.info(f"Loaded {len(records)} record(s) from {path.name}")
    return records


def _write_records(path: Path, collection: RecordCollection) -> None:
    # The collection always holds one record; a lone blank one is not worth saving
    records = [r for r in collection.records if not r.is_blank]
    write_csv_file(path, records)
    logger.info(f"Saved {len(records)} record(s) to {path}")


def _build_reconciler(
    collection: RecordCollection,
    config: Config,
    conflict_resolver=None
) -> MetadataReconciler:
    return MetadataReconciler(
        collection,
        OEmbedMetadataFetcher(timeout=config.metadata.request_timeout),
        conflict_resolver=conflict_resolver,
        debounce_seconds=config.metadata.debounce_seconds,
        batch_delay_seconds=config.metadata.batch_delay_seconds,
        max_fetch_attempts=config.metadata.max_fetch_attempts,
        show_progress=sys.stderr.isatty(),
    )


def _print_batch_report(report: BatchReport) -> None:
    logger.info("=" * 60)
    logger.info("METADATA FETCH")
    logger.info("=" * 60)
    logger.info(f"Fetched:           {report.eligible}")
    logger.info(f"Filled:            {report.filled}")
    logger.info(f"Nothing to fill:   {report.unchanged}")
    logger.info(f"Failed:            {report.failed}")
    if report.skipped_exhausted:
        logger.info(f"Gave up on:        {report.skipped_exhausted}")
    logger.info("=" * 60)


# =============================================================================
# Link commands
# =============================================================================

@cli.command("normalize")
@click.argument("urls", nargs=-1, required=True)
@click.pass_context
def normalize_command(ctx: click.Context, urls: tuple[str, ...]) -> None:
    """Print the canonical watch URL for each YouTube link."""
    rejected = 0
    for value in urls:
        canonical = normalize(value)
        if canonical is None:
            click.echo(f"Not a YouTube video URL: {value}", err=True)
            rejected += 1
        else:
            click.echo(canonical.watch_url)

    if rejected:
        ctx.exit(2)


@cli.command("info")
@click.argument("url")
@click.option("--no-fetch", is_flag=True, help="Skip the YouTube metadata lookup")
@click.pass_context
def info_command(ctx: click.Context, url: str, no_fetch: bool) -> None:
    """Show video id, thumbnails and the title/channel YouTube reports."""
    canonical = normalize(url)
    if canonical is None:
        click.echo(f"Not a YouTube video URL: {url}", err=True)
        ctx.exit(2)

    def action(config: Config) -> None:
        click.echo(f"URL:        {canonical.watch_url}")
        click.echo(f"Video id:   {canonical.video_id}")
        for quality in THUMBNAIL_FILES:
            click.echo(f"Thumbnail:  {thumbnail_url(canonical.video_id, quality)} ({quality})")

        if no_fetch:
            return

        fetcher = OEmbedMetadataFetcher(timeout=config.metadata.request_timeout)
        metadata = fetcher.fetch_metadata(canonical.video_id)
        click.echo(f"Title:      {metadata.title}")
        click.echo(f"Channel:    {metadata.author_name}")

    _execute(ctx, action)


# =============================================================================
# Metadata commands
# =============================================================================

@cli.command("fetch")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result here instead of updating CSV_FILE"
)
@click.option(
    "--release-imported",
    is_flag=True,
    help="Also look up records whose title and author are already filled"
)
@click.pass_context
def fetch_command(
    ctx: click.Context,
    csv_file: Path,
    output: Path | None,
    release_imported: bool
) -> None:
    """
    Fill empty titles and authors from YouTube.

    Existing values are never overwritten. Imported records that already
    have a title and an author are skipped unless --release-imported is
    given (they are then looked up and differences are reported).
    """
    def action(config: Config) -> None:
        collection = RecordCollection()
        collection.replace_all(_read_records(csv_file, config), imported=True)

        if release_imported:
            collection.release_imported()
        else:
            collection.release_imported(
                r.id for r in collection.records
                if not r.title.strip() or not r.author.strip()
            )

        reconciler = _build_reconciler(collection, config)
        report = asyncio.run(reconciler.run_batch())
        _print_batch_report(report)

        _write_records(output or csv_file, collection)

    _execute(ctx, action)


def _prompt_for_choices(record: Record, conflicts: list[MetadataConflict]) -> dict[str, Choice]:
    """Ask which value to keep for each conflicting field."""
    click.echo(f"\n{record.label}")
    choices: dict[str, Choice] = {}
    for conflict in conflicts:
        click.echo(f"  {conflict.field}:")
        click.echo(f"    current: {conflict.current_value}")
        click.echo(f"    fetched: {conflict.fetched_value}")
        choices[conflict.field] = click.prompt(
            f"  Keep which {conflict.field}?",
            type=click.Choice([CHOICE_CURRENT, CHOICE_FETCHED]),
            default=CHOICE_CURRENT,
        )
    return choices


async def _reconcile_all(reconciler: MetadataReconciler, delay: float) -> tuple[int, int]:
    """Fetch every record with a YouTube URL once, in order. Returns (done, failed)."""
    done = failed = 0
    targets = []
    for record in reconciler.collection.records:
        canonical = normalize(record.url)
        if canonical is not None:
            targets.append((record.id, canonical))

    for index, (record_id, canonical) in enumerate(targets):
        if index > 0 and delay > 0:
            await asyncio.sleep(delay)
        outcome = await reconciler.fetch(record_id, canonical)
        if outcome.ok:
            done += 1
        else:
            failed += 1
    return done, failed


@cli.command("reconcile")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result here instead of updating CSV_FILE"
)
@click.option(
    "--accept",
    type=click.Choice([CHOICE_CURRENT, CHOICE_FETCHED]),
    default=None,
    help="Resolve every difference this way instead of asking"
)
@click.pass_context
def reconcile_command(
    ctx: click.Context,
    csv_file: Path,
    output: Path | None,
    accept: str | None
) -> None:
    """
    Compare every record with YouTube and resolve differences.

    Empty titles and authors are filled. For each field where the CSV and
    YouTube disagree you choose which value to keep.
    """
    def action(config: Config) -> None:
        collection = RecordCollection(_read_records(csv_file, config))

        if accept is None:
            resolver = _prompt_for_choices
        else:
            def resolver(record, conflicts):
                return {conflict.field: accept for conflict in conflicts}

        reconciler = _build_reconciler(collection, config, conflict_resolver=resolver)
        done, failed = asyncio.run(
            _reconcile_all(reconciler, config.metadata.batch_delay_seconds)
        )
        logger.info(f"Reconciled {done} record(s), {failed} failed")

        _write_records(output or csv_file, collection)

    _execute(ctx, action)


@cli.command("transform")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("field_name", metavar="FIELD", type=click.Choice(TEXT_FIELDS))
@click.argument("transform", type=click.Choice(list(TEXT_TRANSFORMS)))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result here instead of updating CSV_FILE"
)
@click.pass_context
def transform_command(
    ctx: click.Context,
    csv_file: Path,
    field_name: str,
    transform: str,
    output: Path | None
) -> None:
    """
    Change the letter case of one column for every record.

    TRANSFORM is one of: sentence (First word only), name (Every Word),
    upper, lower.
    """
    def action(config: Config) -> None:
        collection = RecordCollection(_read_records(csv_file, config))
        for record in collection.records:
            transform_field(collection, record.id, field_name, transform)
        _write_records(output or csv_file, collection)

    _execute(ctx, action)


# =============================================================================
# Script commands
# =============================================================================

def _script_options(func):
    """Options shared by the script and command commands."""
    options = [
        click.option(
            "--template", "-t",
            default=None,
            help="Filename template ($author $title $narrator $series $series_num $year)"
        ),
        click.option(
            "--cookies-from-browser",
            type=click.Choice(CookieSource.choices()),
            default=None,
            help="Load cookies from this browser (helps with 403 errors)"
        ),
        click.option(
            "--audio-format",
            default=None,
            help="Audio format for yt-dlp --audio-format"
        ),
        click.option(
            "--sanitize/--no-sanitize",
            default=None,
            help="Make record values safe for file names"
        ),
        click.option(
            "--strict",
            is_flag=True,
            help="Refuse when any record is incomplete instead of skipping it"
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _script_settings(
    config: Config,
    template: str | None,
    cookies_from_browser: str | None,
    audio_format: str | None,
    sanitize: bool | None
) -> dict:
    """Merge command line overrides over the script config section."""
    return {
        "template": template or config.script.filename_template,
        "cookies_from_browser": (
            CookieSource(cookies_from_browser)
            if cookies_from_browser is not None
            else config.script.cookies_from_browser
        ),
        "audio_format": audio_format or config.script.audio_format,
        "sanitize": config.script.sanitize_values if sanitize is None else sanitize,
    }


@cli.command("script")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(DEFAULT_SCRIPT_NAME),
    show_default=True,
    help="Script file to write"
)
@_script_options
@click.pass_context
def script_command(
    ctx: click.Context,
    csv_file: Path,
    output: Path,
    template: str | None,
    cookies_from_browser: str | None,
    audio_format: str | None,
    sanitize: bool | None,
    strict: bool
) -> None:
    """Write a shell script with one yt-dlp command per complete record."""
    def action(config: Config) -> None:
        records = prepare_records(_read_records(csv_file, config), strict=strict)
        settings = _script_settings(config, template, cookies_from_browser, audio_format, sanitize)
        write_script(output, generate_script(records, **settings))
        click.echo(f"Wrote {len(records)} download(s) to {output}")

    _execute(ctx, action)


@cli.command("command")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_script_options
@click.pass_context
def command_command(
    ctx: click.Context,
    csv_file: Path,
    template: str | None,
    cookies_from_browser: str | None,
    audio_format: str | None,
    sanitize: bool | None,
    strict: bool
) -> None:
    """Print one command line chaining the downloads with &&."""
    def action(config: Config) -> None:
        records = prepare_records(_read_records(csv_file, config), strict=strict)
        settings = _script_settings(config, template, cookies_from_browser, audio_format, sanitize)
        click.echo(generate_command(records, **settings))

    _execute(ctx, action)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `audiobook-dl` from the command
    line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
