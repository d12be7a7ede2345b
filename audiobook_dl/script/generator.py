"""
yt-dlp shell script and command generation.

Turns a list of complete records into either a POSIX shell script (one
yt-dlp invocation per line) or a single command line chaining the same
invocations with "&&".

Filename Template:
    The output template is a yt-dlp -o template with six extra
    placeholders, substituted per record before the command is built:

        $author, $title, $narrator, $series, $series_num, $year

    yt-dlp's own fields (e.g. %(ext)s) are left for yt-dlp to expand.
    Example:
        "$author - [$series - $series_num] - $title [$narrator].%(ext)s"

Validation Gate:
    The render/build/generate functions do not filter. Callers pass the
    records through prepare_records() first, which drops incomplete
    records and refuses to go on when none are left.
"""

import re
import shlex
import stat
from pathlib import Path
from typing import Iterable, Sequence

from audiobook_dl.core.exceptions import ScriptValidationError
from audiobook_dl.core.logger import get_logger
from audiobook_dl.core.models import CookieSource, Record, is_complete
from audiobook_dl.utils import sanitize_filename
from audiobook_dl.youtube.url import normalize


logger = get_logger(__name__)


DEFAULT_AUDIO_FORMAT = "mp3"

SCRIPT_SHEBANG = "#!/bin/sh"
SCRIPT_COMMENT = "# Audiobook downloads generated by audiobook-dl"

# Placeholder -> Record attribute. Longest names first so the alternation
# below never reads "$series_num" as "$series" followed by "_num".
PLACEHOLDERS = {
    "series_num": "series_number",
    "narrator": "narrator",
    "author": "author",
    "series": "series",
    "title": "title",
    "year": "year",
}

PLACEHOLDER_PATTERN = re.compile(
    r"\$(" + "|".join(sorted(PLACEHOLDERS, key=len, reverse=True)) + r")"
)


def _placeholder_value(record: Record, attribute: str, sanitize: bool) -> str:
    value = getattr(record, attribute)
    text = "" if value is None else str(value)
    if sanitize and text:
        # yt-dlp would read a lone % as the start of a template field
        text = sanitize_filename(text).replace("%", "%%")
    return text


def render_filename(template: str, record: Record, sanitize: bool = False) -> str:
    """
    Substitute the record placeholders in a filename template.

    Args:
        template: yt-dlp output template with $placeholders.
        record: Record supplying the values. Absent values become "".
        sanitize: Clean each value for use in a file name.

    Example:
        render_filename("$author - $title.%(ext)s", record)
        # "Frank Herbert - Dune.%(ext)s"
    """
    return PLACEHOLDER_PATTERN.sub(
        lambda match: _placeholder_value(record, PLACEHOLDERS[match.group(1)], sanitize),
        template
    )


def build_invocation(
    record: Record,
    template: str,
    cookies_from_browser: CookieSource = CookieSource.NONE,
    audio_format: str = DEFAULT_AUDIO_FORMAT,
    sanitize: bool = False
) -> str:
    """
    Build the yt-dlp command line for one record.

    Format:
        yt-dlp -x --audio-format <fmt> [--cookies-from-browser <browser>] -o '<file>' '<url>'

    The URL is the canonical watch URL when the record's URL normalizes,
    the raw value otherwise. Every argument is POSIX-quoted.
    """
    canonical = normalize(record.url)
    url = canonical.watch_url if canonical is not None else record.url.strip()

    parts = ["yt-dlp", "-x", "--audio-format", shlex.quote(audio_format)]
    if cookies_from_browser is not CookieSource.NONE:
        parts += ["--cookies-from-browser", shlex.quote(cookies_from_browser.value)]
    parts += ["-o", shlex.quote(render_filename(template, record, sanitize))]
    parts.append(shlex.quote(url))
    return " ".join(parts)


def generate_script(
    records: Iterable[Record],
    template: str,
    cookies_from_browser: CookieSource = CookieSource.NONE,
    audio_format: str = DEFAULT_AUDIO_FORMAT,
    sanitize: bool = False
) -> str:
    """
    Generate a POSIX shell script downloading every record.

    Layout:
        #!/bin/sh
        # Audiobook downloads generated by audiobook-dl
        set -u
        command -v yt-dlp >/dev/null 2>&1 || { echo "yt-dlp not found in PATH" >&2; exit 1; }

        yt-dlp ... (one line per record)

    Lines are joined with "\\n" and the script ends with a newline.
    """
    lines = [
        SCRIPT_SHEBANG,
        SCRIPT_COMMENT,
        "set -u",
        'command -v yt-dlp >/dev/null 2>&1 || { echo "yt-dlp not found in PATH" >&2; exit 1; }',
        "",
    ]
    lines += [
        build_invocation(record, template, cookies_from_browser, audio_format, sanitize)
        for record in records
    ]
    return "\n".join(lines) + "\n"


def generate_command(
    records: Iterable[Record],
    template: str,
    cookies_from_browser: CookieSource = CookieSource.NONE,
    audio_format: str = DEFAULT_AUDIO_FORMAT,
    sanitize: bool = False
) -> str:
    """Chain the invocations for every record with " && " (no trailing newline)."""
    return " && ".join(
        build_invocation(record, template, cookies_from_browser, audio_format, sanitize)
        for record in records
    )


# =============================================================================
# Validation gate
# =============================================================================

def select_valid_records(records: Iterable[Record]) -> tuple[list[Record], list[Record]]:
    """Split records into (complete, incomplete), preserving order."""
    valid, invalid = [], []
    for record in records:
        (valid if is_complete(record) else invalid).append(record)
    return valid, invalid


def prepare_records(records: Sequence[Record], strict: bool = False) -> list[Record]:
    """
    Return the records that can be scripted.

    Args:
        records: Candidate records.
        strict: Refuse when any record is incomplete instead of skipping it.

    Raises:
        ScriptValidationError: When no record is complete, or in strict mode
                               when at least one is not.
    """
    valid, invalid = select_valid_records(records)

    if not valid and not invalid:
        raise ScriptValidationError("No records to script")

    if not valid or (strict and invalid):
        raise ScriptValidationError(
            f"{len(invalid)} records invalid",
            details={"invalid_ids": [record.id for record in invalid]},
            invalid_count=len(invalid),
            valid_count=len(valid)
        )

    if invalid:
        logger.warning(f"Skipping {len(invalid)} incomplete record(s)")
        for record in invalid:
            logger.debug(f"Incomplete record skipped: {record.label}")

    return valid


def write_script(path: Path, content: str) -> None:
    """
    Write a script file and mark it executable.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info(f"Script written to {path}")
