"""
CSV import and export of audiobook records.

File layout (fixed column order):
    URL, Title, Author, Narrator, Series, Series Number, Year

Import is forgiving: blank rows are skipped, rows with too few cells are
dropped, and numbers that do not parse fall back to defaults. Nothing in
decode() raises for malformed input.

Export writes a UTF-8 byte order mark first so spreadsheet programs pick
the right encoding for non-ASCII names.

Usage:
    from audiobook_dl.library.csv_codec import decode, encode

    records = decode(text, has_header_row=True, expected_column_count=7)
    text = encode(records)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from audiobook_dl.core.logger import get_logger
from audiobook_dl.core.models import Record, new_record_id


logger = get_logger(__name__)


BOM = "\ufeff"

# Characters that force a cell to be quoted on export
QUOTE_TRIGGERS = (",", '"', "\r", "\n")


@dataclass(frozen=True)
class CsvColumn:
    """
    One exported column.

    Attributes:
        key: Record attribute the cell is read from.
        label: Header text.
    """
    key: str
    label: str


DEFAULT_COLUMNS = (
    CsvColumn("url", "URL"),
    CsvColumn("title", "Title"),
    CsvColumn("author", "Author"),
    CsvColumn("narrator", "Narrator"),
    CsvColumn("series", "Series"),
    CsvColumn("series_number", "Series Number"),
    CsvColumn("year", "Year"),
)

# Import column order, independent of any header row
IMPORT_ORDER = ("url", "title", "author", "narrator", "series", "series_number", "year")


# =============================================================================
# Decoding
# =============================================================================

def _scan_rows(text: str) -> list[list[str]]:
    """
    Split CSV text into rows of cells in one pass.

    Handles quoted cells with "" escapes and with commas or line breaks
    inside quotes. CRLF and lone CR outside quotes end a row like LF.
    Unquoted cells are trimmed; a quoted cell keeps its exact content and
    whitespace around its quotes is ignored.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False
    quoted = False
    i = 0
    length = len(text)

    def finish_cell() -> None:
        nonlocal cell, quoted
        value = "".join(cell)
        row.append(value if quoted else value.strip())
        cell = []
        quoted = False

    while i < length:
        char = text[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(char)
        elif char == '"':
            if not quoted and not "".join(cell).strip():
                cell = []
                quoted = True
            in_quotes = True
        elif char == ",":
            finish_cell()
        elif char == "\n" or char == "\r":
            finish_cell()
            rows.append(row)
            row = []
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
        elif quoted and char in " \t":
            pass
        else:
            cell.append(char)

        i += 1

    if cell or row or quoted:
        finish_cell()
        rows.append(row)

    return rows


def _is_blank_row(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def _parse_series_number(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        return 1
    return number if number >= 1 else 1


def _parse_year(value: str) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _row_to_record(cells: list[str]) -> Record:
    values = {name: "" for name in IMPORT_ORDER}
    for name, cell in zip(IMPORT_ORDER, cells):
        values[name] = cell

    return Record(
        id=new_record_id(),
        url=values["url"],
        title=values["title"],
        author=values["author"],
        narrator=values["narrator"],
        series=values["series"],
        series_number=_parse_series_number(values["series_number"]),
        year=_parse_year(values["year"]),
    )


def decode(
    text: str,
    has_header_row: bool = True,
    expected_column_count: int = 7
) -> list[Record]:
    """
    Parse CSV text into records.

    Args:
        text: CSV content, with or without a leading BOM.
        has_header_row: Skip the first non-blank row.
        expected_column_count: Rows with fewer cells are dropped.

    Returns:
        One Record (fresh id) per accepted row, in file order.

    Example:
        decode("https://youtu.be/abc,Title,Author,,,", True, 3)
        # header skipped -> []
        decode("https://youtu.be/abc,Title,Author,,,", False, 3)
        # [Record(url="https://youtu.be/abc", title="Title", author="Author",
        #         narrator="", series="", series_number=1, year=None)]
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    rows = [row for row in _scan_rows(text) if not _is_blank_row(row)]
    if has_header_row:
        rows = rows[1:]

    records = []
    dropped = 0
    for row in rows:
        if len(row) < expected_column_count:
            dropped += 1
            continue
        records.append(_row_to_record(row))

    if dropped:
        logger.debug(f"Dropped {dropped} CSV row(s) with fewer than {expected_column_count} cells")

    return records


# =============================================================================
# Encoding
# =============================================================================

def _cell_text(record: Record, key: str) -> str:
    value = getattr(record, key)
    if value is None:
        return ""
    return str(value)


def _escape_cell(cell: str) -> str:
    # Unquoted cells are trimmed on import, so edge whitespace needs quotes
    if any(trigger in cell for trigger in QUOTE_TRIGGERS) or cell != cell.strip():
        return '"' + cell.replace('"', '""') + '"'
    return cell


def encode(records: Iterable[Record], columns: Sequence[CsvColumn] = DEFAULT_COLUMNS) -> str:
    """
    Serialize records to CSV text.

    The output starts with a BOM, then a header row of column labels, then
    one row per record. Rows are joined with "\\n" and there is no
    trailing newline.
    """
    lines = [",".join(_escape_cell(column.label) for column in columns)]
    for record in records:
        lines.append(",".join(_escape_cell(_cell_text(record, column.key)) for column in columns))
    return BOM + "\n".join(lines)


# =============================================================================
# Files
# =============================================================================

def read_csv_file(
    path: Path,
    has_header_row: bool = True,
    expected_column_count: int = 7
) -> list[Record]:
    """
    Read and decode a CSV file.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        text = f.read()
    records = decode(text, has_header_row, expected_column_count)
    logger.debug(f"Read {len(records)} record(s) from {path}")
    return records


def write_csv_file(
    path: Path,
    records: Iterable[Record],
    columns: Sequence[CsvColumn] = DEFAULT_COLUMNS
) -> None:
    """
    Encode records and write them to a file, creating parent directories.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(encode(records, columns))
    logger.debug(f"Wrote CSV to {path}")
