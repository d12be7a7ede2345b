"""
Record list persistence for audiobook-dl (CSV import and export).
"""

from audiobook_dl.library.csv_codec import (
    DEFAULT_COLUMNS,
    CsvColumn,
    decode,
    encode,
    read_csv_file,
    write_csv_file,
)

__all__ = [
    "CsvColumn",
    "DEFAULT_COLUMNS",
    "decode",
    "encode",
    "read_csv_file",
    "write_csv_file",
]
