"""
yt-dlp script and command generation for audiobook-dl.
"""

from audiobook_dl.script.generator import (
    build_invocation,
    generate_command,
    generate_script,
    prepare_records,
    render_filename,
    select_valid_records,
    write_script,
)

__all__ = [
    "render_filename",
    "build_invocation",
    "generate_script",
    "generate_command",
    "select_valid_records",
    "prepare_records",
    "write_script",
]
