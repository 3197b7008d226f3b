"""
Note creation for recognized text.

Notes are markdown files with a YAML frontmatter header (title, date and
any extra metadata) followed by the recognized text.
"""

from .note import (
    NoteExistsError,
    build_frontmatter,
    create_note,
    note_path,
    parse_metadata_pairs,
    sanitize_filename,
    today,
)

__all__ = [
    "NoteExistsError",
    "build_frontmatter",
    "create_note",
    "note_path",
    "parse_metadata_pairs",
    "sanitize_filename",
    "today",
]
