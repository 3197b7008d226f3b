"""Markdown note creation from recognized text."""

from __future__ import annotations

import logging
import re
from datetime import date as date_cls
from pathlib import Path

logger = logging.getLogger(__name__)

# Characters that are unsafe in file names on at least one platform
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


class NoteExistsError(FileExistsError):
    """A note with the same file name already exists."""


def today() -> str:
    """Current date as YYYY-MM-DD."""
    return date_cls.today().isoformat()


def parse_metadata_pairs(pairs: list[str] | None) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into an ordered dict.

    Pairs with an empty key are dropped.

    Raises:
        ValueError: If a pair has no ``=``.
    """
    metadata: dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Metadata must be KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        key = key.strip()
        if key:
            metadata[key] = value.strip()
    return metadata


def build_frontmatter(title: str, date: str, metadata: dict[str, str] | None = None) -> str:
    """YAML frontmatter block followed by a blank line.

    Metadata entries with an empty key or value are skipped.

    Examples:
        >>> build_frontmatter("Standup", "2024-05-01", {"project": "atlas"})
        '---\\ntitle: Standup\\ndate: 2024-05-01\\nproject: atlas\\n---\\n\\n'
    """
    lines = ["---", f"title: {title}", f"date: {date}"]
    for key, value in (metadata or {}).items():
        if key and value:
            lines.append(f"{key}: {value}")
    lines.append("---")
    return "\n".join(lines) + "\n\n"


def sanitize_filename(title: str) -> str:
    r"""Replace \ / : * ? " < > | with '-'."""
    return _UNSAFE_FILENAME_CHARS.sub("-", title)


def note_path(vault: Path, folder: str, title: str) -> Path:
    """Location of the note for title inside folder of vault.

    Folders are vault-relative; a leading "/" names the vault root.

    Raises:
        ValueError: If folder contains a ".." component.
    """
    filename = f"{sanitize_filename(title)}.md"
    folder = folder.strip().replace("\\", "/").lstrip("/")
    if ".." in folder.split("/"):
        raise ValueError(f"Folder must stay inside the vault, got {folder!r}")
    if folder and not folder.endswith("/"):
        folder += "/"
    return Path(vault) / f"{folder}{filename}"


def create_note(
    vault: Path,
    folder: str,
    title: str,
    date: str,
    metadata: dict[str, str] | None,
    content: str,
) -> Path:
    """Write a markdown note with frontmatter.

    Returns:
        Path of the new note.

    Raises:
        NoteExistsError: If the note already exists; it is never overwritten.
    """
    path = note_path(vault, folder, title)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(build_frontmatter(title, date, metadata) + content)
    except FileExistsError as e:
        raise NoteExistsError(f"File already exists: {path.name}") from e

    logger.info("Note created: %s", path)
    return path
