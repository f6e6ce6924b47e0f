"""
File discovery module for the index package.

Lists the reference images of a single directory for bulk loading.
"""

from __future__ import annotations

from pathlib import Path

from ..config import IMAGE_EXTENSIONS
from ..exceptions import DirectoryUnreadableError


def is_image_file(filename: str | Path) -> bool:
    """Check if a filename has a supported image extension (case-insensitive)."""
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def list_image_files(directory: str | Path) -> list[Path]:
    """
    List supported image files directly inside a directory.

    Subdirectories and files with unsupported extensions are skipped.

    Args:
        directory: Directory to list (not searched recursively)

    Returns:
        Sorted list of file paths

    Raises:
        DirectoryUnreadableError: If the directory does not exist or
            cannot be listed
    """
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryUnreadableError(f"Images directory does not exist: {root}")

    try:
        entries = list(root.iterdir())
    except OSError as e:
        raise DirectoryUnreadableError(f"Could not read directory {root}: {e}") from e

    return sorted(
        entry for entry in entries
        if not entry.is_dir() and is_image_file(entry.name)
    )


__all__ = ['is_image_file', 'list_image_files']
