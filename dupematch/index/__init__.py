"""
Index package for dupematch.

Public API:
- ImageIndex: Thread-safe in-memory table of reference images
- MatchMode: Matching policy of a query (hash or hybrid)
- ReadWriteLock: Single-writer/many-reader lock used by the index
- list_image_files: List supported images in a directory
- is_image_file: Check a filename's extension
"""

from __future__ import annotations

from .core import ImageIndex
from .locking import ReadWriteLock, MatchMode, MatchModeFlag
from .discovery import list_image_files, is_image_file

__all__ = [
    'ImageIndex',
    'MatchMode',
    'MatchModeFlag',
    'ReadWriteLock',
    'list_image_files',
    'is_image_file',
]
