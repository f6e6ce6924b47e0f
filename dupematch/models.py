"""
Data models for dupematch.

Contains dataclasses for representing indexed reference images and
match results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

from .config import METHOD_HASH


@dataclass(frozen=True)
class ImageRecord:
    """
    A reference image stored in the index.

    Attributes:
        fingerprint: Binary fingerprint string, unique key of the record
        filename: Display name (not necessarily unique)
        descriptor: Feature vector, present only if extraction succeeded
        thumbnail: Base64-encoded JPEG preview, not used in matching
        added_at: Creation timestamp
    """
    fingerprint: str
    filename: str
    descriptor: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    thumbnail: str = field(default="", repr=False, compare=False)
    added_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def has_descriptor(self) -> bool:
        """Whether a descriptor was stored for this record."""
        return self.descriptor is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (descriptor omitted)."""
        return {
            'filename': self.filename,
            'hash': self.fingerprint,
            'added_at': self.added_at.isoformat(),
            'thumbnail': self.thumbnail,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of a query against the index.

    Attributes:
        matched: Whether the deciding score cleared the threshold
        filename: Best candidate's filename, empty if the index was empty
        score: Similarity percentage (0-100)
        method: 'hash' or 'descriptor', whichever produced the decision
    """
    matched: bool
    filename: str = ""
    score: float = 0.0
    method: str = METHOD_HASH

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'matched': self.matched,
            'filename': self.filename,
            'score': round(self.score, 2),
            'method': self.method,
        }
