"""
Exception hierarchy for dupematch.

Only DirectoryUnreadableError and DuplicateFingerprintError are meant to
reach callers; the rest are raised internally and degrade to a log record.
"""


class MatchError(Exception):
    """Base class for all dupematch errors."""


class LengthMismatchError(MatchError):
    """Raised when two fingerprints of different length are compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Fingerprint length mismatch: {left} vs {right}")
        self.left = left
        self.right = right


class DuplicateFingerprintError(MatchError):
    """Raised when an insert collides with an existing record."""

    def __init__(self, fingerprint: str, existing_filename: str):
        super().__init__(f"Image already exists in index as: {existing_filename}")
        self.fingerprint = fingerprint
        self.existing_filename = existing_filename


class DirectoryUnreadableError(MatchError):
    """Raised when a bulk load directory cannot be listed."""


class ImageLoadError(MatchError):
    """Raised when a single image file cannot be decoded."""


class DescriptorUnavailableError(MatchError):
    """Raised when a descriptor extractor is disabled or fails."""
