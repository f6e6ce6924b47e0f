"""
dupematch
=========
Near-duplicate image recognition against a reference corpus.

Features:
- Size and format invariant binary fingerprints
- Gradient histogram descriptors, or a pluggable embedding function
- Hash-only and hybrid (descriptor first) matching modes
- Thread-safe in-memory index with parallel bulk loading
- HTTP server and CLI
"""

__version__ = "1.0.0"

from .models import ImageRecord, MatchResult
from .config import IMAGE_EXTENSIONS, FINGERPRINT_LENGTH, DESCRIPTOR_LENGTH
from .exceptions import (
    MatchError,
    LengthMismatchError,
    DuplicateFingerprintError,
    DirectoryUnreadableError,
    ImageLoadError,
    DescriptorUnavailableError,
)
from .features import (
    compute_fingerprint,
    DescriptorExtractor,
    GradientHistogramExtractor,
    EmbeddingExtractor,
    build_extractor,
    load_image,
)
from .similarity import (
    hamming_distance,
    hash_similarity,
    descriptor_similarity,
    blended_score,
    compare_images,
)
from .index import ImageIndex, MatchMode
from .orchestrator import MatchingOrchestrator, build_orchestrator

__all__ = [
    "ImageRecord",
    "MatchResult",
    "IMAGE_EXTENSIONS",
    "FINGERPRINT_LENGTH",
    "DESCRIPTOR_LENGTH",
    "MatchError",
    "LengthMismatchError",
    "DuplicateFingerprintError",
    "DirectoryUnreadableError",
    "ImageLoadError",
    "DescriptorUnavailableError",
    "compute_fingerprint",
    "DescriptorExtractor",
    "GradientHistogramExtractor",
    "EmbeddingExtractor",
    "build_extractor",
    "load_image",
    "hamming_distance",
    "hash_similarity",
    "descriptor_similarity",
    "blended_score",
    "compare_images",
    "ImageIndex",
    "MatchMode",
    "MatchingOrchestrator",
    "build_orchestrator",
]
