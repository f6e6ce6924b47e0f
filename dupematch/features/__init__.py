"""
Features package for dupematch.

Turns decoded images into the representations used for matching.

Public API:
- compute_fingerprint: Fixed-length binary fingerprint of an image
- fingerprint_to_hex: Compact display form of a fingerprint
- DescriptorExtractor: Capability interface for descriptor vectors
- GradientHistogramExtractor: Built-in gradient histogram descriptor
- EmbeddingExtractor: Adapter for an external embedding function
- FallbackExtractor: Primary/secondary extractor chain
- build_extractor: Build the extractor for a configured descriptor kind
- load_image: Decode an image from a path, bytes or stream
- generate_thumbnail: Base64 JPEG preview of an image
- IntensitySampler: Grayscale sampling of any pixel format
"""

from __future__ import annotations

from .sampling import (
    load_image,
    generate_thumbnail,
    IntensitySampler,
)
from .fingerprint import compute_fingerprint, fingerprint_to_hex
from .descriptor import (
    DescriptorExtractor,
    GradientHistogramExtractor,
    EmbeddingExtractor,
    FallbackExtractor,
    build_extractor,
)
from .dependencies import HAS_TQDM


def has_progress_support() -> bool:
    """Check if tqdm progress bars are available."""
    return HAS_TQDM


__all__ = [
    # Fingerprints
    'compute_fingerprint',
    'fingerprint_to_hex',
    # Descriptors
    'DescriptorExtractor',
    'GradientHistogramExtractor',
    'EmbeddingExtractor',
    'FallbackExtractor',
    'build_extractor',
    # Image helpers
    'load_image',
    'generate_thumbnail',
    'IntensitySampler',
    # Feature detection
    'has_progress_support',
]
