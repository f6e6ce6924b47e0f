"""
Similarity scoring for dupematch.

All scores are percentages in the 0-100 range:

- hash_similarity: share of matching fingerprint bits
- descriptor_similarity: cosine similarity rescaled from [-1, 1]
- blended_score: weighted mix of the two when both are available

A fingerprint length mismatch is a configuration bug and raises; a
descriptor mismatch only scores 0, since descriptors may legitimately
come from different extractors.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from .config import HASH_WEIGHT, DESCRIPTOR_WEIGHT
from .exceptions import LengthMismatchError, DescriptorUnavailableError
from .features import compute_fingerprint, DescriptorExtractor

logger = logging.getLogger(__name__)


def hamming_distance(a: str, b: str) -> int:
    """
    Count differing positions between two equal-length fingerprints.

    Raises:
        LengthMismatchError: If the fingerprints differ in length
    """
    if len(a) != len(b):
        raise LengthMismatchError(len(a), len(b))
    return sum(1 for x, y in zip(a, b) if x != y)


def hash_similarity(a: str, b: str) -> float:
    """
    Fingerprint similarity: 100 * (1 - hamming / length).

    Raises:
        LengthMismatchError: If the fingerprints differ in length
    """
    distance = hamming_distance(a, b)
    if not a:
        return 100.0
    return 100.0 * (1.0 - distance / len(a))


def descriptor_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two descriptors, mapped linearly to 0-100.

    Returns 0 for missing vectors, unequal lengths or zero magnitude.
    """
    if a is None or b is None:
        return 0.0
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()
    if va.shape != vb.shape:
        return 0.0

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a <= 0 or norm_b <= 0:
        return 0.0

    cosine = float(np.dot(va, vb) / (norm_a * norm_b))
    cosine = max(-1.0, min(1.0, cosine))
    return (cosine + 1.0) * 50.0


def blended_score(hash_score: float, descriptor_score: Optional[float] = None) -> float:
    """Combine the two scores; the hash score alone when no descriptor score exists."""
    if descriptor_score is None:
        return hash_score
    return HASH_WEIGHT * hash_score + DESCRIPTOR_WEIGHT * descriptor_score


def compare_images(
    first: Image.Image,
    second: Image.Image,
    extractor: Optional[DescriptorExtractor] = None,
) -> float:
    """
    Score two decoded images directly against each other.

    Uses the blended score when the extractor succeeds on both images and
    the plain fingerprint score otherwise.
    """
    hash_score = hash_similarity(compute_fingerprint(first), compute_fingerprint(second))
    if extractor is None or not extractor.available:
        return hash_score

    try:
        descriptor_score = descriptor_similarity(
            extractor.extract(first), extractor.extract(second)
        )
    except DescriptorUnavailableError as e:
        logger.warning(f"Descriptor unavailable, comparing by fingerprint only: {e}")
        return hash_score
    return blended_score(hash_score, descriptor_score)


__all__ = [
    'hamming_distance',
    'hash_similarity',
    'descriptor_similarity',
    'blended_score',
    'compare_images',
]
