"""
Matching orchestrator for dupematch.

The single entry point the request layer talks to. It validates
parameters and delegates everything else to the index.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from PIL import Image

from .exceptions import DuplicateFingerprintError
from .features import build_extractor
from .features.descriptor import EmbedFunction
from .index import ImageIndex
from .models import MatchResult
from .user_config import UserConfig, get_user_config

logger = logging.getLogger(__name__)


def clamp_threshold(threshold: float) -> float:
    """
    Clamp a similarity threshold to [0, 100].

    Raises:
        ValueError: If the threshold is not a finite number
    """
    try:
        value = float(threshold)
    except (TypeError, ValueError):
        raise ValueError(f"Threshold must be a number, got {threshold!r}")
    if math.isnan(value):
        raise ValueError("Threshold must be a number, got NaN")
    return max(0.0, min(100.0, value))


class MatchingOrchestrator:
    """
    Query/insert facade over an ImageIndex.

    Usage:
        orchestrator = MatchingOrchestrator(index)
        result = orchestrator.recognize(image, 85)
        image_id, error = orchestrator.add(image, 'logo.png')
    """

    def __init__(self, index: ImageIndex):
        self.index = index

    def recognize(self, image: Image.Image, threshold: float) -> MatchResult:
        """Match an image against the index; threshold is clamped to [0, 100]."""
        return self.index.query(image, clamp_threshold(threshold))

    def add(self, image: Image.Image, filename: str) -> tuple[Optional[str], Optional[Exception]]:
        """
        Insert a reference image.

        Returns:
            (fingerprint, None) on success, (None, error) if the image
            is already indexed
        """
        if not filename:
            return None, ValueError("Filename must not be empty")
        try:
            return self.index.insert(image, filename), None
        except DuplicateFingerprintError as e:
            logger.info(f"Rejected {filename}: {e}")
            return None, e


def build_orchestrator(
    config: Optional[UserConfig] = None,
    embed_fn: Optional[EmbedFunction] = None,
    descriptor: Optional[str] = None,
    hybrid: Optional[bool] = None,
    workers: Optional[int] = None,
) -> MatchingOrchestrator:
    """
    Wire an index and orchestrator from user configuration.

    Explicit arguments take priority over the configuration.
    """
    config = config or get_user_config()
    kind = descriptor if descriptor is not None else config.descriptor
    index = ImageIndex(
        extractor=build_extractor(kind, embed_fn=embed_fn),
        hybrid=config.hybrid_mode if hybrid is None else hybrid,
        workers=workers or config.default_workers,
    )
    logger.debug(f"Index created with descriptor={kind}, mode={index.mode.value}")
    return MatchingOrchestrator(index)


__all__ = ['MatchingOrchestrator', 'build_orchestrator', 'clamp_threshold']
