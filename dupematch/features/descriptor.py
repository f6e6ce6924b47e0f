"""
Descriptor module for the features package.

Provides the descriptor extraction capability used for fine-grained
matching, with interchangeable strategies:

- GradientHistogramExtractor: built-in histogram of oriented gradients
- EmbeddingExtractor: adapter around an injected embedding function
- FallbackExtractor: tries one extractor, then another

Every strategy raises DescriptorUnavailableError instead of letting its
own failures escape, so callers can degrade to fingerprint-only matching.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from ..config import (
    DESCRIPTOR_SIZE,
    DESCRIPTOR_GRID,
    DESCRIPTOR_CELL,
    DESCRIPTOR_BORDER,
    DESCRIPTOR_BINS,
    DESCRIPTOR_EPSILON,
    DESCRIPTOR_KINDS,
)
from ..exceptions import DescriptorUnavailableError
from .dependencies import Image, np, _logger
from .sampling import IntensitySampler, resample_square

EmbedFunction = Callable[[Image.Image], Sequence[float]]


class DescriptorExtractor(ABC):
    """Capability interface: decoded image in, fixed-length vector out."""

    name: str = "descriptor"

    @property
    def available(self) -> bool:
        """Whether extract() can currently be attempted."""
        return True

    @abstractmethod
    def extract(self, image: Image.Image) -> np.ndarray:
        """
        Return the descriptor vector for an image.

        Raises:
            DescriptorUnavailableError: If extraction is disabled or fails
        """


class GradientHistogramExtractor(DescriptorExtractor):
    """
    Histogram of oriented gradients over a coarse cell grid.

    The image is resampled to DESCRIPTOR_SIZE square and split into
    DESCRIPTOR_GRID x DESCRIPTOR_GRID cells of DESCRIPTOR_CELL pixels. Inside
    each cell, minus a DESCRIPTOR_BORDER margin, central-difference gradient
    magnitudes are accumulated into DESCRIPTOR_BINS orientation bins. Each
    cell histogram is L2-normalized on its own.
    """

    name = "gradient"

    def extract(self, image: Image.Image) -> np.ndarray:
        try:
            gray = IntensitySampler(resample_square(image, DESCRIPTOR_SIZE)).pixels
        except Exception as e:
            raise DescriptorUnavailableError(f"Gradient histogram failed: {e}") from e
        return gradient_histogram(gray.astype(np.int32))


def gradient_histogram(gray: np.ndarray) -> np.ndarray:
    """Compute the concatenated per-cell orientation histograms of a 2-D array."""
    height, width = gray.shape
    gx = np.zeros(gray.shape, dtype=np.float64)
    gy = np.zeros(gray.shape, dtype=np.float64)
    gx[:, 1:-1] = gray[:, 2:] - gray[:, :-2]
    gy[1:-1, :] = gray[2:, :] - gray[:-2, :]

    magnitude = np.sqrt(gx * gx + gy * gy)
    angle = np.arctan2(gy, gx)
    bins = np.floor((angle + math.pi) * (DESCRIPTOR_BINS / 2) / math.pi).astype(np.int64)
    bins[bins >= DESCRIPTOR_BINS] = 0

    histograms = []
    for by in range(DESCRIPTOR_GRID):
        for bx in range(DESCRIPTOR_GRID):
            y0 = by * DESCRIPTOR_CELL + DESCRIPTOR_BORDER
            y1 = min((by + 1) * DESCRIPTOR_CELL - DESCRIPTOR_BORDER, height - 1)
            x0 = bx * DESCRIPTOR_CELL + DESCRIPTOR_BORDER
            x1 = min((bx + 1) * DESCRIPTOR_CELL - DESCRIPTOR_BORDER, width - 1)

            histogram = np.bincount(
                bins[y0:y1, x0:x1].ravel(),
                weights=magnitude[y0:y1, x0:x1].ravel(),
                minlength=DESCRIPTOR_BINS,
            )
            norm = math.sqrt(float(np.sum(histogram * histogram)) + DESCRIPTOR_EPSILON)
            histograms.append(histogram / norm)

    return np.concatenate(histograms)


class EmbeddingExtractor(DescriptorExtractor):
    """
    Adapter around an externally supplied embedding function.

    The function is only called after load() succeeds. An optional loader
    callable can be given to perform model setup; if it raises, the
    extractor stays unavailable.
    """

    name = "embedding"

    def __init__(
        self,
        embed_fn: Optional[EmbedFunction],
        loader: Optional[Callable[[], None]] = None,
    ):
        self._embed_fn = embed_fn
        self._loader = loader
        self._loaded = False

    @property
    def available(self) -> bool:
        return self._loaded and self._embed_fn is not None

    def load(self) -> bool:
        """Run the loader, if any. Returns True if the extractor is usable."""
        if self._embed_fn is None:
            _logger.warning("No embedding function supplied; embedding descriptor disabled")
            return False
        try:
            if self._loader is not None:
                self._loader()
        except Exception as e:
            _logger.warning(f"Could not load embedding model: {e}")
            self._loaded = False
            return False
        self._loaded = True
        return True

    def extract(self, image: Image.Image) -> np.ndarray:
        if not self.available:
            raise DescriptorUnavailableError("Embedding model not loaded")
        try:
            vector = np.asarray(self._embed_fn(image), dtype=np.float64).ravel()
        except Exception as e:
            raise DescriptorUnavailableError(f"Embedding inference failed: {e}") from e
        if vector.size == 0:
            raise DescriptorUnavailableError("Embedding function returned an empty vector")
        return vector


class FallbackExtractor(DescriptorExtractor):
    """Use the primary extractor when it works, otherwise the secondary."""

    def __init__(self, primary: DescriptorExtractor, secondary: DescriptorExtractor):
        self.primary = primary
        self.secondary = secondary
        self.name = f"{primary.name}+{secondary.name}"

    @property
    def available(self) -> bool:
        return self.primary.available or self.secondary.available

    def extract(self, image: Image.Image) -> np.ndarray:
        if self.primary.available:
            try:
                return self.primary.extract(image)
            except DescriptorUnavailableError as e:
                _logger.debug(f"{self.primary.name} failed, using {self.secondary.name}: {e}")
        return self.secondary.extract(image)


def build_extractor(
    kind: str,
    embed_fn: Optional[EmbedFunction] = None,
    loader: Optional[Callable[[], None]] = None,
) -> Optional[DescriptorExtractor]:
    """
    Build the extractor for a configured descriptor kind.

    Args:
        kind: 'none', 'gradient' or 'embedding'
        embed_fn: Embedding function, required for 'embedding'
        loader: Optional model setup callable for 'embedding'

    Returns:
        A DescriptorExtractor, or None when descriptors are disabled.
        'embedding' falls back to the gradient histogram whenever the
        embedding function is missing or fails.
    """
    if kind not in DESCRIPTOR_KINDS:
        raise ValueError(f"Unknown descriptor kind {kind!r}; expected one of {DESCRIPTOR_KINDS}")
    if kind == 'none':
        return None
    if kind == 'gradient':
        return GradientHistogramExtractor()

    embedding = EmbeddingExtractor(embed_fn, loader)
    if embedding.load():
        _logger.info("Embedding descriptor loaded")
    else:
        _logger.info("Continuing with gradient histogram descriptor")
    return FallbackExtractor(embedding, GradientHistogramExtractor())


__all__ = [
    'EmbedFunction',
    'DescriptorExtractor',
    'GradientHistogramExtractor',
    'EmbeddingExtractor',
    'FallbackExtractor',
    'gradient_histogram',
    'build_extractor',
]
