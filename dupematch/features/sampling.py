"""
Image sampling helpers for the features package.

Provides decoding, mode normalization, square resampling, the grayscale
intensity sampler shared by the fingerprint and descriptor code, and
thumbnail generation.
"""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import BinaryIO, Union

from ..config import THUMBNAIL_SIZE
from ..exceptions import ImageLoadError
from .dependencies import Image, np, LANCZOS, _logger

ImageSource = Union[str, Path, bytes, BinaryIO]

_SIXTEEN_BIT_MODES = {'I;16', 'I;16L', 'I;16B', 'I;16N'}
_WIDE_MODES = {'I', 'F'}


def load_image(source: ImageSource) -> Image.Image:
    """
    Decode an image from a path, raw bytes or a binary file object.

    The pixel data is fully loaded so the returned image does not depend
    on the underlying file staying open.

    Raises:
        ImageLoadError: If the source cannot be opened or decoded
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as img:
            # Force load to detect truncated/corrupt images early
            img.load()
            return img.copy()
    except Exception as e:
        raise ImageLoadError(f"Could not decode image {_describe(source)}: {e}") from e


def _describe(source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, 'name', '<stream>')


def _intensity_array(image: Image.Image) -> np.ndarray:
    """Reduce any supported pixel format to a 2-D uint8 intensity array."""
    if image.mode == 'L':
        return np.asarray(image, dtype=np.uint8)
    if image.mode in _SIXTEEN_BIT_MODES:
        return (np.asarray(image, dtype=np.uint32) >> 8).astype(np.uint8)
    if image.mode in _WIDE_MODES:
        return np.clip(np.asarray(image, dtype=np.float64), 0, 255).astype(np.uint8)
    return np.asarray(image.convert('L'), dtype=np.uint8)


def normalize_mode(image: Image.Image) -> Image.Image:
    """
    Convert an image to RGB before resampling.

    Palette and bilevel images would otherwise be resized with nearest
    neighbour, and integer/float modes have no direct RGB conversion.
    """
    if image.mode == 'RGB':
        return image
    if image.mode in _SIXTEEN_BIT_MODES or image.mode in _WIDE_MODES:
        return Image.fromarray(_intensity_array(image)).convert('RGB')
    return image.convert('RGB')


def resample_square(image: Image.Image, size: int) -> Image.Image:
    """Resample to a size x size RGB image with a Lanczos filter."""
    return normalize_mode(image).resize((size, size), LANCZOS)


class IntensitySampler:
    """
    Grayscale view of an image with per-pixel and per-region reads.

    Every pixel format is reduced to 8-bit intensity once, at construction,
    so callers never inspect the source mode themselves.
    """

    def __init__(self, image: Image.Image):
        self._pixels = _intensity_array(image)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        """The intensity array, indexed [y, x]."""
        return self._pixels

    def intensity_at(self, x: int, y: int) -> int:
        """Return the 0-255 intensity at column x, row y."""
        return int(self._pixels[y, x])

    def region_mean(self, x0: int, y0: int, x1: int, y1: int) -> float:
        """Mean intensity over the half-open box [x0, x1) x [y0, y1)."""
        region = self._pixels[y0:y1, x0:x1]
        if region.size == 0:
            return 0.0
        return float(region.mean())


def generate_thumbnail(image: Image.Image, size: int = THUMBNAIL_SIZE) -> str:
    """
    Create a base64-encoded JPEG preview, size pixels wide.

    Returns:
        Base64 string, or empty string if encoding fails
    """
    try:
        width, height = image.size
        thumb_height = max(1, round(size * height / width))
        thumb = normalize_mode(image).resize((size, thumb_height), LANCZOS)
        buf = io.BytesIO()
        thumb.save(buf, 'JPEG')
        return base64.b64encode(buf.getvalue()).decode('ascii')
    except Exception as e:
        _logger.debug(f"Thumbnail generation failed: {e}")
        return ""


__all__ = [
    'ImageSource',
    'load_image',
    'normalize_mode',
    'resample_square',
    'IntensitySampler',
    'generate_thumbnail',
]
