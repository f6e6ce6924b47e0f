"""
Fingerprint module for the features package.

Computes the fixed-length binary fingerprint used as the index key and
for fast Hamming-distance matching. The fingerprint is made of four
consecutive sections:

1. Coarse bits: one per grid cell, set when the cell is at least as
   bright as the mean of all cells.
2. Horizontal bits: adjacent-sample comparisons along each row of the
   sampling sub-grid.
3. Diagonal bits: adjacent-sample comparisons along the main diagonal.
4. Tone bits: a thermometer code of each colour channel's mean.

Identical pixel content always yields an identical fingerprint. This is
not a content-security hash: small visual changes flip only a few bits.
"""

from __future__ import annotations

from ..config import (
    FINGERPRINT_SIZE,
    FINGERPRINT_GRID,
    FINGERPRINT_STRIDE,
    FINGERPRINT_SAMPLES,
    FINGERPRINT_TONE_LEVELS,
)
from .dependencies import Image, np
from .sampling import IntensitySampler, resample_square


def _coarse_bits(sampler: IntensitySampler) -> list[str]:
    cell = FINGERPRINT_SIZE // FINGERPRINT_GRID
    means = [
        sampler.region_mean(bx * cell, by * cell, (bx + 1) * cell, (by + 1) * cell)
        for by in range(FINGERPRINT_GRID)
        for bx in range(FINGERPRINT_GRID)
    ]
    avg = sum(means) / len(means)
    return ['1' if value >= avg else '0' for value in means]


def _brighter(sampler: IntensitySampler, first: tuple[int, int], second: tuple[int, int]) -> str:
    return '1' if sampler.intensity_at(*first) > sampler.intensity_at(*second) else '0'


def _horizontal_bits(sampler: IntensitySampler) -> list[str]:
    step = FINGERPRINT_STRIDE
    return [
        _brighter(sampler, (x * step, y * step), ((x + 1) * step, y * step))
        for y in range(FINGERPRINT_SAMPLES)
        for x in range(FINGERPRINT_SAMPLES - 1)
    ]


def _diagonal_bits(sampler: IntensitySampler) -> list[str]:
    step = FINGERPRINT_STRIDE
    return [
        _brighter(sampler, (i * step, i * step), ((i + 1) * step, (i + 1) * step))
        for i in range(FINGERPRINT_SAMPLES - 1)
    ]


def _tone_bits(rgb: np.ndarray) -> list[str]:
    levels = FINGERPRINT_TONE_LEVELS
    width = 256 / levels
    bits = []
    for channel_mean in rgb.reshape(-1, rgb.shape[-1]).mean(axis=0):
        bits.extend(
            '1' if channel_mean > (k + 0.5) * width else '0'
            for k in range(levels)
        )
    return bits


def compute_fingerprint(image: Image.Image) -> str:
    """
    Compute the binary fingerprint of a decoded image.

    Args:
        image: Any PIL image, of any size or mode

    Returns:
        String of '0'/'1' characters, FINGERPRINT_LENGTH long
    """
    small = resample_square(image, FINGERPRINT_SIZE)
    sampler = IntensitySampler(small)

    bits = _coarse_bits(sampler)
    bits += _horizontal_bits(sampler)
    bits += _diagonal_bits(sampler)
    bits += _tone_bits(np.asarray(small, dtype=np.float64))

    return ''.join(bits)


def fingerprint_to_hex(fingerprint: str) -> str:
    """Compact hexadecimal rendering of a fingerprint, for logs and display."""
    if not fingerprint:
        return ''
    width = (len(fingerprint) + 3) // 4
    return format(int(fingerprint, 2), f'0{width}x')


__all__ = [
    'compute_fingerprint',
    'fingerprint_to_hex',
]
