"""
Configuration constants for dupematch.

This module contains all configurable settings including:
- Supported image extensions
- Fingerprint and descriptor geometry
- Scoring weights and matching defaults
"""

import os

# Supported reference/query image extensions (compared lower-cased)
IMAGE_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.tiff', '.webp',
}

# Fingerprint geometry
# The image is resampled to FINGERPRINT_SIZE x FINGERPRINT_SIZE, split into
# a FINGERPRINT_GRID x FINGERPRINT_GRID grid of coarse cells, and sampled
# every FINGERPRINT_STRIDE pixels for the fine comparison bits.
FINGERPRINT_SIZE = 32
FINGERPRINT_GRID = 4
FINGERPRINT_STRIDE = 4
FINGERPRINT_SAMPLES = 8  # samples per row/diagonal on the stride grid

# Tone bits are a per-channel thermometer code of the mean colour; the
# structural bits alone are identical for every uniformly coloured image.
FINGERPRINT_TONE_LEVELS = 16
FINGERPRINT_CHANNELS = 3

FINGERPRINT_COARSE_BITS = FINGERPRINT_GRID * FINGERPRINT_GRID
FINGERPRINT_HORIZONTAL_BITS = FINGERPRINT_SAMPLES * (FINGERPRINT_SAMPLES - 1)
FINGERPRINT_DIAGONAL_BITS = FINGERPRINT_SAMPLES - 1
FINGERPRINT_TONE_BITS = FINGERPRINT_CHANNELS * FINGERPRINT_TONE_LEVELS
FINGERPRINT_LENGTH = (
    FINGERPRINT_COARSE_BITS
    + FINGERPRINT_HORIZONTAL_BITS
    + FINGERPRINT_DIAGONAL_BITS
    + FINGERPRINT_TONE_BITS
)

# Gradient-histogram descriptor geometry
DESCRIPTOR_SIZE = 64
DESCRIPTOR_GRID = 3
DESCRIPTOR_CELL = 20
DESCRIPTOR_BORDER = 2
DESCRIPTOR_BINS = 16
DESCRIPTOR_EPSILON = 1e-6
DESCRIPTOR_LENGTH = DESCRIPTOR_GRID * DESCRIPTOR_GRID * DESCRIPTOR_BINS

# Blended score weights (must sum to 1.0)
HASH_WEIGHT = 0.3
DESCRIPTOR_WEIGHT = 0.7

# Match method labels reported with every query result
METHOD_HASH = 'hash'
METHOD_DESCRIPTOR = 'descriptor'

# Descriptor strategies selectable from configuration
DESCRIPTOR_KINDS = ('none', 'gradient', 'embedding')
DEFAULT_DESCRIPTOR = 'gradient'

# Default similarity threshold, as a percentage (0-100)
DEFAULT_THRESHOLD = 85.0

# Default number of parallel workers for bulk loading
DEFAULT_WORKERS = 4

# Thumbnail width in pixels (height follows the aspect ratio)
THUMBNAIL_SIZE = 100

# Upload limit for the HTTP layer
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Reference image directory, relative to the working directory by default
IMAGES_DIR = os.path.join('.', 'images')

DEFAULT_PORT = 8080
