"""
Dependency initialization for the features package.

Handles PIL and tqdm imports with proper error handling and configuration.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional, Any

# Module-level logger
_logger = logging.getLogger(__name__)

# Check for required dependencies
try:
    from PIL import Image
    import numpy as np
except ImportError:
    raise ImportError(
        "Required packages not found!\n"
        "Install with: pip install Pillow numpy"
    )

# Reference corpora may contain large scans; raise PIL's decompression bomb
# limit from ~89MP to 500MP
Image.MAX_IMAGE_PIXELS = 500_000_000

warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)

# Pillow moved resampling filters under Image.Resampling in 9.1
try:
    LANCZOS = Image.Resampling.LANCZOS
except AttributeError:
    LANCZOS = Image.LANCZOS

# Optional: tqdm for progress bars during bulk loading
HAS_TQDM = False
_tqdm_class: Optional[Any] = None

try:
    from tqdm import tqdm as _tqdm_import
    HAS_TQDM = True
    _tqdm_class = _tqdm_import
except ImportError:
    pass


__all__ = [
    'Image',
    'np',
    'LANCZOS',
    'HAS_TQDM',
    '_tqdm_class',
    '_logger',
]
