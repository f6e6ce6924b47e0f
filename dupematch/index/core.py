"""
In-memory image index.

Stores reference image records keyed by fingerprint and answers match
queries. All state lives in memory for the lifetime of the process.

Locking discipline:
- insert, remove and each per-file store during bulk_load take the
  exclusive lock, and only around the table update itself
- query, list_records and len() take the shared lock for the whole scan
- fingerprints, descriptors and thumbnails are always computed before
  any lock is taken
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Callable, Any

import numpy as np
from PIL import Image

from ..config import DEFAULT_WORKERS, THUMBNAIL_SIZE, METHOD_HASH, METHOD_DESCRIPTOR
from ..exceptions import (
    DuplicateFingerprintError,
    DescriptorUnavailableError,
    LengthMismatchError,
)
from ..features import (
    DescriptorExtractor,
    compute_fingerprint,
    fingerprint_to_hex,
    generate_thumbnail,
    load_image,
)
from ..features.dependencies import HAS_TQDM, _tqdm_class
from ..models import ImageRecord, MatchResult
from ..similarity import hash_similarity, descriptor_similarity
from .discovery import list_image_files
from .locking import ReadWriteLock, MatchMode, MatchModeFlag

logger = logging.getLogger(__name__)


class ImageIndex:
    """
    Thread-safe table of reference images.

    Usage:
        index = ImageIndex(extractor=GradientHistogramExtractor())
        index.bulk_load('./images')

        result = index.query(image, threshold=85)
        if result.matched:
            print(result.filename, result.score, result.method)

    Args:
        extractor: Descriptor extractor, or None for fingerprint-only
        hybrid: Initial matching mode (True = descriptor first)
        workers: Number of parallel workers for bulk_load
        thumbnail_size: Width of stored thumbnails in pixels
    """

    def __init__(
        self,
        extractor: Optional[DescriptorExtractor] = None,
        hybrid: bool = True,
        workers: int = DEFAULT_WORKERS,
        thumbnail_size: int = THUMBNAIL_SIZE,
    ):
        self.extractor = extractor
        self.workers = max(1, workers)
        self.thumbnail_size = thumbnail_size
        self._records: dict[str, ImageRecord] = {}
        self._lock = ReadWriteLock()
        self._mode = MatchModeFlag(hybrid)

    # -------------------------------------------------------------------------
    # Matching mode
    # -------------------------------------------------------------------------

    def toggle_mode(self, enabled: Optional[bool] = None) -> bool:
        """
        Set or read the hybrid matching mode.

        Args:
            enabled: True for hybrid, False for hash-only, None to only read

        Returns:
            Whether hybrid mode is active after the call
        """
        if enabled is not None:
            self._mode.hybrid = enabled
            logger.info(f"Matching mode set to {self._mode.mode.value}")
        return self._mode.hybrid

    def get_mode(self) -> bool:
        """Whether hybrid matching mode is active."""
        return self._mode.hybrid

    @property
    def mode(self) -> MatchMode:
        return self._mode.mode

    # -------------------------------------------------------------------------
    # Record construction (no locks held)
    # -------------------------------------------------------------------------

    def _extract_descriptor(self, image: Image.Image, label: str) -> Optional[np.ndarray]:
        if self.extractor is None:
            return None
        try:
            return self.extractor.extract(image)
        except DescriptorUnavailableError as e:
            logger.warning(f"Could not extract descriptor from {label}: {e}")
            return None

    def _build_record(self, image: Image.Image, filename: str) -> ImageRecord:
        return ImageRecord(
            fingerprint=compute_fingerprint(image),
            filename=filename,
            descriptor=self._extract_descriptor(image, filename),
            thumbnail=generate_thumbnail(image, self.thumbnail_size),
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _load_file(self, path: Path) -> bool:
        """Decode one file and store its record. Returns False if it was a duplicate."""
        record = self._build_record(load_image(path), path.name)

        with self._lock.write():
            existing = self._records.get(record.fingerprint)
            if existing is None:
                self._records[record.fingerprint] = record

        if existing is not None:
            logger.warning(f"Skipped {path.name}: same fingerprint as {existing.filename}")
            return False
        logger.debug(f"Loaded image: {path.name}")
        return True

    def bulk_load(
        self,
        directory: str | Path,
        show_progress: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> int:
        """
        Load every supported image directly inside a directory.

        Files are processed by a pool of self.workers threads. A file that
        cannot be decoded or processed is logged and skipped.

        Args:
            directory: Directory holding reference images
            show_progress: Whether to show a tqdm progress bar
            progress_callback: Optional callback(current, total)

        Returns:
            Number of records added by this call

        Raises:
            DirectoryUnreadableError: If the directory cannot be listed
        """
        paths = list_image_files(directory)
        if not paths:
            logger.info(f"No images found in {directory}")
            return 0

        pbar: Optional[Any] = None
        if HAS_TQDM and show_progress and _tqdm_class is not None:
            pbar = _tqdm_class(total=len(paths), desc="Loading images", unit="img", ncols=80)

        loaded = 0
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {executor.submit(self._load_file, path): path for path in paths}

            for i, future in enumerate(as_completed(futures)):
                path = futures[future]
                try:
                    if future.result():
                        loaded += 1
                except Exception as e:
                    logger.warning(f"Could not load {path}: {e}")

                if pbar is not None:
                    pbar.update(1)
                if progress_callback:
                    progress_callback(i + 1, len(paths))

        if pbar is not None:
            pbar.close()

        logger.info(f"Loaded {loaded} of {len(paths)} images from {directory} ({len(self)} in index)")
        return loaded

    def insert(self, image: Image.Image, filename: str) -> str:
        """
        Add a reference image.

        Returns:
            The record's fingerprint, which serves as its id

        Raises:
            DuplicateFingerprintError: If a record with the same
                fingerprint already exists
        """
        record = self._build_record(image, filename)

        with self._lock.write():
            existing = self._records.get(record.fingerprint)
            if existing is not None:
                raise DuplicateFingerprintError(record.fingerprint, existing.filename)
            self._records[record.fingerprint] = record

        logger.info(f"Added {filename} ({fingerprint_to_hex(record.fingerprint)})")
        return record.fingerprint

    def remove(self, fingerprint: str) -> bool:
        """
        Remove a record, e.g. to roll back an insert whose file save failed.

        Returns:
            True if a record was removed
        """
        with self._lock.write():
            record = self._records.pop(fingerprint, None)
        if record is not None:
            logger.info(f"Removed {record.filename} from index")
        return record is not None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def query(
        self,
        image: Image.Image,
        threshold: float,
        mode: Optional[MatchMode] = None,
    ) -> MatchResult:
        """
        Find the reference image matching a query image.

        Hash mode scans every record for the smallest fingerprint distance.
        Hybrid mode first returns the first record whose descriptor score
        reaches the threshold (not necessarily the best one), and only
        falls back to the full fingerprint scan when none does. The
        extractor is never called in hash mode.

        Args:
            image: Decoded query image
            threshold: Similarity percentage required for a match
            mode: Matching mode; the index's current mode if None

        Returns:
            MatchResult for the deciding scan
        """
        if mode is None:
            mode = self._mode.mode
        mode = MatchMode(mode)

        fingerprint = compute_fingerprint(image)
        descriptor = None
        if mode is MatchMode.HYBRID:
            descriptor = self._extract_descriptor(image, "query image")

        with self._lock.read():
            if not self._records:
                return MatchResult(matched=False, filename="", score=0.0, method=METHOD_HASH)

            if descriptor is not None:
                hit = self._first_descriptor_hit(descriptor, threshold)
                if hit is not None:
                    return hit

            return self._best_fingerprint_match(fingerprint, threshold)

    def _first_descriptor_hit(self, descriptor: np.ndarray, threshold: float) -> Optional[MatchResult]:
        for record in self._records.values():
            if record.descriptor is None:
                continue
            score = descriptor_similarity(descriptor, record.descriptor)
            if score >= threshold:
                logger.debug(f"Descriptor match: {record.filename}, similarity: {score:.2f}%")
                return MatchResult(
                    matched=True,
                    filename=record.filename,
                    score=score,
                    method=METHOD_DESCRIPTOR,
                )
        return None

    def _best_fingerprint_match(self, fingerprint: str, threshold: float) -> MatchResult:
        best: Optional[ImageRecord] = None
        best_score = 0.0
        for record in self._records.values():
            try:
                score = hash_similarity(fingerprint, record.fingerprint)
            except LengthMismatchError as e:
                logger.error(f"Cannot compare with {record.filename}: {e}")
                continue
            # Ties keep the first record seen; iteration order is unspecified
            if best is None or score > best_score:
                best = record
                best_score = score

        if best is None:
            return MatchResult(matched=False, filename="", score=0.0, method=METHOD_HASH)

        logger.debug(
            f"Best match: {best.filename}, similarity: {best_score:.2f}%, threshold: {threshold:.2f}%"
        )
        return MatchResult(
            matched=best_score >= threshold,
            filename=best.filename,
            score=best_score,
            method=METHOD_HASH,
        )

    def get(self, fingerprint: str) -> Optional[ImageRecord]:
        """Look up a record by fingerprint."""
        with self._lock.read():
            return self._records.get(fingerprint)

    def list_records(self) -> list[ImageRecord]:
        """Snapshot of all records, oldest first."""
        with self._lock.read():
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.added_at)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)

    def __contains__(self, fingerprint: object) -> bool:
        with self._lock.read():
            return fingerprint in self._records


__all__ = ['ImageIndex']
