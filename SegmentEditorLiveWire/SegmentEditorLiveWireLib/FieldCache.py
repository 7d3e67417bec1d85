"""Cache for derived image fields.

Preprocessing an image is the most expensive step outside the search, so
reloading the same pixels (for example after switching back to a slice
that was already traced) reuses the fields computed last time.
"""

import hashlib
import logging
import time
from typing import Callable, Optional

import numpy as np

from .FieldPreprocessor import ImageFields, PixelData

logger = logging.getLogger(__name__)


def image_key(data: PixelData, width: int, height: int) -> str:
    """Identify an image by its dimensions and a digest of its pixels."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
    else:
        raw = np.ascontiguousarray(np.asarray(data)).tobytes()
    digest = hashlib.sha1(raw).hexdigest()
    return f"{width}x{height}:{digest}"


class FieldCache:
    """Keeps the most recently computed ImageFields per image key.

    Entries persist until the cache is cleared or evicted by newer images
    once max_entries is reached (oldest first).
    """

    def __init__(self, max_entries: int = 4):
        self.max_entries = max_entries
        self._entries: dict[str, ImageFields] = {}
        self.stats = CacheStats()

    def get_or_compute(
        self,
        data: PixelData,
        width: int,
        height: int,
        compute_func: Callable[[PixelData], ImageFields],
    ) -> ImageFields:
        """Get cached fields for this image or compute new ones.

        Args:
            data: Flat RGBA pixel buffer.
            width: Image width.
            height: Image height.
            compute_func: Builds ImageFields from the pixel buffer.

        Returns:
            ImageFields for the image.
        """
        key = image_key(data, width, height)

        cached = self._entries.get(key)
        if cached is not None:
            self.stats.hits += 1
            logger.debug(f"Field cache hit for {key}")
            return cached

        self.stats.misses += 1
        start_time = time.perf_counter()
        fields = compute_func(data)
        elapsed = (time.perf_counter() - start_time) * 1000
        self.stats.total_compute_time_ms += elapsed
        logger.debug(f"Field cache miss for {key}: {elapsed:.1f}ms")

        if len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = fields

        return fields

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all entries and statistics."""
        self.invalidate()
        self.stats.reset()


class CacheStats:
    """Statistics for cache performance monitoring."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.hits = 0
        self.misses = 0
        self.total_compute_time_ms = 0.0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def log_summary(self):
        """Log cache statistics summary."""
        total = self.hits + self.misses
        if total > 0:
            logger.debug(f"Field cache hit rate: {self.hit_rate:.1%} ({self.hits}/{total})")
        if self.total_compute_time_ms > 0:
            logger.debug(f"Total field computation time: {self.total_compute_time_ms:.1f}ms")
