"""
Result cache for HitScope.

In-memory LRU cache of success assessments, keyed by the SHA-256 of
the audio plus everything else the score depends on.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

from hitscope.core.models import SuccessScoreResult
from hitscope.utils.errors import CacheError


def make_cache_key(
    content_hash: str,
    genre: Optional[str] = None,
    release_date: Optional[date] = None,
    is_released: bool = False,
    as_of: Optional[date] = None,
    market_fingerprint: Optional[str] = None,
) -> str:
    """
    Build a cache key from audio content and scoring context.

    Raises:
        CacheError: If ``content_hash`` is empty
    """
    if not content_hash:
        raise CacheError("Cannot build cache key without a content hash", operation="key")

    context = "|".join([
        content_hash,
        (genre or "").strip().lower(),
        release_date.isoformat() if release_date else "",
        "released" if is_released else "unreleased",
        as_of.isoformat() if as_of else "",
        market_fingerprint or "",
    ])
    return hashlib.sha256(context.encode("utf-8")).hexdigest()


class CacheManager:
    """
    Thread-safe in-memory LRU cache for success assessments.

    Features:
    - LRU (Least Recently Used) eviction
    - Time-to-live (TTL) expiration
    - Thread-safe operations
    - Size-limited storage
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache manager.

        Args:
            max_size: Maximum number of cached items
            ttl: Time to live in seconds (default 1 hour)
            clock: Time source in seconds
        """
        if max_size < 1:
            raise CacheError(f"Cache size must be at least 1, got {max_size}", operation="init")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._cache: "OrderedDict[str, Tuple[SuccessScoreResult, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self.logger = logging.getLogger("cache")

        # Statistics
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _check_key(key: str, operation: str) -> None:
        if not isinstance(key, str) or not key:
            raise CacheError("Cache key must be a non-empty string", operation=operation, key=key)

    def get(self, key: str) -> Optional[SuccessScoreResult]:
        """
        Get cached result by key.

        Returns:
            SuccessScoreResult if found and not expired, None otherwise
        """
        self._check_key(key, "get")
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, timestamp = self._cache[key]

            if self._clock() - timestamp > self.ttl:
                del self._cache[key]
                self._misses += 1
                self.logger.debug(f"Cache expired: {key[:8]}...")
                return None

            # Move to end (most recently used)
            self._cache.move_to_end(key)
            self._hits += 1
            self.logger.debug(f"Cache hit: {key[:8]}...")

            return value

    def set(self, key: str, value: SuccessScoreResult) -> None:
        """Store result in cache."""
        self._check_key(key, "set")
        with self._lock:
            # Remove if exists (to update timestamp)
            if key in self._cache:
                del self._cache[key]

            while len(self._cache) >= self.max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self.logger.debug(f"Evicted: {oldest_key[:8]}...")

            self._cache[key] = (value, self._clock())
            self.logger.debug(f"Cached: {key[:8]}...")

    def delete(self, key: str) -> bool:
        """
        Remove item from cache.

        Returns:
            True if key was found and removed, False otherwise
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.logger.info("Cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, size, and hit ratio
        """
        with self._lock:
            total = self._hits + self._misses
            hit_ratio = self._hits / total if total > 0 else 0.0

            return {
                'hits': self._hits,
                'misses': self._misses,
                'size': len(self._cache),
                'max_size': self.max_size,
                'hit_ratio': hit_ratio,
                'ttl': self.ttl
            }

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()

        with self._lock:
            expired = [
                key for key, (_, timestamp) in self._cache.items()
                if now - timestamp > self.ttl
            ]
            for key in expired:
                del self._cache[key]

        if expired:
            self.logger.info(f"Cleaned up {len(expired)} expired entries")

        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        """Check if key is in cache (doesn't update LRU order)."""
        with self._lock:
            if key not in self._cache:
                return False

            _, timestamp = self._cache[key]
            return self._clock() - timestamp <= self.ttl


def create_cache_manager(config: Optional[Dict[str, Any]] = None) -> Optional[CacheManager]:
    """
    Factory function to create CacheManager with configuration.

    Args:
        config: Optional configuration dict

    Returns:
        CacheManager, or None when caching is disabled
    """
    cache_config = (config or {}).get('cache', {})
    if not cache_config.get('enabled', True):
        return None

    return CacheManager(
        max_size=cache_config.get('max_size', 256),
        ttl=cache_config.get('ttl', 3600)
    )
