"""AST cache keyed by content fingerprint.

Parsing is the main cost of a run: every rule needs the tree of every file.
The cache lets one parse serve all rules that check the same unchanged
file. It is a TTL cache with LRU eviction so large scans stay bounded.
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

from ..review_logging import get_logger
from .nodes import ParsedTree
from .parser import PhpParser

logger = get_logger("engine.cache")

DEFAULT_MAX_SIZE = 100
DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """A single cache entry with TTL tracking."""

    fingerprint: str
    tree: ParsedTree
    created_at: float
    last_access: float
    hits: int = 0


class AstCache:
    """TTL-based cache with LRU eviction for parsed trees.

    Thread-safe. Parse failures are never cached; the ``ParseError``
    propagates to the caller on every attempt.
    """

    def __init__(
        self,
        parser: PhpParser | None = None,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the AST cache.

        Args:
            parser: Parser used on a miss; one is created when omitted
            max_size: Maximum number of entries before LRU eviction
            ttl_seconds: Time-to-live for entries in seconds
            clock: Time source, injectable for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.parser = parser or PhpParser()
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()

        # Statistics
        self._hits = 0
        self._misses = 0

    @staticmethod
    def fingerprint(content: bytes | str, mtime: float | int | None = None) -> str:
        """Compute the cache key for a version of a file.

        Args:
            content: Raw file content
            mtime: Modification time (ns or s) when known

        Returns:
            SHA-256 of the content, suffixed with the modification time
        """
        data = content.encode("utf-8") if isinstance(content, str) else content
        digest = hashlib.sha256(data).hexdigest()
        if mtime is None:
            return digest
        return f"{digest}:{mtime}"

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def _evict_if_needed(self) -> None:
        """Evict least recently used entries until there is room for one.

        Must be called while holding the lock.
        """
        while len(self._cache) >= self.max_size:
            fingerprint, _ = self._cache.popitem(last=False)
            logger.debug(f"Evicted AST cache entry {fingerprint[:12]}")

    def get_or_parse(
        self,
        path: str,
        content: bytes | str,
        mtime: float | int | None = None,
    ) -> ParsedTree:
        """Return the tree for ``content``, parsing on a miss.

        Args:
            path: File the content was read from (used for logging)
            content: Raw file content
            mtime: Modification time of the file, when available

        Returns:
            ParsedTree for exactly this content

        Raises:
            ParseError: If the content cannot be parsed.
        """
        key = self.fingerprint(content, mtime)

        with self._lock:
            now = self._clock()
            entry = self._cache.get(key)
            if entry is not None and self._is_expired(entry, now):
                del self._cache[key]
                entry = None
            if entry is not None:
                # Move to end (most recently used)
                self._cache.move_to_end(key)
                entry.hits += 1
                entry.last_access = now
                self._hits += 1
                return entry.tree
            self._misses += 1

        # Parse outside the lock so other files are not serialised behind it
        tree = self.parser.parse(content)
        logger.debug(f"Parsed {path} ({len(tree.source)} bytes)")

        with self._lock:
            now = self._clock()
            if key in self._cache:
                self._cache.move_to_end(key)
                self._cache[key].tree = tree
                self._cache[key].created_at = now
            else:
                self._evict_if_needed()
                self._cache[key] = CacheEntry(
                    fingerprint=key,
                    tree=tree,
                    created_at=now,
                    last_access=now,
                )
        return tree

    def prune_expired(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, entry in self._cache.items()
                if self._is_expired(entry, now)
            ]
            for key in expired:
                del self._cache[key]
            return len(expired)

    def clear(self) -> int:
        """Clear all entries and reset hit/miss counters.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._hits = 0
            self._misses = 0
            return count

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with size, max_size, ttl, hits, misses, hit_rate
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "ttl": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": hit_rate,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


__all__ = ["AstCache", "CacheEntry", "DEFAULT_MAX_SIZE", "DEFAULT_TTL_SECONDS"]
