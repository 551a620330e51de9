"""Response caching for faster repeated queries.

This module provides file-based caching of API responses with a TTL per
entry. Each entry is a separate JSON file named after a hash of the
request (query text + variables), stored under ``~/.cache/lin/`` (or
``$XDG_CACHE_HOME/lin``, or ``$LIN_CACHE_DIR``).

Expiry is lazy: an expired entry is deleted the first time ``get`` sees it.
Nothing is locked; writes go through a temp file and an atomic rename so a
concurrent reader never sees a partial entry, and deleting an entry that
another process already removed is not an error.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Generic, TypeVar

from lincli.integrations.graphql import QueryPort
from lincli.utils.errors import CacheError
from lincli.utils.logging import log_query

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Teams, users and workflow states change infrequently
TTL_TEAMS = timedelta(hours=1)
TTL_USERS = timedelta(hours=1)
TTL_WORKFLOW_STATES = timedelta(hours=1)
TTL_LABELS = timedelta(minutes=30)
TTL_PROJECTS = timedelta(minutes=15)
TTL_CYCLES = timedelta(minutes=15)
TTL_DOCUMENTS = timedelta(minutes=10)
# Issues, comments and search results should stay fresh
TTL_ISSUES = timedelta(minutes=5)
TTL_COMMENTS = timedelta(minutes=5)
TTL_SEARCH = timedelta(minutes=2)

ENTRY_SUFFIX = ".json"


def default_cache_dir() -> Path:
    """Get the default cache directory path."""
    override = os.environ.get("LIN_CACHE_DIR")
    if override:
        return Path(override)
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / "lin"


def _ttl_seconds(ttl: timedelta | int | float) -> int:
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    return int(ttl)


@dataclass
class CacheEntry(Generic[T]):
    """Cached payload with expiration metadata.

    Attributes:
        data: The cached payload (any JSON-serializable value)
        created_at: Unix timestamp (seconds) when the entry was written
        ttl_secs: Time-to-live in seconds
    """

    data: T
    created_at: int
    ttl_secs: int

    def is_expired(self, now: float | None = None) -> bool:
        """Check if this entry has expired (strictly after created_at + ttl)."""
        current = int(now if now is not None else time.time())
        return current > self.created_at + self.ttl_secs

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "created_at": self.created_at, "ttl_secs": self.ttl_secs}

    @classmethod
    def from_dict(cls, raw: Any) -> CacheEntry[Any]:
        """Build an entry from decoded JSON.

        Raises:
            ValueError: If required fields are missing or mistyped
        """
        if not isinstance(raw, dict) or "data" not in raw:
            raise ValueError("cache entry is missing 'data'")
        created_at = raw.get("created_at")
        ttl_secs = raw.get("ttl_secs")
        if not isinstance(created_at, int) or not isinstance(ttl_secs, int):
            raise ValueError("cache entry has invalid 'created_at'/'ttl_secs'")
        return cls(data=raw["data"], created_at=created_at, ttl_secs=ttl_secs)


@dataclass
class CacheStats:
    """Aggregate view over all cache entries on disk."""

    total_entries: int = 0
    valid_entries: int = 0
    expired_entries: int = 0
    total_size_bytes: int = 0

    @property
    def formatted_size(self) -> str:
        size = self.total_size_bytes
        if size < 1024:
            return f"{size} B"
        if size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        return f"{size / (1024 * 1024):.1f} MB"


class ResponseCache:
    """File-based cache for API responses.

    Attributes:
        cache_dir: Directory holding one ``<key>.json`` file per entry
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        The directory is not created until the first ``set``.

        Args:
            cache_dir: Directory for cache files (default: see default_cache_dir)
            clock: Source of the current Unix time, injectable for tests
        """
        self.cache_dir = cache_dir or default_cache_dir()
        self._clock = clock

    @staticmethod
    def generate_key(query: str, variables: Any = None, namespace: str = "") -> str:
        """Generate a cache key from the query and variables.

        Variables are serialized canonically (sorted keys, compact separators)
        so that logically equal variable objects produce the same key.

        Args:
            query: GraphQL query text
            variables: Query variables
            namespace: Scope for the entry, e.g. the API token the response
                was fetched with; the same query under two namespaces gets
                two keys
        """
        canonical = json.dumps(
            variables if variables is not None else {},
            sort_keys=True,
            separators=(",", ":"),
        )
        digest = hashlib.sha256(f"{namespace}\0{query}{canonical}".encode()).hexdigest()
        return digest[:16]

    def _entry_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}{ENTRY_SUFFIX}"

    def _entry_files(self) -> list[Path]:
        if not self.cache_dir.is_dir():
            return []
        return [p for p in self.cache_dir.iterdir() if p.is_file() and p.suffix == ENTRY_SUFFIX]

    def _read_entry(self, path: Path) -> CacheEntry[Any] | None:
        try:
            return CacheEntry.from_dict(json.loads(path.read_text()))
        except (OSError, ValueError) as e:
            logger.debug(f"Unreadable cache file {path.name}: {e}")
            return None

    def get(self, key: str, decode: Callable[[Any], T] | None = None) -> T | None:
        """Get a cached value if it exists and hasn't expired.

        Never raises: a missing, unreadable, malformed or expired entry is
        reported as a miss. An expired entry is also deleted.

        Args:
            key: Cache key (see generate_key)
            decode: Optional converter applied to the stored JSON payload;
                a decode failure is treated as a miss

        Returns:
            The cached value, or None on a miss
        """
        path = self._entry_path(key)
        if not path.exists():
            return None

        entry = self._read_entry(path)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove expired cache file {path}: {e}")
            logger.debug(f"Cache expired for {key}")
            return None

        if decode is None:
            return entry.data
        try:
            return decode(entry.data)
        except Exception as e:
            logger.warning(f"Failed to decode cached value for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: timedelta | int | float) -> None:
        """Store a value under ``key`` with the given TTL.

        Raises:
            CacheError: If the directory or entry cannot be written, or the
                value is not JSON-serializable
        """
        entry = CacheEntry(data=value, created_at=int(self._clock()), ttl_secs=_ttl_seconds(ttl))
        try:
            payload = json.dumps(entry.to_dict())
        except (TypeError, ValueError) as e:
            raise CacheError(f"Failed to serialize cache entry: {e}") from e

        path = self._entry_path(key)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, prefix=".entry-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(payload)
                os.replace(temp_path, path)
            except BaseException:
                Path(temp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheError(f"Failed to write cache file {path}: {e}") from e

        logger.debug(f"Cached {key} with TTL {entry.ttl_secs}s")

    def invalidate(self, key: str) -> bool:
        """Remove a single entry. Returns True if a file was removed."""
        path = self._entry_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError(f"Failed to remove cache file {path}: {e}") from e
        return True

    def get_or_fetch(self, key: str, ttl: timedelta | int | float, fetch: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or fetch, store and return it.

        A failed cache write is logged and the fetched value is still
        returned. Errors raised by ``fetch`` propagate.
        """
        cached = self.get(key)
        if cached is not None:
            log_query(key, cached=True)
            return cached  # type: ignore[no-any-return]

        value = fetch()
        try:
            self.set(key, value, ttl)
        except CacheError as e:
            logger.warning(f"Could not cache response {key}: {e}")
        return value

    def clear(self) -> int:
        """Remove every cache entry.

        Returns:
            Number of entries removed (0 if the directory does not exist)
        """
        count = 0
        try:
            for path in self._entry_files():
                try:
                    path.unlink()
                except FileNotFoundError:
                    continue
                count += 1
        except OSError as e:
            raise CacheError(f"Failed to clear cache: {e}") from e
        logger.debug(f"Cleared {count} cache files")
        return count

    def prune_expired(self) -> int:
        """Remove entries whose TTL has elapsed.

        Entries that cannot be parsed are left in place and not counted.
        """
        now = self._clock()
        count = 0
        try:
            for path in self._entry_files():
                entry = self._read_entry(path)
                if entry is not None and entry.is_expired(now):
                    path.unlink(missing_ok=True)
                    count += 1
        except OSError as e:
            raise CacheError(f"Failed to prune cache: {e}") from e
        logger.debug(f"Pruned {count} expired cache files")
        return count

    def stats(self) -> CacheStats:
        """Scan the cache directory once and summarize it.

        Entries removed by another process during the scan are skipped.
        """
        stats = CacheStats()
        now = self._clock()
        try:
            for path in self._entry_files():
                try:
                    size = path.stat().st_size
                except FileNotFoundError:
                    continue
                stats.total_entries += 1
                stats.total_size_bytes += size
                entry = self._read_entry(path)
                if entry is not None and entry.is_expired(now):
                    stats.expired_entries += 1
        except OSError as e:
            raise CacheError(f"Failed to scan cache: {e}") from e
        stats.valid_entries = stats.total_entries - stats.expired_entries
        return stats


class CachedQueryClient(QueryPort):
    """QueryPort decorator that serves repeated queries from a ResponseCache.

    Responses are keyed by ``namespace`` as well as the query, so two
    organizations (or two API tokens) never share an entry.

    Example:
        client = CachedQueryClient(GraphQLClient(token), ResponseCache(), TTL_TEAMS, token)
        data = client.query(TEAMS_QUERY, {"first": 100})
    """

    def __init__(
        self,
        inner: QueryPort,
        cache: ResponseCache,
        ttl: timedelta | int | float,
        namespace: str = "",
    ) -> None:
        self.inner = inner
        self.cache = cache
        self.ttl = ttl
        self.namespace = namespace

    def _key(self, query: str, variables: dict[str, Any] | None) -> str:
        return ResponseCache.generate_key(query, variables, self.namespace)

    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.cache.get_or_fetch(
            self._key(query, variables),
            self.ttl,
            lambda: self.inner.query(query, variables),
        )

    def invalidate(self, query: str, variables: dict[str, Any] | None = None) -> bool:
        """Drop the cached response for this query, forcing the next call to fetch."""
        return self.cache.invalidate(self._key(query, variables))


__all__ = [
    "TTL_TEAMS",
    "TTL_USERS",
    "TTL_WORKFLOW_STATES",
    "TTL_LABELS",
    "TTL_PROJECTS",
    "TTL_CYCLES",
    "TTL_DOCUMENTS",
    "TTL_ISSUES",
    "TTL_COMMENTS",
    "TTL_SEARCH",
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    "CachedQueryClient",
    "default_cache_dir",
]
