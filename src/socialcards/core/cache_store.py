"""Key-value stores for rendered card images.

The service only needs two operations from its cache: ``get(key)`` and
``put(key, data, ttl)``.  Both are coroutines so a networked store can be
dropped in later without touching the route handlers.

Backends
--------
MemoryCacheStore
    Process-local LRU with per-entry expiry.  The default; suited to a
    single worker.
FileCacheStore
    One payload file plus one JSON metadata sidecar per key, under
    ``cache_dir / cache_namespace``.  Survives restarts and can be shared
    by several workers on one host.
NullCacheStore
    Never stores anything.

Failure Semantics
-----------------
Backends raise :class:`CacheStoreError` on I/O problems.  The HTTP layer
treats a failed read as a miss and a failed write as "generated but not
cached"; neither is fatal to a request.

There is no coordination between concurrent misses for the same key: both
requests render and the second ``put`` overwrites the first.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from socialcards.core.config import SocialCardsConfig

logger = logging.getLogger(__name__)


class CacheStoreError(Exception):
    """Raised when a cache backend cannot read or write an entry."""


class CacheEntry(BaseModel):
    """Metadata recorded alongside a cached image.

    Attributes:
        key: Full cache key (prefix + digest).
        stored_at: Unix timestamp of the write.
        ttl: Lifetime in seconds.
        size: Payload size in bytes.
        metadata: Free-form details about the request that produced it.
    """

    key: str
    stored_at: float = Field(default_factory=time.time)
    ttl: int
    size: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl

    def is_expired(self, now: float | None = None) -> bool:
        """Return ``True`` once the entry has outlived its TTL."""
        return (now if now is not None else time.time()) >= self.expires_at


class CacheStore(Protocol):
    """Interface every cache backend implements."""

    async def get(self, key: str) -> bytes | None: ...

    async def put(
        self,
        key: str,
        data: bytes,
        ttl: int,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...


class NullCacheStore:
    """Backend that always misses."""

    async def get(self, key: str) -> bytes | None:
        return None

    async def put(
        self,
        key: str,
        data: bytes,
        ttl: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        return None


class MemoryCacheStore:
    """Thread-safe in-memory LRU cache with TTL expiry.

    Args:
        max_items: Capacity; the least recently used entry is evicted first.
    """

    def __init__(self, max_items: int = 1024) -> None:
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        self._max_items = int(max_items)
        self._lock = Lock()
        self._data: OrderedDict[str, tuple[CacheEntry, bytes]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> bytes | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            entry, data = item
            if entry.is_expired():
                del self._data[key]
                return None
            self._data.move_to_end(key)
            return data

    async def put(
        self,
        key: str,
        data: bytes,
        ttl: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        entry = CacheEntry(key=key, ttl=ttl, size=len(data), metadata=metadata or {})
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = (entry, data)
            while len(self._data) > self._max_items:
                self._data.popitem(last=False)


class FileCacheStore:
    """File-backed cache: ``<digest>.bin`` payload plus ``<digest>.json`` entry.

    File names are derived from a SHA-256 of the key so arbitrary prefixes
    never leak into paths.

    Args:
        directory: Directory holding the cache files; created on first write.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _paths(self, key: str) -> tuple[Path, Path]:
        stem = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{stem}.bin", self.directory / f"{stem}.json"

    def _evict(self, data_path: Path, meta_path: Path) -> None:
        try:
            data_path.unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheStoreError(f"Failed to evict {meta_path.name}: {e}") from e

    async def get(self, key: str) -> bytes | None:
        data_path, meta_path = self._paths(key)
        if not meta_path.exists() or not data_path.exists():
            return None

        try:
            entry = CacheEntry.model_validate_json(meta_path.read_text(encoding="utf-8"))
            data = data_path.read_bytes()
        except ValidationError:
            # A corrupt sidecar cannot vouch for its payload.
            logger.warning(f"Discarding cache entry with invalid metadata: {meta_path.name}")
            self._evict(data_path, meta_path)
            return None
        except OSError as e:
            raise CacheStoreError(f"Failed to read cache entry {key}: {e}") from e

        if entry.key != key or entry.is_expired():
            self._evict(data_path, meta_path)
            return None
        return data

    async def put(
        self,
        key: str,
        data: bytes,
        ttl: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        data_path, meta_path = self._paths(key)
        entry = CacheEntry(key=key, ttl=ttl, size=len(data), metadata=metadata or {})
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            data_path.write_bytes(data)
            # The sidecar is written last; a payload without one is a miss.
            meta_path.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise CacheStoreError(f"Failed to write cache entry {key}: {e}") from e


def create_cache_store(config: SocialCardsConfig) -> CacheStore:
    """Instantiate the backend selected by ``config.cache_backend``.

    Args:
        config: Service configuration.

    Returns:
        A ready-to-use cache store.
    """
    if config.cache_backend == "file":
        directory = config.cache_dir / config.cache_namespace
        logger.info(f"Using file cache store at {directory}")
        return FileCacheStore(directory)
    if config.cache_backend == "none":
        logger.info("Caching disabled")
        return NullCacheStore()
    logger.info(f"Using in-memory cache store ({config.cache_max_items} items)")
    return MemoryCacheStore(config.cache_max_items)
