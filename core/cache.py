"""
Cache Layer

Generic in-process containers used by every search component:
- LRUCache: bounded, evicts the least-recently-used entry when full
- TTLCache: LRUCache whose entries also expire a fixed time after they were written
- SearchCaches: the owning bundle of every cache tier, cleared wholesale by
  clear_all() when the ingestion or stats jobs change the underlying data

Caches are per-process and never coordinated across instances. Two concurrent
misses for the same key both hit the store; the second write simply wins.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable

import config

_MISSING = object()


class LRUCache:
    """Thread-safe LRU cache with a maximum number of entries."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._cache: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Get a value and mark it as most recently used."""
        with self._lock:
            value = self._cache.get(key, _MISSING)
            if value is _MISSING:
                return default
            self._cache.move_to_end(key)
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Insert or replace a value, evicting the oldest entry when full."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = value
            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class TTLCache:
    """LRU cache whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, max_size: int, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = LRUCache(max_size)

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            self._entries.delete(key)
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries.set(key, (self._clock(), value))

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class SearchCaches:
    """
    Every cache tier used by the search engine, owned by one SearchEngine.

    Tiers:
        tag_ids:       lowercased tag name -> tuple of tag ids
        post_ids:      sorted tag id groups -> post ids carrying all of them
        wildcards:     raw wildcard pattern -> ResolvedWildcard (short TTL)
        tree:          tag tree response (short TTL)
        category_counts / tags_page: unfiltered tag browser (long TTL)
    """

    def __init__(self,
                 tag_id_size: int = None,
                 post_ids_size: int = None,
                 wildcard_size: int = None,
                 wildcard_ttl: float = None,
                 tree_size: int = None,
                 tree_ttl: float = None,
                 tags_page_size: int = None,
                 tags_page_ttl: float = None,
                 clock: Callable[[], float] = time.monotonic):
        self.tag_ids = LRUCache(tag_id_size or config.TAG_ID_CACHE_SIZE)
        self.post_ids = LRUCache(post_ids_size or config.POST_IDS_CACHE_SIZE)
        self.wildcards = TTLCache(
            wildcard_size or config.WILDCARD_CACHE_SIZE,
            wildcard_ttl if wildcard_ttl is not None else config.WILDCARD_CACHE_TTL,
            clock=clock,
        )
        self.tree = TTLCache(
            tree_size or config.TREE_CACHE_SIZE,
            tree_ttl if tree_ttl is not None else config.TREE_CACHE_TTL,
            clock=clock,
        )
        page_ttl = tags_page_ttl if tags_page_ttl is not None else config.TAGS_PAGE_CACHE_TTL
        self.category_counts = TTLCache(1, page_ttl, clock=clock)
        self.tags_page = TTLCache(tags_page_size or config.TAGS_PAGE_CACHE_SIZE, page_ttl, clock=clock)

    def tiers(self) -> Dict[str, Any]:
        return {
            'tag_ids': self.tag_ids,
            'post_ids': self.post_ids,
            'wildcards': self.wildcards,
            'tree': self.tree,
            'category_counts': self.category_counts,
            'tags_page': self.tags_page,
        }

    def sizes(self) -> Dict[str, int]:
        """Current entry count per tier (for the admin status endpoint)."""
        return {name: len(cache) for name, cache in self.tiers().items()}

    def clear_all(self) -> None:
        """Wipe every tier. Safe to call any number of times."""
        for cache in self.tiers().values():
            cache.clear()
