"""
Tag ID Cache - resolves tag names to tag ids

Maps lowercased tag names to the ids of every tag carrying that name. A name
can exist once per category (e.g. an ARTIST and a CHARACTER tag both named
"kiri"), so each name maps to a tuple of ids and a search token is satisfied
by any of them.

Lookups go through an LRU so hot names never reach the database; misses are
fetched in one batch and backfilled. Names that do not exist are simply
absent from the result and are not cached, so a tag created by the next
ingestion run becomes resolvable without an invalidation.
"""

from typing import Dict, Iterable, Optional, Tuple

from core.cache import LRUCache
from repositories import tag_repository
from utils.logging_config import get_logger

logger = get_logger('TagIDCache')


class TagIDCache:
    """Case-insensitive tag name -> tag ids resolver backed by an LRU."""

    def __init__(self, cache: Optional[LRUCache] = None):
        if cache is None:
            import config
            cache = LRUCache(config.TAG_ID_CACHE_SIZE)
        self.cache = cache

    def resolve(self, names: Iterable[str]) -> Dict[str, Tuple[int, ...]]:
        """
        Resolve tag names to ids.

        Args:
            names: Tag names in any case

        Returns:
            Dict of lowercased name -> tuple of tag ids (ascending). Names
            with no matching tag are left out.
        """
        wanted = []
        seen = set()
        for name in names:
            key = (name or '').strip().lower()
            if key and key not in seen:
                seen.add(key)
                wanted.append(key)

        resolved = {}
        misses = []
        for key in wanted:
            ids = self.cache.get(key)
            if ids is None:
                misses.append(key)
            else:
                resolved[key] = ids

        if misses:
            logger.debug(f"Tag id cache: {len(resolved)} hits, {len(misses)} misses")
            fetched: Dict[str, list] = {}
            for row in tag_repository.find_tags_by_names(misses):
                fetched.setdefault(row['name'].lower(), []).append(row['id'])

            for key, ids in fetched.items():
                ids = tuple(sorted(ids))
                self.cache.set(key, ids)
                resolved[key] = ids

        return resolved

    def get_ids(self, name: str) -> Tuple[int, ...]:
        """Ids for a single name, or an empty tuple if the tag does not exist."""
        return self.resolve([name]).get((name or '').strip().lower(), ())

    def clear(self):
        self.cache.clear()
