"""
Tag Tree Service

Drill-down browsing: given the tags selected so far, list the tags that
co-occur with all of them, ranked by how many of the matching posts carry
each one. With nothing selected, a balanced top list per category is shown
instead so GENERAL tags cannot crowd out artists and characters.
"""

import sqlite3
from typing import Dict, List, Optional, Sequence

import config
from core.cache import LRUCache, TTLCache
from core.tag_id_cache import TagIDCache
from core.wildcard import to_store_pattern
from repositories import post_repository, tag_repository
from utils.logging_config import get_logger
from utils.tag_blacklist import TagBlacklist, default_blacklist

logger = get_logger('TagTree')

FAILED_MESSAGE = "Failed to load tag tree"


class TagTreeResult:
    def __init__(self, tags: List[Dict] = None, post_count: int = 0,
                 selected_tags: List[str] = None, error: Optional[str] = None):
        self.tags = tags or []
        self.post_count = post_count
        self.selected_tags = selected_tags or []
        self.error = error

    def to_dict(self):
        result = {
            'tags': self.tags,
            'postCount': self.post_count,
            'selectedTags': self.selected_tags,
        }
        if self.error:
            result['error'] = self.error
        return result


def _contains_pattern(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return '%' + to_store_pattern(text) + '%'


def _tag_entry(row) -> Dict:
    return {'id': row['id'], 'name': row['name'], 'category': row['category'], 'count': row['count']}


class TagTreeNarrower:
    """Co-occurrence narrowing over the post_tags table."""

    def __init__(self, resolver: TagIDCache, post_ids_cache: LRUCache = None,
                 response_cache: TTLCache = None, blacklist: TagBlacklist = None,
                 category_limits: Dict[str, int] = None,
                 default_limit: int = None, max_limit: int = None):
        self.resolver = resolver
        self.post_ids_cache = post_ids_cache or LRUCache(config.POST_IDS_CACHE_SIZE)
        self.response_cache = response_cache or TTLCache(config.TREE_CACHE_SIZE, config.TREE_CACHE_TTL)
        self.blacklist = blacklist if blacklist is not None else default_blacklist()
        self.category_limits = category_limits or dict(config.TREE_CATEGORY_LIMITS)
        self.default_limit = default_limit or config.TREE_DEFAULT_LIMIT
        self.max_limit = max_limit or config.TREE_MAX_LIMIT

    def _clamp_limit(self, limit: Optional[int]) -> int:
        return max(1, min(int(limit or self.default_limit), self.max_limit))

    def post_ids_for(self, groups: Sequence[Sequence[int]]) -> List[int]:
        """Posts carrying every selected tag, cached by the sorted id groups."""
        key = tuple(sorted(tuple(sorted(group)) for group in groups))
        post_ids = self.post_ids_cache.get(key)
        if post_ids is not None:
            logger.debug(f"Post id set cache HIT ({len(post_ids)} posts)")
            return post_ids

        post_ids = tag_repository.post_ids_with_all_tag_groups(key)
        self.post_ids_cache.set(key, post_ids)
        logger.debug(f"Post id set cache MISS, {len(post_ids)} posts for {len(key)} tags")
        return post_ids

    def tag_tree(self, selected: Sequence[str], category: Optional[str] = None,
                 text_filter: Optional[str] = None, limit: Optional[int] = None) -> TagTreeResult:
        """
        Tags co-occurring with every selected tag.

        Args:
            selected: Selected tag names
            category: Restrict candidates to one category
            text_filter: Restrict candidates to names containing this text
            limit: Maximum candidates (default TREE_DEFAULT_LIMIT, capped at TREE_MAX_LIMIT)

        Returns:
            TagTreeResult with candidates ordered by co-occurrence count
        """
        selected_tags = [t.strip().lower() for t in selected if t and t.strip()]
        category = (category or '').strip().upper() or None
        text_filter = (text_filter or '').strip().lower() or None
        limit = self._clamp_limit(limit)

        cache_key = (tuple(sorted(selected_tags)), category, text_filter, limit)
        cached = self.response_cache.get(cache_key)
        if cached is not None:
            logger.debug("Tag tree cache HIT")
            return TagTreeResult(cached['tags'], cached['postCount'], selected_tags)

        try:
            if selected_tags:
                tags, post_count = self._narrow(selected_tags, category, text_filter, limit)
            else:
                tags, post_count = self._top(category, text_filter, limit)
        except sqlite3.Error as e:
            logger.error(f"Tag tree failed ({e.__class__.__name__}); "
                         f"{len(selected_tags)} selected, category filter: {bool(category)}, "
                         f"text filter: {bool(text_filter)}")
            return TagTreeResult(selected_tags=selected_tags, error=FAILED_MESSAGE)

        self.response_cache.set(cache_key, {'tags': tags, 'postCount': post_count})
        return TagTreeResult(tags, post_count, selected_tags)

    def _top(self, category, text_filter, limit):
        blacklist_sql = self.blacklist.sql_exclusion('t.name')

        if category or text_filter:
            rows = tag_repository.top_tags(
                category=category,
                name_pattern=_contains_pattern(text_filter),
                blacklist_sql=blacklist_sql,
                limit=limit,
            )
        else:
            rows = tag_repository.top_tags_per_category(self.category_limits, blacklist_sql)
            order = {name: index for index, name in enumerate(self.category_limits)}
            rows.sort(key=lambda row: order.get(row['category'], len(order)))

        return [_tag_entry(row) for row in rows], post_repository.count_all_posts()

    def _narrow(self, selected_tags, category, text_filter, limit):
        resolved = self.resolver.resolve(selected_tags)
        if len(resolved) != len(set(selected_tags)):
            # An unknown tag leaves no post to narrow within
            return [], 0

        groups = [resolved[name] for name in dict.fromkeys(selected_tags)]
        post_ids = self.post_ids_for(groups)
        if not post_ids:
            return [], 0

        selected_ids = sorted({tag_id for group in groups for tag_id in group})
        rows = tag_repository.cooccurring_tags(
            post_ids,
            selected_ids,
            category=category,
            name_pattern=_contains_pattern(text_filter),
            blacklist_sql=self.blacklist.sql_exclusion('t.name'),
            limit=limit,
        )
        tags = [_tag_entry(row) for row in self.blacklist.filter(rows) if row['count'] > 0]
        return tags, len(post_ids)

    def autocomplete(self, query: str, selected: Sequence[str] = (), limit: int = 10) -> TagTreeResult:
        """
        Tag name suggestions containing `query`.

        Without a selection, ranked by post count; with one, only tags that
        co-occur with every selected tag, ranked by co-occurrence.
        """
        query = (query or '').strip().lower()
        if not query:
            return TagTreeResult(selected_tags=[t.strip().lower() for t in selected if t and t.strip()])
        return self.tag_tree(selected, text_filter=query, limit=limit)
