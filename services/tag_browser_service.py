"""
Tag Browser Service

Paginated tag listing for the tags page: name search, category filter and
sorting by post count or name. The unfiltered listing and the per-category
totals change only when the sync or stats jobs run, so they are cached for a
long time and dropped on invalidation.
"""

import math
from typing import Dict, Optional

import config
from core.cache import TTLCache
from core.wildcard import escape_like
from database import TAG_CATEGORIES
from repositories import tag_repository
from utils.logging_config import get_logger
from utils.tag_blacklist import TagBlacklist, default_blacklist
from utils.validation import validate_enum

logger = get_logger('TagBrowser')

SORT_ORDERS = {
    'count': 't.post_count DESC',
    '-count': 't.post_count ASC',
    'name': 't.name ASC',
    '-name': 't.name DESC',
}

# Unfiltered pages beyond this are rarely visited and not worth caching
CACHED_PAGES = 5


class TagBrowser:
    def __init__(self, page_cache: TTLCache = None, counts_cache: TTLCache = None,
                 blacklist: TagBlacklist = None, page_size: int = None, max_page_size: int = None):
        self.page_cache = page_cache or TTLCache(config.TAGS_PAGE_CACHE_SIZE, config.TAGS_PAGE_CACHE_TTL)
        self.counts_cache = counts_cache or TTLCache(1, config.TAGS_PAGE_CACHE_TTL)
        self.blacklist = blacklist if blacklist is not None else default_blacklist()
        self.page_size = page_size or config.TAGS_PER_PAGE
        self.max_page_size = max_page_size or config.MAX_TAGS_PER_PAGE

    def list_tags(self, query: str = '', category: Optional[str] = None, sort: str = 'count',
                  page: int = 1, limit: Optional[int] = None) -> Dict:
        """
        One page of tags.

        Args:
            query: Substring the name must contain (case-insensitive)
            category: One of the tag categories, or None for all
            sort: count, -count, name or -name
            page: 1-based page
            limit: Page size (default TAGS_PER_PAGE, capped at MAX_TAGS_PER_PAGE)

        Raises:
            ValueError: Unknown category or sort order
        """
        query = (query or '').strip().lower()
        category = validate_enum((category or '').strip() or 'ALL', 'category', ['ALL', *TAG_CATEGORIES])
        sort = validate_enum((sort or '').strip() or 'count', 'sort', list(SORT_ORDERS))
        page = max(1, min(int(page or 1), config.MAX_PAGE))
        limit = max(1, min(int(limit or self.page_size), self.max_page_size))

        if category == 'ALL':
            category = None

        cacheable = not query and page <= CACHED_PAGES
        cache_key = (category, sort, page, limit)
        if cacheable:
            cached = self.page_cache.get(cache_key)
            if cached is not None:
                logger.debug("Tag listing cache HIT")
                return cached

        name_pattern = '%' + escape_like(query) + '%' if query else None
        blacklist_sql = self.blacklist.sql_exclusion('t.name')
        tags = tag_repository.list_tags(category, name_pattern, blacklist_sql,
                                        SORT_ORDERS[sort], limit, (page - 1) * limit)
        total_count = tag_repository.count_tags(category, name_pattern, blacklist_sql)

        result = {
            'tags': tags,
            'pagination': {
                'page': page,
                'limit': limit,
                'totalCount': total_count,
                'totalPages': math.ceil(total_count / limit),
            },
        }
        if cacheable:
            self.page_cache.set(cache_key, result)
        return result

    def category_counts(self) -> Dict[str, int]:
        """Number of (non-blacklisted) tags per category, plus ALL."""
        cached = self.counts_cache.get('counts')
        if cached is not None:
            return cached

        by_category = tag_repository.count_tags_by_category(self.blacklist.sql_exclusion('t.name'))
        counts = {'ALL': sum(by_category.values())}
        for category in TAG_CATEGORIES:
            counts[category] = by_category.get(category, 0)

        self.counts_cache.set('counts', counts)
        return counts
