"""
Search Engine

Single entry point used by the HTTP layer and by admin tooling. Owns one set
of caches and wires every search component to its tiers, so a single
invalidate_all() drops everything derived from the database.
"""

from typing import Dict, List, Optional, Sequence

from core.cache import SearchCaches
from core.meta_tags import search_meta_tags
from core.tag_id_cache import TagIDCache
from core.wildcard import WildcardEngine
from events.cache_events import register_cache_invalidation_callback
from services.note_search_service import NoteSearcher, NoteSearchResult
from services.post_search_service import PostSearchResult, QueryComposer
from services.tag_browser_service import TagBrowser
from services.tag_tree_service import TagTreeNarrower, TagTreeResult
from utils.logging_config import get_logger
from utils.tag_blacklist import (
    PostHidingFilter,
    TagBlacklist,
    default_blacklist,
    default_post_hiding,
)

logger = get_logger('SearchEngine')


class SearchEngine:
    def __init__(self, caches: SearchCaches = None, blacklist: TagBlacklist = None,
                 post_hiding: PostHidingFilter = None):
        self.caches = caches or SearchCaches()
        blacklist = blacklist if blacklist is not None else default_blacklist()
        post_hiding = post_hiding if post_hiding is not None else default_post_hiding()

        self.resolver = TagIDCache(self.caches.tag_ids)
        self.wildcards = WildcardEngine(self.caches.wildcards)
        self.composer = QueryComposer(self.resolver, self.wildcards,
                                      blacklist=blacklist, post_hiding=post_hiding)
        self.narrower = TagTreeNarrower(self.resolver,
                                        post_ids_cache=self.caches.post_ids,
                                        response_cache=self.caches.tree,
                                        blacklist=blacklist)
        self.notes = NoteSearcher(post_hiding=post_hiding)
        self.browser = TagBrowser(page_cache=self.caches.tags_page,
                                  counts_cache=self.caches.category_counts,
                                  blacklist=blacklist)

    def search_posts(self, tokens: Sequence[str], page: int = 1,
                     limit: Optional[int] = None) -> PostSearchResult:
        return self.composer.search_posts(tokens, page, limit)

    def search_notes(self, query: str, page: int = 1, mode: str = 'ranked') -> NoteSearchResult:
        return self.notes.search_notes(query, page, mode)

    def tag_tree(self, selected: Sequence[str], category: Optional[str] = None,
                 text_filter: Optional[str] = None, limit: Optional[int] = None) -> TagTreeResult:
        return self.narrower.tag_tree(selected, category, text_filter, limit)

    def autocomplete(self, query: str, selected: Sequence[str] = (), limit: int = 10) -> TagTreeResult:
        return self.narrower.autocomplete(query, selected, limit)

    def list_tags(self, query: str = '', category: Optional[str] = None, sort: str = 'count',
                  page: int = 1, limit: Optional[int] = None) -> Dict:
        return self.browser.list_tags(query, category, sort, page, limit)

    def category_counts(self) -> Dict[str, int]:
        return self.browser.category_counts()

    def meta_tags(self, query: str = '') -> List[Dict]:
        return [definition.to_dict() for definition in search_meta_tags(query)]

    def invalidate_all(self):
        """Drop every cache tier. Safe to call repeatedly."""
        self.caches.clear_all()
        logger.info("All search caches invalidated")

    def cache_stats(self) -> Dict[str, int]:
        return self.caches.sizes()


# Global instance
_search_engine: Optional[SearchEngine] = None


def get_search_engine() -> SearchEngine:
    """Get or create the process-wide search engine."""
    global _search_engine
    if _search_engine is None:
        _search_engine = SearchEngine()
        register_cache_invalidation_callback(_search_engine.invalidate_all)
    return _search_engine


def reset_search_engine():
    """Forget the global engine (tests, or after a configuration reload)."""
    global _search_engine
    _search_engine = None
