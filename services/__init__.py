"""
Services package for BooruSearch.

- post_search_service: tag queries (regular, wildcard, meta, negation)
- tag_tree_service: co-occurrence narrowing and autocomplete
- note_search_service: ranked and substring note search
- tag_browser_service: paginated tag listing
- search_engine: the facade owning the caches and every component

Service modules should be imported directly where needed, e.g.
`from services.search_engine import get_search_engine`.
"""

__all__ = [
    'note_search_service',
    'post_search_service',
    'search_engine',
    'tag_browser_service',
    'tag_tree_service',
]
