"""
Core Module

Building blocks of the search engine: cache containers, tag name
resolution, meta tags, wildcard expansion and the predicate tree.
"""

from .cache import LRUCache, SearchCaches, TTLCache
from .models import Post, derive_orientation

__all__ = [
    'LRUCache',
    'TTLCache',
    'SearchCaches',
    'Post',
    'derive_orientation',
]
