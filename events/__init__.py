# Events module for BooruSearch
# Lets the ingestion and admin side tell the search engine that data changed
# without importing it.

from .cache_events import (
    register_cache_invalidation_callback,
    trigger_cache_invalidation
)

__all__ = [
    'register_cache_invalidation_callback',
    'trigger_cache_invalidation'
]
