"""
Cache Events Module

Publish-subscribe hook for cache invalidation. The search engine registers a
callback that drops every cache tier; the sync job (tags or posts changed)
and the stats job (tag post counts recomputed) call
trigger_cache_invalidation() without having to import the engine.

Usage:
    # In the engine:
    from events.cache_events import register_cache_invalidation_callback
    register_cache_invalidation_callback(engine.invalidate_all)

    # After a sync:
    from events.cache_events import trigger_cache_invalidation
    trigger_cache_invalidation()
"""

from utils.logging_config import get_logger

logger = get_logger('CacheEvents')

# Global list of cache invalidation callbacks
_cache_invalidation_callbacks = []


def register_cache_invalidation_callback(callback):
    """
    Register a callable (no arguments) to run on every invalidation.

    Registering the same callback twice has no effect.
    """
    if callback not in _cache_invalidation_callbacks:
        _cache_invalidation_callbacks.append(callback)


def unregister_cache_invalidation_callback(callback):
    if callback in _cache_invalidation_callbacks:
        _cache_invalidation_callbacks.remove(callback)


def trigger_cache_invalidation():
    """
    Run all registered invalidation callbacks.

    Returns:
        Number of callbacks that completed
    """
    completed = 0
    for callback in list(_cache_invalidation_callbacks):
        try:
            callback()
            completed += 1
        except Exception as e:
            # Remaining callbacks still run
            logger.warning(f"Cache invalidation callback failed: {e}")
    return completed


def clear_all_callbacks():
    """
    Clear all registered callbacks. Primarily for testing purposes.
    """
    global _cache_invalidation_callbacks
    _cache_invalidation_callbacks = []
