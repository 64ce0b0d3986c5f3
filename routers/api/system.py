from . import api_blueprint
from events.cache_events import trigger_cache_invalidation
from services.search_engine import get_search_engine
from utils import api_handler, require_secret


@api_blueprint.route('/admin/invalidate', methods=['POST'])
@api_handler()
@require_secret
async def invalidate_caches():
    """Drop every search cache. Called by the sync and stats jobs after they write."""
    # Make sure the engine exists so its callback is registered
    get_search_engine()
    callbacks = trigger_cache_invalidation()
    return {'message': 'Caches invalidated', 'callbacks': callbacks}


@api_blueprint.route('/system/status')
@api_handler()
async def system_status():
    """Cache tier sizes."""
    return {'caches': get_search_engine().cache_stats()}
