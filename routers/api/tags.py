import asyncio

from quart import request

import config
from . import api_blueprint
from services.search_engine import get_search_engine
from utils import api_handler, get_query_list, parse_int_param, search_response


@api_blueprint.route('/tags/tree')
@api_handler()
async def tag_tree():
    """Tags co-occurring with the selection: ?selected=a,b&category=ARTIST&q=text&limit=50"""
    selected = get_query_list(request, 'selected')
    category = request.args.get('category') or None
    text_filter = request.args.get('q') or None
    limit = parse_int_param(request.args.get('limit'), 'limit', default=config.TREE_DEFAULT_LIMIT,
                            min_value=1, max_value=config.TREE_MAX_LIMIT)

    result = await asyncio.to_thread(get_search_engine().tag_tree, selected, category, text_filter, limit)
    return search_response(result, 500 if result.error else 200)


@api_blueprint.route('/tags/search')
@api_handler()
async def autocomplete():
    """Tag name suggestions: ?q=blu&selected=solo&limit=10"""
    query = request.args.get('q', '')
    selected = get_query_list(request, 'selected')
    limit = parse_int_param(request.args.get('limit'), 'limit', default=10, min_value=1,
                            max_value=config.TREE_MAX_LIMIT)

    result = await asyncio.to_thread(get_search_engine().autocomplete, query, selected, limit)
    return search_response(result, 500 if result.error else 200)


@api_blueprint.route('/tags')
@api_handler()
async def list_tags():
    """Paginated tag listing: ?q=&category=&sort=count|-count|name|-name&page=&limit="""
    page = parse_int_param(request.args.get('page'), 'page', default=1, min_value=1, max_value=config.MAX_PAGE)
    limit = parse_int_param(request.args.get('limit'), 'limit', default=config.TAGS_PER_PAGE,
                            min_value=1, max_value=config.MAX_TAGS_PER_PAGE)

    return await asyncio.to_thread(
        get_search_engine().list_tags,
        request.args.get('q', ''),
        request.args.get('category') or None,
        request.args.get('sort', 'count'),
        page,
        limit,
    )


@api_blueprint.route('/tags/counts')
@api_handler()
async def tag_category_counts():
    """Number of tags per category."""
    counts = await asyncio.to_thread(get_search_engine().category_counts)
    return {'counts': counts}


@api_blueprint.route('/tags/meta')
@api_handler()
async def meta_tags():
    """Meta tags (video, portrait, highres, ...) matching ?q="""
    return {'metaTags': get_search_engine().meta_tags(request.args.get('q', ''))}
