import asyncio

from quart import request

import config
from . import api_blueprint
from services.post_search_service import SearchOutcome
from services.search_engine import get_search_engine
from utils import api_handler, get_query_list, parse_int_param, search_response


@api_blueprint.route('/posts/search')
@api_handler()
async def search_posts():
    """Search posts by tags: ?tags=blue_eyes,-solo,character:*&page=1"""
    tokens = get_query_list(request, 'tags')
    page = parse_int_param(request.args.get('page'), 'page', default=1, min_value=1, max_value=config.MAX_PAGE)
    limit = parse_int_param(request.args.get('limit'), 'limit', default=config.POSTS_PER_PAGE,
                            min_value=1, max_value=config.MAX_POSTS_PER_PAGE)

    result = await asyncio.to_thread(get_search_engine().search_posts, tokens, page, limit)

    if result.outcome == SearchOutcome.FAILED:
        return search_response(result, 500)
    if result.outcome == SearchOutcome.INVALID:
        return search_response(result, 400)
    return search_response(result)


@api_blueprint.route('/notes/search')
@api_handler()
async def search_notes():
    """Search note content: ?q=hello world&page=1&mode=ranked|substring"""
    query = request.args.get('q', '')
    mode = request.args.get('mode', 'ranked')
    page = parse_int_param(request.args.get('page'), 'page', default=1, min_value=1, max_value=config.MAX_PAGE)

    result = await asyncio.to_thread(get_search_engine().search_notes, query, page, mode)

    if result.failed:
        return search_response(result, 500)
    if result.error:
        return search_response(result, 400)
    return search_response(result)
