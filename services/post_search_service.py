"""
Post Search Service

Turns a list of query tokens into a page of posts:

    blue_eyes  -solo  character:*  -*_(cosplay)  highres

- plain tokens must all be present (AND)
- a leading '-' excludes the tag
- '*' tokens expand to up to WILDCARD_TAG_LIMIT tags; the post needs any one
  of them (OR within the pattern, AND across patterns)
- meta tags (video, portrait, highres, ...) filter on post attributes

The whole query is assembled into one predicate tree and compiled once; the
page and the total count then run concurrently on separate connections.
"""

import math
import sqlite3
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import config
from core.meta_tags import get_meta_tag
from core.models import Post
from core.predicates import And, HasAnyTag, MetaCondition, Not, RawCondition
from core.tag_id_cache import TagIDCache
from core.wildcard import WildcardEngine, is_wildcard, strip_negation
from repositories import post_repository
from utils.logging_config import get_logger
from utils.tag_blacklist import PostHidingFilter, TagBlacklist, default_blacklist, default_post_hiding

logger = get_logger('PostSearch')

FAILED_MESSAGE = "Failed to search posts"


class SearchOutcome:
    OK = 'ok'
    EMPTY_QUERY = 'empty_query'
    NO_SUCH_TAG = 'no_such_tag'
    INVALID = 'invalid'
    FAILED = 'failed'


class PostSearchResult:
    def __init__(self, posts: List[Post] = None, total_count: int = 0, total_pages: int = 0,
                 query_time_ms: float = 0.0, resolved_wildcards: list = None,
                 error: Optional[str] = None, outcome: str = SearchOutcome.OK,
                 unresolved_tags: List[str] = None):
        self.posts = posts or []
        self.total_count = total_count
        self.total_pages = total_pages
        self.query_time_ms = query_time_ms
        self.resolved_wildcards = resolved_wildcards or []
        self.error = error
        self.outcome = outcome
        self.unresolved_tags = unresolved_tags or []

    def to_dict(self):
        result = {
            'posts': [post.to_dict() for post in self.posts],
            'totalCount': self.total_count,
            'totalPages': self.total_pages,
            'queryTimeMs': round(self.query_time_ms, 2),
            'resolvedWildcards': [w.to_dict() for w in self.resolved_wildcards],
            'outcome': self.outcome,
        }
        if self.unresolved_tags:
            result['unresolvedTags'] = self.unresolved_tags
        if self.error:
            result['error'] = self.error
        return result


class ParsedQuery:
    """Query tokens sorted by kind and polarity."""

    def __init__(self):
        self.include_tags: List[str] = []
        self.exclude_tags: List[str] = []
        self.include_wildcards: List[str] = []
        self.exclude_wildcards: List[str] = []
        self.include_meta: List[str] = []
        self.exclude_meta: List[str] = []
        self.errors: List[str] = []

    def is_empty(self) -> bool:
        return not (self.include_tags or self.exclude_tags
                    or self.include_wildcards or self.exclude_wildcards
                    or self.include_meta or self.exclude_meta)

    def shape(self) -> Dict[str, int]:
        """Token counts only, safe to log."""
        return {
            'include_tags': len(self.include_tags),
            'exclude_tags': len(self.exclude_tags),
            'include_wildcards': len(self.include_wildcards),
            'exclude_wildcards': len(self.exclude_wildcards),
            'include_meta': len(self.include_meta),
            'exclude_meta': len(self.exclude_meta),
        }


class QueryComposer:
    """Resolves tag queries into paginated post results."""

    def __init__(self, resolver: TagIDCache, wildcards: WildcardEngine,
                 blacklist: TagBlacklist = None, post_hiding: PostHidingFilter = None,
                 page_size: int = None, max_page_size: int = None, max_page: int = None,
                 executor: ThreadPoolExecutor = None):
        self.resolver = resolver
        self.wildcards = wildcards
        self.blacklist = blacklist if blacklist is not None else default_blacklist()
        self.post_hiding = post_hiding if post_hiding is not None else default_post_hiding()
        self.page_size = page_size or config.POSTS_PER_PAGE
        self.max_page_size = max_page_size or config.MAX_POSTS_PER_PAGE
        self.max_page = max_page or config.MAX_PAGE
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix='post-search')

    def parse(self, tokens: Sequence[str]) -> ParsedQuery:
        """
        Normalise and classify tokens.

        Duplicate tokens are collapsed, blacklisted tags are dropped and
        invalid wildcards are dropped with their message kept in `errors`.
        """
        parsed = ParsedQuery()
        seen = set()

        for raw in tokens:
            token = (raw or '').strip().lower()
            if not token or token == '-' or token in seen:
                continue
            seen.add(token)

            negated = token.startswith('-')
            name = strip_negation(token)

            if self.blacklist.is_blacklisted(name):
                continue

            if is_wildcard(token):
                validation = self.wildcards.validate(token)
                if not validation.valid:
                    parsed.errors.append(validation.error)
                elif negated:
                    parsed.exclude_wildcards.append(token)
                else:
                    parsed.include_wildcards.append(token)
            elif get_meta_tag(name) is not None:
                (parsed.exclude_meta if negated else parsed.include_meta).append(name)
            else:
                (parsed.exclude_tags if negated else parsed.include_tags).append(name)

        return parsed

    def search_posts(self, tokens: Sequence[str], page: int = 1,
                     limit: Optional[int] = None) -> PostSearchResult:
        """
        Search posts by tag tokens.

        Args:
            tokens: Query tokens, '-' prefix to exclude, '*' for wildcards
            page: 1-based page number (clamped to MAX_PAGE)
            limit: Page size (defaults to POSTS_PER_PAGE, capped at MAX_POSTS_PER_PAGE)

        Returns:
            PostSearchResult; `outcome` tells an empty query, an unknown tag,
            an invalid query and a store failure apart from a real result
        """
        start = time.perf_counter()
        page = max(1, min(int(page or 1), self.max_page))
        limit = max(1, min(int(limit or self.page_size), self.max_page_size))

        parsed = self.parse(tokens)
        error = parsed.errors[0] if parsed.errors else None

        if parsed.is_empty():
            outcome = SearchOutcome.INVALID if error else SearchOutcome.EMPTY_QUERY
            return PostSearchResult(error=error, outcome=outcome)

        try:
            return self._run(parsed, page, limit, start, error)
        except sqlite3.Error as e:
            logger.error(f"Post search failed ({e.__class__.__name__}: {e}); query shape {parsed.shape()}")
            return PostSearchResult(error=FAILED_MESSAGE, outcome=SearchOutcome.FAILED)

    def _run(self, parsed: ParsedQuery, page: int, limit: int, start: float,
             error: Optional[str]) -> PostSearchResult:
        resolved = self.resolver.resolve(parsed.include_tags + parsed.exclude_tags)

        unresolved = [name for name in parsed.include_tags if name not in resolved]
        if unresolved:
            logger.debug(f"{len(unresolved)} included tag(s) do not exist")
            return PostSearchResult(
                error=error,
                outcome=SearchOutcome.NO_SUCH_TAG,
                unresolved_tags=unresolved,
                query_time_ms=(time.perf_counter() - start) * 1000,
            )

        resolved_wildcards = [
            self.wildcards.resolve(token)
            for token in parsed.include_wildcards + parsed.exclude_wildcards
        ]

        conditions = [HasAnyTag(resolved[name]) for name in parsed.include_tags]

        for wildcard in resolved_wildcards:
            if wildcard.negated:
                if wildcard.tag_ids:
                    conditions.append(Not(HasAnyTag(wildcard.tag_ids)))
            elif not wildcard.tag_ids:
                # Nothing can carry a tag from an empty expansion
                return PostSearchResult(
                    resolved_wildcards=resolved_wildcards,
                    error=error,
                    query_time_ms=(time.perf_counter() - start) * 1000,
                )
            else:
                conditions.append(HasAnyTag(wildcard.tag_ids))

        # Excluding a tag that does not exist filters nothing
        for name in parsed.exclude_tags:
            if name in resolved:
                conditions.append(Not(HasAnyTag(resolved[name])))

        for name in parsed.include_meta:
            conditions.append(MetaCondition(get_meta_tag(name)))
        for name in parsed.exclude_meta:
            conditions.append(MetaCondition(get_meta_tag(name), negated=True))

        if self.post_hiding:
            conditions.append(RawCondition(*self.post_hiding.sql_condition('p.id')))

        where_sql, params = And(conditions).compile()
        offset = (page - 1) * limit

        posts_future = self.executor.submit(post_repository.find_posts, where_sql, params, limit, offset)
        count_future = self.executor.submit(post_repository.count_posts, where_sql, params)
        rows = posts_future.result()
        total_count = count_future.result()

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Post search: {total_count} matches in {elapsed_ms:.1f}ms, shape {parsed.shape()}")

        return PostSearchResult(
            posts=[Post.from_row(row) for row in rows],
            total_count=total_count,
            total_pages=math.ceil(total_count / limit),
            query_time_ms=elapsed_ms,
            resolved_wildcards=resolved_wildcards,
            error=error,
        )

    def shutdown(self):
        self.executor.shutdown(wait=False)
