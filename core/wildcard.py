"""
Wildcard tag patterns

`*` matches any run of characters in a tag name:
    character:*   every character-namespaced tag
    *_eyes        tags ending with "_eyes"
    blue*         tags starting with "blue"

A pattern is validated before it ever reaches the database, then expanded to
at most `limit` concrete tags, most used first. Expansions are cached by
pattern for a short time.
"""

from typing import List, Optional

import config
from core.cache import TTLCache
from repositories import tag_repository
from utils.logging_config import get_logger

logger = get_logger('Wildcard')

WILDCARD = '*'


def strip_negation(token: str) -> str:
    if token.startswith('-') and len(token) > 1:
        return token[1:]
    return token


def is_negated(token: str) -> bool:
    return token.startswith('-') and len(token) > 1


def is_wildcard(token: str) -> bool:
    """True if the token, ignoring a leading '-', contains a '*'."""
    return WILDCARD in strip_negation(token)


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters so `text` matches literally with ESCAPE '\\'."""
    return (text
            .replace('\\', '\\\\')
            .replace('%', '\\%')
            .replace('_', '\\_'))


def to_store_pattern(pattern: str) -> str:
    """
    Convert a user pattern to a LIKE pattern for use with ESCAPE '\\'.

    LIKE metacharacters (backslash, %, _) in the user text are escaped first so
    they match literally; only then does '*' become '%'.
    """
    return escape_like(pattern).replace(WILDCARD, '%')


class WildcardValidation:
    def __init__(self, valid: bool, error: Optional[str] = None):
        self.valid = valid
        self.error = error

    def __bool__(self):
        return self.valid

    def __repr__(self):
        return f"WildcardValidation(valid={self.valid}, error={self.error!r})"


class WildcardMatch:
    """Tags one pattern expands to, as cached."""

    def __init__(self, tag_ids: List[int], tag_names: List[str],
                 tag_categories: List[str], truncated: bool):
        self.tag_ids = tag_ids
        self.tag_names = tag_names
        self.tag_categories = tag_categories
        self.truncated = truncated


class ResolvedWildcard:
    """A wildcard token from a query together with the tags it expanded to."""

    def __init__(self, pattern: str, negated: bool, match: WildcardMatch):
        self.pattern = pattern
        self.negated = negated
        self.tag_ids = list(match.tag_ids)
        self.tag_names = list(match.tag_names)
        self.tag_categories = list(match.tag_categories)
        self.truncated = match.truncated

    def to_dict(self):
        return {
            'pattern': self.pattern,
            'negated': self.negated,
            'tagIds': self.tag_ids,
            'tagNames': self.tag_names,
            'tagCategories': self.tag_categories,
            'truncated': self.truncated,
        }


class WildcardEngine:
    """Validates wildcard tokens and expands them to concrete tags."""

    def __init__(self, cache: Optional[TTLCache] = None, limit: int = None,
                 min_literal_chars: int = None):
        if cache is None:
            cache = TTLCache(config.WILDCARD_CACHE_SIZE, config.WILDCARD_CACHE_TTL)
        self.cache = cache
        self.limit = limit if limit is not None else config.WILDCARD_TAG_LIMIT
        self.min_literal_chars = (min_literal_chars if min_literal_chars is not None
                                  else config.WILDCARD_MIN_LITERAL_CHARS)

    def validate(self, token: str) -> WildcardValidation:
        """Reject patterns too broad to run. Never touches the database."""
        pattern = strip_negation(token)

        if pattern == WILDCARD:
            if is_negated(token):
                return WildcardValidation(False, "Cannot exclude all tags with '-*'")
            return WildcardValidation(
                False, "Standalone '*' is too broad. Add more characters to narrow the search."
            )

        literal = pattern.replace(WILDCARD, '')
        if not literal:
            return WildcardValidation(False, "Pattern must contain at least some non-wildcard characters.")

        if len(literal) < self.min_literal_chars:
            return WildcardValidation(
                False, f"Pattern must contain at least {self.min_literal_chars} non-wildcard characters."
            )

        return WildcardValidation(True)

    def expand(self, pattern: str) -> WildcardMatch:
        """
        Expand a pattern (without '-' prefix) to matching tags.

        Returns at most `limit` tags ordered by post count, then id. When more
        tags match, the result is truncated and flagged.
        """
        cached = self.cache.get(pattern)
        if cached is not None:
            logger.debug(f"Wildcard cache HIT ({len(cached.tag_ids)} tags)")
            return cached

        rows = tag_repository.find_tags_like(to_store_pattern(pattern), self.limit + 1)
        truncated = len(rows) > self.limit
        rows = rows[:self.limit]

        match = WildcardMatch(
            tag_ids=[row['id'] for row in rows],
            tag_names=[row['name'] for row in rows],
            tag_categories=[row['category'] for row in rows],
            truncated=truncated,
        )
        logger.debug(f"Wildcard cache MISS, resolved {len(rows)} tags (truncated={truncated})")

        self.cache.set(pattern, match)
        return match

    def resolve(self, token: str) -> ResolvedWildcard:
        """Expand a query token, keeping its negation."""
        return ResolvedWildcard(token, is_negated(token), self.expand(strip_negation(token)))
