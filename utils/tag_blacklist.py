"""
Tag blacklist and post hiding.

Two independent pattern lists, both comma-separated and wildcard-capable
("hydl-import-time:*"):

- TAG_BLACKLIST: tags that never appear in tag lists, suggestions or the tag
  tree, and cannot be used as search terms. Posts carrying them are still
  shown.
- HIDE_POSTS_WITH_TAGS: posts carrying any matching tag are removed from
  every search result.
"""

import re
from typing import Iterable, List, Tuple

import config
from core.wildcard import to_store_pattern


def _pattern_to_regex(pattern: str):
    return re.compile('^' + '.*'.join(re.escape(part) for part in pattern.split('*')) + '$',
                      re.IGNORECASE)


class TagPatternList:
    """A list of lowercased tag patterns where '*' matches any run of characters."""

    def __init__(self, patterns: Iterable[str]):
        self.patterns: List[str] = [p.strip().lower() for p in patterns if p and p.strip()]
        self._regexes = [_pattern_to_regex(p) for p in self.patterns if '*' in p]
        self._exact = {p for p in self.patterns if '*' not in p}

    def __bool__(self):
        return bool(self.patterns)

    def matches(self, tag_name: str) -> bool:
        name = (tag_name or '').lower()
        if name in self._exact:
            return True
        return any(regex.match(name) for regex in self._regexes)

    def like_condition(self, column: str) -> Tuple[str, list]:
        """SQL fragment true when `column` matches any pattern ('0' when empty)."""
        if not self.patterns:
            return '0', []
        clauses = [f"LOWER({column}) LIKE ? ESCAPE '\\'" for _ in self.patterns]
        return '(' + ' OR '.join(clauses) + ')', [to_store_pattern(p) for p in self.patterns]


class TagBlacklist(TagPatternList):
    """Tags hidden from listings and unusable as search terms."""

    def is_blacklisted(self, tag_name: str) -> bool:
        return self.matches(tag_name)

    def filter(self, tags: list) -> list:
        """Drop blacklisted entries from a list of dicts/rows with a 'name' key."""
        if not self.patterns:
            return tags
        return [tag for tag in tags if not self.matches(tag['name'])]

    def sql_exclusion(self, column: str = 't.name') -> Tuple[str, list]:
        """SQL fragment true when `column` is NOT blacklisted ('1' when empty)."""
        if not self.patterns:
            return '1', []
        condition, params = self.like_condition(column)
        return f"NOT {condition}", params


class PostHidingFilter(TagPatternList):
    """Hides posts carrying any tag that matches one of the patterns."""

    def sql_condition(self, post_id_expr: str = 'p.id') -> Tuple[str, list]:
        """SQL fragment true for posts that should stay visible ('1' when empty)."""
        if not self.patterns:
            return '1', []
        condition, params = self.like_condition('ht.name')
        sql = (f"NOT EXISTS (SELECT 1 FROM post_tags hpt "
               f"JOIN tags ht ON ht.id = hpt.tag_id "
               f"WHERE hpt.post_id = {post_id_expr} AND {condition})")
        return sql, params


def default_blacklist() -> TagBlacklist:
    return TagBlacklist(config.TAG_BLACKLIST)


def default_post_hiding() -> PostHidingFilter:
    return PostHidingFilter(config.HIDE_POSTS_WITH_TAGS)
