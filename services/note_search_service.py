"""
Note Search Service

Free-text search over note content, in two modes:

- ranked: FTS5 with bm25 scoring. Understands quoted phrases, "or" between
  terms and "-term" exclusions; every term also matches as a prefix, so
  "back" finds "background".
- substring: plain LIKE '%text%' for partial words the tokenizer cannot
  reach. Slower, ordered by recency only.

Notes with identical content (same content_hash) on different posts are
returned as a single hit listing all of those posts.
"""

import math
import re
import sqlite3
import time
from typing import Dict, List, Optional

from markupsafe import escape

import config
from core.models import Post
from core.wildcard import escape_like
from repositories import note_repository
from utils.logging_config import get_logger
from utils.tag_blacklist import PostHidingFilter, default_post_hiding

logger = get_logger('NoteSearch')

FAILED_MESSAGE = "Failed to search notes"

MODE_RANKED = 'ranked'
MODE_SUBSTRING = 'substring'
SEARCH_MODES = (MODE_RANKED, MODE_SUBSTRING)

# Private-use characters mark matches inside raw snippets; they survive HTML
# escaping and are swapped for <mark> afterwards
MARK_OPEN = '\ue000'
MARK_CLOSE = '\ue001'

_MARKED_WORD = re.compile(f"{MARK_OPEN}([^{MARK_CLOSE}]+){MARK_CLOSE}")
_QUERY_TOKEN = re.compile(r'(-?)"([^"]*)"|(\S+)')


class NoteHit:
    """One distinct note content and every post carrying it."""

    def __init__(self, id: int, name: str, content: str, content_hash: str,
                 headline: Optional[str], posts: List[Post]):
        self.id = id
        self.name = name
        self.content = content
        self.content_hash = content_hash
        self.headline = headline
        self.posts = posts

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'content': self.content,
            'contentHash': self.content_hash,
            'headline': self.headline,
            'posts': [post.to_dict() for post in self.posts],
        }


class NoteSearchResult:
    def __init__(self, notes: List[NoteHit] = None, total_count: int = 0, total_pages: int = 0,
                 query_time_ms: float = 0.0, error: Optional[str] = None, failed: bool = False):
        self.notes = notes or []
        self.total_count = total_count
        self.total_pages = total_pages
        self.query_time_ms = query_time_ms
        self.error = error
        # Distinguishes a store failure from a validation error
        self.failed = failed

    def to_dict(self):
        result = {
            'notes': [note.to_dict() for note in self.notes],
            'totalCount': self.total_count,
            'totalPages': self.total_pages,
            'queryTimeMs': round(self.query_time_ms, 2),
        }
        if self.error:
            result['error'] = self.error
        return result


def _fts_term(text: str) -> Optional[str]:
    text = text.strip()
    if not text:
        return None
    return '"' + text.replace('"', '""') + '"*'


def build_fts_query(query: str) -> Optional[str]:
    """
    Translate user search syntax into an FTS5 MATCH expression.

    Terms are ANDed, "or" joins its neighbours, "-term" excludes. Returns
    None when nothing positive is left to match.

        cat or dog -bird   ->   ("cat"* OR "dog"*) NOT "bird"*
    """
    groups: List[List[str]] = []
    excluded: List[str] = []
    join_next = False

    for match in _QUERY_TOKEN.finditer(query):
        phrase_negated, phrase, word = match.groups()
        if word is not None:
            if word.lower() == 'or':
                join_next = bool(groups)
                continue
            negated = word.startswith('-') and len(word) > 1
            term = _fts_term(word[1:] if negated else word)
        else:
            negated = bool(phrase_negated)
            term = _fts_term(phrase)

        if term is None:
            continue
        if negated:
            excluded.append(term)
        elif join_next:
            groups[-1].append(term)
        else:
            groups.append([term])
        join_next = False

    if not groups:
        return None

    positive = ' AND '.join(
        group[0] if len(group) == 1 else '(' + ' OR '.join(group) + ')'
        for group in groups
    )
    return positive + ''.join(f" NOT {term}" for term in excluded)


def _highlight_terms(query: str) -> List[str]:
    cleaned = re.sub(r'["()\-]', ' ', query.lower())
    return [t for t in cleaned.split() if len(t) >= 2 and t != 'or']


def adjust_prefix_highlighting(snippet: str, query: str) -> str:
    """Shrink each marked word to the query prefix it matched ("back" in "background")."""
    terms = _highlight_terms(query)
    if not terms:
        return snippet

    def shrink(match):
        word = match.group(1)
        lowered = word.lower()
        for term in terms:
            if lowered.startswith(term):
                return f"{MARK_OPEN}{word[:len(term)]}{MARK_CLOSE}{word[len(term):]}"
        return match.group(0)

    return _MARKED_WORD.sub(shrink, snippet)


def render_snippet(snippet: Optional[str]) -> Optional[str]:
    """HTML-escape a marked snippet, leaving <mark> as the only markup."""
    if not snippet:
        return None
    html = str(escape(snippet))
    return html.replace(MARK_OPEN, '<mark>').replace(MARK_CLOSE, '</mark>')


def substring_snippet(content: str, needle: str, max_tokens: int) -> Optional[str]:
    """Marked excerpt of `content` around the first case-insensitive occurrence of `needle`."""
    match = re.search(re.escape(needle), content, re.IGNORECASE)
    if match is None:
        return None
    index, end = match.span()

    words_each_side = max(1, max_tokens // 2)
    before = content[:index].split(' ')
    after = content[end:].split(' ')

    head = ' '.join(before[-words_each_side:])
    tail = ' '.join(after[:words_each_side])
    snippet = f"{head}{MARK_OPEN}{content[index:end]}{MARK_CLOSE}{tail}"

    if len(before) > words_each_side:
        snippet = '...' + snippet
    if len(after) > words_each_side:
        snippet = snippet + '...'
    return snippet


class NoteSearcher:
    """Ranked and substring search over notes."""

    def __init__(self, post_hiding: PostHidingFilter = None, page_size: int = None,
                 max_page: int = None, min_length: int = None, snippet_tokens: int = None):
        self.post_hiding = post_hiding if post_hiding is not None else default_post_hiding()
        self.page_size = page_size or config.POSTS_PER_PAGE
        self.max_page = max_page or config.MAX_PAGE
        self.min_length = min_length or config.NOTE_SEARCH_MIN_LENGTH
        self.snippet_tokens = snippet_tokens or config.NOTE_SNIPPET_TOKENS

    def search_notes(self, query: str, page: int = 1, mode: str = MODE_RANKED) -> NoteSearchResult:
        """
        Search note content.

        Args:
            query: Free text (at least NOTE_SEARCH_MIN_LENGTH characters)
            page: 1-based page of merged hits
            mode: 'ranked' or 'substring'

        Returns:
            NoteSearchResult; validation problems and store failures are
            reported through `error`
        """
        query = (query or '').strip()
        mode = (mode or MODE_RANKED).strip().lower()

        if mode not in SEARCH_MODES:
            return NoteSearchResult(error=f"mode must be one of: {', '.join(SEARCH_MODES)}")
        if len(query) < self.min_length:
            return NoteSearchResult(error=f"Search query must be at least {self.min_length} characters")

        page = max(1, min(int(page or 1), self.max_page))
        offset = (page - 1) * self.page_size
        start = time.perf_counter()
        visible_sql = self.post_hiding.sql_condition('p.id')

        try:
            if mode == MODE_RANKED:
                fts_query = build_fts_query(query)
                if fts_query is None:
                    return NoteSearchResult(error="Search must include at least one term to match")
                rows = note_repository.search_ranked(
                    fts_query, (MARK_OPEN, MARK_CLOSE), self.snippet_tokens,
                    self.page_size, offset, visible_sql,
                )
                total_count = note_repository.count_ranked(fts_query, visible_sql)
                snippets = {row['id']: adjust_prefix_highlighting(row['headline'], query) for row in rows}
            else:
                like_pattern = '%' + escape_like(query) + '%'
                rows = note_repository.search_substring(like_pattern, self.page_size, offset, visible_sql)
                total_count = note_repository.count_substring(like_pattern, visible_sql)
                snippets = {row['id']: substring_snippet(row['content'], query, self.snippet_tokens)
                            for row in rows}

            posts_by_hash = note_repository.find_posts_for_content_hashes(
                [row['content_hash'] for row in rows], visible_sql,
            )
        except sqlite3.Error as e:
            logger.error(f"Note search failed ({e.__class__.__name__}: {e}); "
                         f"mode={mode}, query length={len(query)}")
            return NoteSearchResult(error=FAILED_MESSAGE, failed=True)

        notes = [
            NoteHit(
                id=row['id'],
                name=row['name'],
                content=row['content'],
                content_hash=row['content_hash'],
                headline=render_snippet(snippets.get(row['id'])),
                posts=[Post.from_row(post) for post in posts_by_hash.get(row['content_hash'], [])],
            )
            for row in rows
        ]

        return NoteSearchResult(
            notes=notes,
            total_count=total_count,
            total_pages=math.ceil(total_count / self.page_size),
            query_time_ms=(time.perf_counter() - start) * 1000,
        )
