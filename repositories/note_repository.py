"""
Note queries.

Both search modes return one row per distinct note content (content_hash):
the best ranked note of each group represents it. The count_* queries return
the number of groups so pagination counts merged hits.
"""

import json
from typing import Dict, List, Sequence, Tuple

from database import get_db_reader

_NO_FILTER: Tuple[str, list] = ('1', [])


def search_ranked(fts_query: str, highlight: Tuple[str, str], snippet_tokens: int,
                  limit: int, offset: int,
                  visible_sql: Tuple[str, list] = _NO_FILTER) -> List[Dict]:
    """
    Full-text search over note content.

    Args:
        fts_query: FTS5 MATCH expression
        highlight: Markers placed around matched terms in the snippet
        snippet_tokens: Maximum tokens in the snippet
        limit, offset: Page of content groups
        visible_sql: Post visibility fragment over "p"

    Returns:
        Rows ordered by bm25 score (best first), then newest import
    """
    visible_condition, visible_params = visible_sql
    query = f"""
        WITH matched AS (
            SELECT n.id, n.name, n.content, n.content_hash, p.imported_at,
                   bm25(notes_fts) AS score,
                   snippet(notes_fts, 0, ?, ?, '...', ?) AS headline
            FROM notes_fts
            JOIN notes n ON n.id = notes_fts.rowid
            JOIN posts p ON p.id = n.post_id
            WHERE notes_fts MATCH ? AND {visible_condition}
        ),
        ranked AS (
            SELECT *, ROW_NUMBER() OVER (
                PARTITION BY content_hash ORDER BY score ASC, imported_at DESC, id ASC
            ) AS group_rank
            FROM matched
        )
        SELECT id, name, content, content_hash, headline, score
        FROM ranked
        WHERE group_rank = 1
        ORDER BY score ASC, imported_at DESC, id ASC
        LIMIT ? OFFSET ?
    """
    params = [highlight[0], highlight[1], snippet_tokens, fts_query] + visible_params + [limit, offset]
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, params).fetchall()]


def search_substring(like_pattern: str, limit: int, offset: int,
                     visible_sql: Tuple[str, list] = _NO_FILTER) -> List[Dict]:
    """Notes whose content contains a LIKE pattern (ESCAPE '\\'), newest import first."""
    visible_condition, visible_params = visible_sql
    query = f"""
        WITH ranked AS (
            SELECT n.id, n.name, n.content, n.content_hash, p.imported_at,
                   ROW_NUMBER() OVER (
                       PARTITION BY n.content_hash ORDER BY p.imported_at DESC, n.id ASC
                   ) AS group_rank
            FROM notes n
            JOIN posts p ON p.id = n.post_id
            WHERE n.content LIKE ? ESCAPE '\\' AND {visible_condition}
        )
        SELECT id, name, content, content_hash
        FROM ranked
        WHERE group_rank = 1
        ORDER BY imported_at DESC, id ASC
        LIMIT ? OFFSET ?
    """
    params = [like_pattern] + visible_params + [limit, offset]
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, params).fetchall()]


def count_ranked(fts_query: str, visible_sql: Tuple[str, list] = _NO_FILTER) -> int:
    """Number of distinct note contents matching an FTS5 expression."""
    visible_condition, visible_params = visible_sql
    query = f"""
        SELECT COUNT(DISTINCT n.content_hash)
        FROM notes_fts
        JOIN notes n ON n.id = notes_fts.rowid
        JOIN posts p ON p.id = n.post_id
        WHERE notes_fts MATCH ? AND {visible_condition}
    """
    with get_db_reader() as conn:
        return conn.execute(query, [fts_query] + visible_params).fetchone()[0]


def count_substring(like_pattern: str, visible_sql: Tuple[str, list] = _NO_FILTER) -> int:
    """Number of distinct note contents containing a LIKE pattern."""
    visible_condition, visible_params = visible_sql
    query = f"""
        SELECT COUNT(DISTINCT n.content_hash)
        FROM notes n
        JOIN posts p ON p.id = n.post_id
        WHERE n.content LIKE ? ESCAPE '\\' AND {visible_condition}
    """
    with get_db_reader() as conn:
        return conn.execute(query, [like_pattern] + visible_params).fetchone()[0]


def find_posts_for_content_hashes(content_hashes: Sequence[str],
                                  visible_sql: Tuple[str, list] = _NO_FILTER) -> Dict[str, List[Dict]]:
    """Every visible post carrying a note with one of the given content hashes."""
    if not content_hashes:
        return {}
    visible_condition, visible_params = visible_sql
    query = f"""
        SELECT DISTINCT n.content_hash, p.id, p.hash, p.width, p.height, p.mime_type,
               p.imported_at, p.orientation
        FROM notes n
        JOIN posts p ON p.id = n.post_id
        WHERE n.content_hash IN (SELECT value FROM json_each(?)) AND {visible_condition}
        ORDER BY p.imported_at DESC, p.id DESC
    """
    grouped: Dict[str, List[Dict]] = {}
    with get_db_reader() as conn:
        for row in conn.execute(query, [json.dumps(list(content_hashes))] + visible_params):
            post = dict(row)
            grouped.setdefault(post.pop('content_hash'), []).append(post)
    return grouped
