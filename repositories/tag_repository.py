"""
Tag queries.

Read-only access to the tags and post_tags tables. Callers pass already
prepared LIKE patterns and blacklist fragments; nothing here knows about
caching or query syntax.
"""

import json
from typing import Dict, List, Optional, Sequence, Tuple

from database import get_db_reader

# Keep well under SQLite's bound parameter limit
_NAME_CHUNK_SIZE = 500

_NO_FILTER: Tuple[str, list] = ('1', [])


def _tag_filters(category: Optional[str], name_pattern: Optional[str],
                 blacklist_sql: Tuple[str, list], alias: str = 't') -> Tuple[str, list]:
    """WHERE fragment shared by the listing queries."""
    clauses = []
    params: list = []
    if category:
        clauses.append(f"{alias}.category = ?")
        params.append(category)
    if name_pattern:
        clauses.append(f"{alias}.name LIKE ? ESCAPE '\\'")
        params.append(name_pattern)
    blacklist_condition, blacklist_params = blacklist_sql
    clauses.append(blacklist_condition)
    params.extend(blacklist_params)
    return ' AND '.join(clauses), params


# ============================================================================
# NAME / PATTERN RESOLUTION
# ============================================================================

def find_tags_by_names(names: Sequence[str]) -> List[Dict]:
    """All tags whose name equals one of `names`, ignoring case."""
    rows = []
    names = list(names)
    with get_db_reader() as conn:
        for start in range(0, len(names), _NAME_CHUNK_SIZE):
            chunk = names[start:start + _NAME_CHUNK_SIZE]
            placeholders = ','.join('?' * len(chunk))
            rows.extend(conn.execute(
                f"SELECT id, name, category FROM tags WHERE name COLLATE NOCASE IN ({placeholders})",
                chunk,
            ).fetchall())
    return [dict(row) for row in rows]


def find_tags_like(like_pattern: str, limit: int) -> List[Dict]:
    """Tags matching a LIKE pattern (ESCAPE '\\'), most used first, ties by id."""
    query = """
        SELECT id, name, category, post_count
        FROM tags
        WHERE name LIKE ? ESCAPE '\\'
        ORDER BY post_count DESC, id ASC
        LIMIT ?
    """
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, (like_pattern, limit)).fetchall()]


# ============================================================================
# TAG LISTINGS
# ============================================================================

def top_tags(category: Optional[str] = None, name_pattern: Optional[str] = None,
             blacklist_sql: Tuple[str, list] = _NO_FILTER, limit: int = 50) -> List[Dict]:
    """Most used tags, optionally restricted to a category and a name LIKE pattern."""
    where, params = _tag_filters(category, name_pattern, blacklist_sql)
    query = f"""
        SELECT t.id, t.name, t.category, t.post_count AS count
        FROM tags t
        WHERE {where}
        ORDER BY t.post_count DESC, t.id ASC
        LIMIT ?
    """
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, params + [limit]).fetchall()]


def top_tags_per_category(category_limits: Dict[str, int],
                          blacklist_sql: Tuple[str, list] = _NO_FILTER) -> List[Dict]:
    """
    Top tags of every category in one query, each category capped by its own limit.

    Categories missing from `category_limits` are left out.
    """
    if not category_limits:
        return []
    blacklist_condition, blacklist_params = blacklist_sql
    query = f"""
        WITH caps(category, cap) AS (
            SELECT json_extract(value, '$[0]'), json_extract(value, '$[1]')
            FROM json_each(?)
        ),
        ranked AS (
            SELECT t.id, t.name, t.category, t.post_count AS count,
                   ROW_NUMBER() OVER (
                       PARTITION BY t.category ORDER BY t.post_count DESC, t.id ASC
                   ) AS rank
            FROM tags t
            WHERE t.category IN (SELECT category FROM caps) AND {blacklist_condition}
        )
        SELECT r.id, r.name, r.category, r.count
        FROM ranked r
        JOIN caps c ON c.category = r.category
        WHERE r.rank <= c.cap
        ORDER BY r.category, r.rank
    """
    caps = json.dumps([[category, limit] for category, limit in category_limits.items()])
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, [caps] + blacklist_params).fetchall()]


def list_tags(category: Optional[str], name_pattern: Optional[str],
              blacklist_sql: Tuple[str, list], order_by: str,
              limit: int, offset: int) -> List[Dict]:
    """A page of tags. `order_by` must come from a fixed whitelist; ties go by id."""
    where, params = _tag_filters(category, name_pattern, blacklist_sql)
    query = f"""
        SELECT t.id, t.name, t.category, t.post_count AS count
        FROM tags t
        WHERE {where}
        ORDER BY {order_by}, t.id ASC
        LIMIT ? OFFSET ?
    """
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, params + [limit, offset]).fetchall()]


def count_tags(category: Optional[str], name_pattern: Optional[str],
               blacklist_sql: Tuple[str, list]) -> int:
    where, params = _tag_filters(category, name_pattern, blacklist_sql)
    with get_db_reader() as conn:
        return conn.execute(f"SELECT COUNT(*) FROM tags t WHERE {where}", params).fetchone()[0]


def count_tags_by_category(blacklist_sql: Tuple[str, list] = _NO_FILTER) -> Dict[str, int]:
    """Number of tags per category."""
    blacklist_condition, params = blacklist_sql
    query = f"""
        SELECT t.category, COUNT(*) AS total
        FROM tags t
        WHERE {blacklist_condition}
        GROUP BY t.category
    """
    with get_db_reader() as conn:
        return {row['category']: row['total'] for row in conn.execute(query, params).fetchall()}


# ============================================================================
# CO-OCCURRENCE
# ============================================================================

def post_ids_with_all_tag_groups(groups: Sequence[Sequence[int]]) -> List[int]:
    """
    Posts carrying at least one tag id from every group.

    A group holds the ids of one selected name (several when the name exists
    in more than one category). Computed with a single grouped aggregate.
    """
    if not groups:
        return []
    wanted = json.dumps([[tag_id, index] for index, group in enumerate(groups) for tag_id in group])
    query = """
        WITH wanted(tag_id, grp) AS (
            SELECT json_extract(value, '$[0]'), json_extract(value, '$[1]')
            FROM json_each(?)
        )
        SELECT pt.post_id
        FROM post_tags pt
        JOIN wanted w ON w.tag_id = pt.tag_id
        GROUP BY pt.post_id
        HAVING COUNT(DISTINCT w.grp) = ?
        ORDER BY pt.post_id
    """
    with get_db_reader() as conn:
        return [row[0] for row in conn.execute(query, (wanted, len(groups))).fetchall()]


def cooccurring_tags(post_ids: Sequence[int], exclude_tag_ids: Sequence[int],
                     category: Optional[str] = None, name_pattern: Optional[str] = None,
                     blacklist_sql: Tuple[str, list] = _NO_FILTER,
                     limit: int = 50) -> List[Dict]:
    """
    Tags appearing on `post_ids`, with the number of those posts carrying each.

    One grouped aggregate over post_tags. Ordered by that count, ties by id.
    """
    if not post_ids:
        return []
    where, params = _tag_filters(category, name_pattern, blacklist_sql)
    query = f"""
        SELECT t.id, t.name, t.category, COUNT(*) AS count
        FROM post_tags pt
        JOIN tags t ON t.id = pt.tag_id
        WHERE pt.post_id IN (SELECT value FROM json_each(?))
          AND t.id NOT IN (SELECT value FROM json_each(?))
          AND {where}
        GROUP BY t.id
        ORDER BY count DESC, t.id ASC
        LIMIT ?
    """
    args = [json.dumps(list(post_ids)), json.dumps(list(exclude_tag_ids))] + params + [limit]
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, args).fetchall()]
