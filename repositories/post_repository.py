"""
Post queries.

Every query takes a WHERE fragment over the posts table aliased as "p",
compiled by core.predicates, together with its parameters.
"""

import json
from typing import Dict, List, Optional, Sequence

from database import get_db_reader

POST_COLUMNS = "p.id, p.hash, p.width, p.height, p.mime_type, p.imported_at, p.orientation"


def find_posts(where_sql: str, params: Sequence, limit: int, offset: int) -> List[Dict]:
    """One page of matching posts, newest import first."""
    query = f"""
        SELECT {POST_COLUMNS}
        FROM posts p
        WHERE {where_sql}
        ORDER BY p.imported_at DESC, p.id DESC
        LIMIT ? OFFSET ?
    """
    with get_db_reader() as conn:
        return [dict(row) for row in conn.execute(query, list(params) + [limit, offset]).fetchall()]


def count_posts(where_sql: str, params: Sequence) -> int:
    with get_db_reader() as conn:
        return conn.execute(f"SELECT COUNT(*) FROM posts p WHERE {where_sql}", list(params)).fetchone()[0]


def count_all_posts() -> int:
    with get_db_reader() as conn:
        return conn.execute("SELECT COUNT(*) FROM posts").fetchone()[0]


def count_posts_where(condition_sql: str, post_ids: Optional[Sequence[int]] = None) -> int:
    """Count posts matching a parameterless condition, optionally within `post_ids`."""
    query = f"SELECT COUNT(*) FROM posts p WHERE {condition_sql}"
    params: list = []
    if post_ids is not None:
        if not post_ids:
            return 0
        query += " AND p.id IN (SELECT value FROM json_each(?))"
        params.append(json.dumps(list(post_ids)))
    with get_db_reader() as conn:
        return conn.execute(query, params).fetchone()[0]

