"""
Meta Tags - virtual tags computed from post attributes

Meta tags are never stored in the tags table. They are evaluated at query
time from the post's mime type and dimensions, so searching "video" or
"-highres" needs no ingestion support.

Each definition carries two equivalent forms of its condition:
- matches(post): evaluated in Python against a single post
- sql_condition(negated): a boolean SQL fragment over the posts table
  (aliased "p") for use inside larger queries

The SQL fragments are null-safe: a post with unknown dimensions never
matches a positive condition and always matches its negation, exactly like
the Python predicate.
"""

from typing import Callable, Dict, List, Optional

from core.models import derive_orientation
from repositories import post_repository

CATEGORY_TYPE = 'type'
CATEGORY_ORIENTATION = 'orientation'
CATEGORY_RESOLUTION = 'resolution'

HIGHRES_MIN_SIDE = 1920
LOWRES_MAX_SIDE = 500


class MetaTagDefinition:
    """A named virtual tag with a Python predicate and its SQL equivalent."""

    def __init__(self, name: str, description: str, category: str,
                 predicate: Callable[[object], bool], sql: str):
        self.name = name
        self.description = description
        self.category = category
        self._predicate = predicate
        self._sql = sql

    def matches(self, post) -> bool:
        return bool(self._predicate(post))

    def sql_condition(self, negated: bool = False) -> str:
        if negated:
            return f"NOT {self._sql}"
        return self._sql

    def to_dict(self):
        return {
            'name': self.name,
            'description': self.description,
            'category': self.category,
        }

    def __repr__(self):
        return f"MetaTagDefinition({self.name!r})"


def _orientation_of(post) -> Optional[str]:
    orientation = getattr(post, 'orientation', None)
    if orientation is None:
        orientation = derive_orientation(getattr(post, 'width', None), getattr(post, 'height', None))
    return orientation


def _mime_of(post) -> str:
    # LIKE in SQLite is case-insensitive for ASCII, so compare lowercased here
    return (getattr(post, 'mime_type', None) or '').lower()


def _is_highres(post) -> bool:
    width = getattr(post, 'width', None)
    height = getattr(post, 'height', None)
    return ((width is not None and width >= HIGHRES_MIN_SIDE)
            or (height is not None and height >= HIGHRES_MIN_SIDE))


def _is_lowres(post) -> bool:
    width = getattr(post, 'width', None)
    height = getattr(post, 'height', None)
    return (width is not None and height is not None
            and width <= LOWRES_MAX_SIDE and height <= LOWRES_MAX_SIDE)


def _orientation_tag(value: str, description: str) -> MetaTagDefinition:
    return MetaTagDefinition(
        name=value,
        description=description,
        category=CATEGORY_ORIENTATION,
        predicate=lambda post: _orientation_of(post) == value,
        sql=f"IFNULL(p.orientation = '{value}', 0)",
    )


META_TAG_DEFINITIONS: List[MetaTagDefinition] = [
    # Media type
    MetaTagDefinition(
        name='video',
        description='Video files (mp4, webm, etc.)',
        category=CATEGORY_TYPE,
        predicate=lambda post: _mime_of(post).startswith('video/'),
        sql="IFNULL(p.mime_type LIKE 'video/%', 0)",
    ),
    MetaTagDefinition(
        name='animated',
        description='Animated images (GIF, APNG)',
        category=CATEGORY_TYPE,
        predicate=lambda post: getattr(post, 'mime_type', None) in ('image/gif', 'image/apng'),
        sql="IFNULL(p.mime_type IN ('image/gif', 'image/apng'), 0)",
    ),

    # Orientation uses the stored generated column
    _orientation_tag('portrait', 'Taller than wide'),
    _orientation_tag('landscape', 'Wider than tall'),
    _orientation_tag('square', 'Equal width and height'),

    # Resolution
    MetaTagDefinition(
        name='highres',
        description=f'Full HD or higher ({HIGHRES_MIN_SIDE}px+)',
        category=CATEGORY_RESOLUTION,
        predicate=_is_highres,
        sql=(f"(IFNULL(p.width >= {HIGHRES_MIN_SIDE}, 0) "
             f"OR IFNULL(p.height >= {HIGHRES_MIN_SIDE}, 0))"),
    ),
    MetaTagDefinition(
        name='lowres',
        description=f'Low resolution ({LOWRES_MAX_SIDE}px or less)',
        category=CATEGORY_RESOLUTION,
        predicate=_is_lowres,
        sql=(f"(p.width IS NOT NULL AND p.height IS NOT NULL "
             f"AND p.width <= {LOWRES_MAX_SIDE} AND p.height <= {LOWRES_MAX_SIDE})"),
    ),
]

_META_TAGS_BY_NAME: Dict[str, MetaTagDefinition] = {
    definition.name.lower(): definition for definition in META_TAG_DEFINITIONS
}


def is_meta_tag(name: str) -> bool:
    return (name or '').lower() in _META_TAGS_BY_NAME


def get_meta_tag(name: str) -> Optional[MetaTagDefinition]:
    """Definition for a meta tag name (case-insensitive), or None."""
    return _META_TAGS_BY_NAME.get((name or '').lower())


def all_meta_tags() -> List[MetaTagDefinition]:
    return list(META_TAG_DEFINITIONS)


def search_meta_tags(query: str) -> List[MetaTagDefinition]:
    """Meta tags whose name or description contains the query (case-insensitive)."""
    if not query:
        return all_meta_tags()
    needle = query.lower()
    return [
        definition for definition in META_TAG_DEFINITIONS
        if needle in definition.name or needle in definition.description.lower()
    ]


def count_meta_tag(name: str, post_ids: Optional[List[int]] = None) -> int:
    """
    Count posts matching a meta tag.

    Args:
        name: Meta tag name
        post_ids: Optional restriction to these posts

    Returns:
        Number of matching posts, 0 for an unknown name
    """
    definition = get_meta_tag(name)
    if definition is None:
        return 0
    return post_repository.count_posts_where(definition.sql_condition(), post_ids=post_ids)
