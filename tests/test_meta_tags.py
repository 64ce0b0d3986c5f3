"""
Tests for core/meta_tags.py - virtual tags from post attributes
"""
import pytest

from core import meta_tags
from core.meta_tags import (
    all_meta_tags,
    count_meta_tag,
    get_meta_tag,
    is_meta_tag,
    search_meta_tags,
)
from core.models import Post, derive_orientation

# (key, width, height, mime_type)
SAMPLE_POSTS = [
    ('wide', 1920, 1080, 'image/jpeg'),
    ('tall', 600, 2400, 'image/png'),
    ('tiny_square', 300, 300, 'image/gif'),
    ('edge_lowres', 500, 500, 'image/apng'),
    ('just_above', 501, 400, 'image/webp'),
    ('clip', 1280, 720, 'video/mp4'),
    ('upper_mime', 640, 480, 'VIDEO/WEBM'),
    ('unknown_size', None, None, 'video/webm'),
    ('half_known', 2000, None, 'image/png'),
]


@pytest.mark.unit
class TestRegistry:

    def test_lookup_is_case_insensitive(self):
        assert is_meta_tag('VIDEO')
        assert get_meta_tag('Portrait').name == 'portrait'
        assert not is_meta_tag('blue_eyes')

    def test_all_entries(self):
        names = [definition.name for definition in all_meta_tags()]
        assert names == ['video', 'animated', 'portrait', 'landscape', 'square', 'highres', 'lowres']

    def test_search_matches_name_and_description(self):
        assert [d.name for d in search_meta_tags('res')] == ['highres', 'lowres']
        assert [d.name for d in search_meta_tags('gif')] == ['animated']
        assert len(search_meta_tags('')) == len(all_meta_tags())

    def test_to_dict(self):
        assert get_meta_tag('square').to_dict() == {
            'name': 'square',
            'description': 'Equal width and height',
            'category': 'orientation',
        }

    def test_derive_orientation(self):
        assert derive_orientation(10, 5) == 'landscape'
        assert derive_orientation(5, 10) == 'portrait'
        assert derive_orientation(5, 5) == 'square'
        assert derive_orientation(None, 5) is None


@pytest.mark.unit
class TestPredicates:

    def test_highres_needs_one_side(self):
        highres = get_meta_tag('highres')
        assert highres.matches(Post(1, 'h', 1920, 10, 'image/png'))
        assert highres.matches(Post(1, 'h', None, 1920, 'image/png'))
        assert not highres.matches(Post(1, 'h', 1919, 1919, 'image/png'))

    def test_lowres_needs_both_sides_known(self):
        lowres = get_meta_tag('lowres')
        assert lowres.matches(Post(1, 'h', 500, 500, 'image/png'))
        assert not lowres.matches(Post(1, 'h', 500, None, 'image/png'))
        assert not lowres.matches(Post(1, 'h', 501, 100, 'image/png'))

    def test_orientation_unknown_matches_nothing(self):
        post = Post(1, 'h', None, None, 'image/png')
        for name in ('portrait', 'landscape', 'square'):
            assert not get_meta_tag(name).matches(post)


@pytest.mark.integration
class TestSqlMatchesPredicate:
    """The SQL form and the Python form must select exactly the same posts."""

    @pytest.fixture
    def sample_posts(self, seeder, db_connection):
        for key, width, height, mime_type in SAMPLE_POSTS:
            seeder.post(key, width=width, height=height, mime_type=mime_type)
        seeder.commit()
        rows = db_connection.execute(
            "SELECT id, hash, width, height, mime_type, orientation FROM posts"
        ).fetchall()
        return [Post.from_row(row) for row in rows]

    @pytest.mark.parametrize('name', [d.name for d in meta_tags.META_TAG_DEFINITIONS])
    @pytest.mark.parametrize('negated', [False, True])
    def test_equivalence(self, db_connection, sample_posts, name, negated):
        definition = get_meta_tag(name)

        sql_ids = {
            row['id'] for row in db_connection.execute(
                f"SELECT p.id FROM posts p WHERE {definition.sql_condition(negated)}"
            )
        }
        python_ids = {
            post.id for post in sample_posts
            if definition.matches(post) != negated
        }

        assert sql_ids == python_ids

    def test_negation_partitions_posts(self, db_connection, sample_posts):
        for definition in all_meta_tags():
            positive = db_connection.execute(
                f"SELECT COUNT(*) FROM posts p WHERE {definition.sql_condition()}"
            ).fetchone()[0]
            negative = db_connection.execute(
                f"SELECT COUNT(*) FROM posts p WHERE {definition.sql_condition(negated=True)}"
            ).fetchone()[0]
            assert positive + negative == len(sample_posts)

    def test_count_meta_tag(self, sample_posts):
        assert count_meta_tag('video') == 3
        assert count_meta_tag('not_a_meta_tag') == 0

        wide = next(post for post in sample_posts if post.width == 1920)
        assert count_meta_tag('landscape', post_ids=[wide.id]) == 1
        assert count_meta_tag('portrait', post_ids=[wide.id]) == 0

    def test_count_meta_tag_empty_restriction(self, sample_posts):
        assert count_meta_tag('video') > 0
        assert count_meta_tag('video', post_ids=[]) == 0
