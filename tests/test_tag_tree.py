"""
Tests for services/tag_tree_service.py - co-occurrence narrowing
"""
import sqlite3
import pytest
from unittest.mock import patch

from core.cache import LRUCache, TTLCache
from core.tag_id_cache import TagIDCache
from repositories import tag_repository
from services.tag_tree_service import TagTreeNarrower
from utils.tag_blacklist import TagBlacklist


def make_narrower(blacklist=(), category_limits=None):
    return TagTreeNarrower(
        TagIDCache(LRUCache(100)),
        post_ids_cache=LRUCache(100),
        response_cache=TTLCache(100, 300),
        blacklist=TagBlacklist(blacklist),
        category_limits=category_limits or {'ARTIST': 20, 'CHARACTER': 10, 'GENERAL': 50},
    )


def names(result):
    return [tag['name'] for tag in result.tags]


@pytest.mark.integration
class TestNarrowing:

    def test_cooccurring_tags(self, scenario):
        result = make_narrower().tag_tree(['blue_eyes'])

        assert result.post_count == 2
        # solo and 1girl each appear on one of the two posts; ties by id
        assert names(result) == ['solo', '1girl']
        assert all(tag['count'] == 1 for tag in result.tags)
        assert result.selected_tags == ['blue_eyes']

    def test_selected_tags_never_returned(self, scenario):
        result = make_narrower().tag_tree(['solo'])
        assert 'solo' not in names(result)
        assert set(names(result)) == {'blue_eyes', 'red_eyes'}

    def test_counts_ranked(self, seeder):
        for i in range(3):
            seeder.post(f'a{i}', ['base', 'often'])
        seeder.post('b', ['base', 'rare'])
        seeder.post('c', ['often'])
        seeder.commit()

        result = make_narrower().tag_tree(['base'])

        assert result.post_count == 4
        assert [(t['name'], t['count']) for t in result.tags] == [('often', 3), ('rare', 1)]

    def test_intersection_of_selection(self, scenario):
        result = make_narrower().tag_tree(['blue_eyes', 'solo'])
        assert result.post_count == 1
        assert result.tags == []

    def test_unknown_selection_is_empty(self, scenario):
        result = make_narrower().tag_tree(['blue_eyes', 'no_such_tag'])
        assert result.tags == []
        assert result.post_count == 0
        assert result.error is None

    def test_category_and_text_filter(self, seeder):
        seeder.post('a', ['base', ('kiri', 'ARTIST'), 'kiwi', 'apple'])
        seeder.commit()
        narrower = make_narrower()

        assert names(narrower.tag_tree(['base'], category='artist')) == ['kiri']
        assert names(narrower.tag_tree(['base'], text_filter='KI')) == ['kiri', 'kiwi']

    def test_blacklisted_candidates_hidden(self, scenario):
        result = make_narrower(blacklist=['1g*']).tag_tree(['blue_eyes'])
        assert names(result) == ['solo']


@pytest.mark.integration
class TestUnfiltered:

    def test_top_tags(self, scenario):
        result = make_narrower().tag_tree([])

        assert result.post_count == 3
        assert names(result) == ['blue_eyes', 'solo', '1girl', 'red_eyes']

    def test_balanced_caps(self, seeder):
        for i in range(5):
            seeder.post(f'g{i}', [f'general_{i}', (f'artist_{i}', 'ARTIST')])
        seeder.commit()

        narrower = make_narrower(category_limits={'ARTIST': 2, 'GENERAL': 3})
        result = narrower.tag_tree([])
        categories = [tag['category'] for tag in result.tags]

        assert categories == ['ARTIST', 'ARTIST', 'GENERAL', 'GENERAL', 'GENERAL']

    def test_category_limit_honoured(self, seeder):
        for i in range(5):
            seeder.post(f'g{i}', [f'general_{i}'])
        seeder.commit()

        result = make_narrower().tag_tree([], category='GENERAL', limit=2)
        assert len(result.tags) == 2


@pytest.mark.integration
class TestCaching:

    def test_response_cached(self, scenario):
        narrower = make_narrower()
        first = narrower.tag_tree(['blue_eyes'])

        with patch.object(tag_repository, 'cooccurring_tags') as spy:
            second = narrower.tag_tree(['blue_eyes'])
            spy.assert_not_called()

        assert second.tags == first.tags
        assert second.post_count == first.post_count

    def test_post_id_set_shared_across_filters(self, scenario):
        narrower = make_narrower()
        narrower.tag_tree(['solo', 'blue_eyes'])

        with patch.object(tag_repository, 'post_ids_with_all_tag_groups') as spy:
            narrower.tag_tree(['blue_eyes', 'solo'], category='GENERAL')
            spy.assert_not_called()

    def test_failure_not_cached(self, scenario):
        narrower = make_narrower()
        with patch.object(tag_repository, 'cooccurring_tags',
                          side_effect=sqlite3.OperationalError('database is locked')):
            failed = narrower.tag_tree(['blue_eyes'])

        assert failed.error == "Failed to load tag tree"
        assert failed.tags == []
        assert names(narrower.tag_tree(['blue_eyes'])) == ['solo', '1girl']


@pytest.mark.integration
class TestAutocomplete:

    def test_by_post_count(self, scenario):
        result = make_narrower().autocomplete('eyes')
        assert names(result) == ['blue_eyes', 'red_eyes']

    def test_narrowed_by_selection(self, scenario):
        result = make_narrower().autocomplete('eyes', selected=['solo'])
        assert names(result) == ['blue_eyes', 'red_eyes']
        result = make_narrower().autocomplete('eyes', selected=['1girl'])
        assert names(result) == ['blue_eyes']

    def test_like_metacharacters_are_literal(self, seeder):
        seeder.post('a', ['100%_done', '100x_done'])
        seeder.commit()
        assert names(make_narrower().autocomplete('0%')) == ['100%_done']

    def test_empty_query(self, scenario):
        with patch.object(tag_repository, 'top_tags') as spy:
            result = make_narrower().autocomplete('  ')
            spy.assert_not_called()
        assert result.tags == []

    def test_to_dict(self, scenario):
        data = make_narrower().autocomplete('red').to_dict()
        assert data['tags'][0]['name'] == 'red_eyes'
        assert data['postCount'] == 3
        assert 'error' not in data
