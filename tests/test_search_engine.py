"""
Tests for services/search_engine.py and events/cache_events.py
"""
import pytest
from unittest.mock import MagicMock, patch

from events.cache_events import (
    clear_all_callbacks,
    register_cache_invalidation_callback,
    trigger_cache_invalidation,
    unregister_cache_invalidation_callback,
)
from repositories import tag_repository
from services import search_engine as search_engine_module


@pytest.fixture(autouse=True)
def clean_callbacks():
    clear_all_callbacks()
    search_engine_module.reset_search_engine()
    yield
    clear_all_callbacks()
    search_engine_module.reset_search_engine()


@pytest.mark.unit
class TestCacheEvents:

    def test_trigger_runs_callbacks(self):
        first, second = MagicMock(), MagicMock()
        register_cache_invalidation_callback(first)
        register_cache_invalidation_callback(second)
        register_cache_invalidation_callback(first)

        assert trigger_cache_invalidation() == 2
        first.assert_called_once()
        second.assert_called_once()

    def test_failing_callback_does_not_stop_others(self):
        after = MagicMock()
        register_cache_invalidation_callback(MagicMock(side_effect=RuntimeError('boom')))
        register_cache_invalidation_callback(after)

        assert trigger_cache_invalidation() == 1
        after.assert_called_once()

    def test_unregister(self):
        callback = MagicMock()
        register_cache_invalidation_callback(callback)
        unregister_cache_invalidation_callback(callback)

        assert trigger_cache_invalidation() == 0
        callback.assert_not_called()


@pytest.mark.integration
class TestInvalidation:

    def test_invalidate_all_empties_every_tier(self, engine, scenario):
        engine.search_posts(['blue*', 'solo'])
        engine.tag_tree(['blue_eyes'])
        engine.list_tags()
        engine.category_counts()
        assert all(engine.cache_stats()[tier] > 0
                   for tier in ('tag_ids', 'wildcards', 'post_ids', 'tree', 'tags_page', 'category_counts'))

        engine.invalidate_all()
        engine.invalidate_all()

        assert set(engine.cache_stats().values()) == {0}

    def test_new_tag_visible_after_invalidation(self, engine, seeder, scenario):
        assert [t['name'] for t in engine.tag_tree([]).tags] == ['blue_eyes', 'solo', '1girl', 'red_eyes']

        seeder.post('P4', ['green_eyes', 'solo'])
        seeder.commit()

        # Still served from cache until the sync job announces the change
        assert 'green_eyes' not in [t['name'] for t in engine.tag_tree([]).tags]
        engine.invalidate_all()
        assert 'green_eyes' in [t['name'] for t in engine.tag_tree([]).tags]

    def test_global_engine_registers_callback(self, db_connection):
        engine = search_engine_module.get_search_engine()
        assert search_engine_module.get_search_engine() is engine

        with patch.object(engine.caches, 'clear_all') as clear_all:
            assert trigger_cache_invalidation() == 1
            clear_all.assert_called_once()

        engine.composer.shutdown()


@pytest.mark.integration
class TestFacade:

    def test_meta_tags(self, engine):
        assert [m['name'] for m in engine.meta_tags('scape')] == ['landscape']

    def test_autocomplete_uses_shared_resolver(self, engine, scenario):
        engine.search_posts(['solo'])
        with patch.object(tag_repository, 'find_tags_by_names') as spy:
            engine.autocomplete('eyes', selected=['solo'])
            spy.assert_not_called()
