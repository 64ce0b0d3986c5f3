"""
BooruSearch Test Suite

- test_cache.py, test_tag_id_cache.py, test_wildcard.py, test_meta_tags.py,
  test_predicates.py, test_tag_blacklist.py: core building blocks
- test_post_search.py, test_tag_tree.py, test_note_search.py,
  test_tag_browser.py, test_search_engine.py: services against a seeded store
- test_api.py, test_decorators.py, test_api_responses.py: HTTP layer
- conftest.py: shared fixtures and the store seeder
"""
