"""
Tests for utils/tag_blacklist.py
"""
import pytest

import config
from utils.tag_blacklist import PostHidingFilter, TagBlacklist


@pytest.mark.unit
class TestTagBlacklist:

    def test_default_patterns(self):
        blacklist = TagBlacklist(config.TAG_BLACKLIST)
        assert blacklist.is_blacklisted('hydl-import-time:2024-01-01')
        assert blacklist.is_blacklisted('Site:Pixiv')
        assert blacklist.is_blacklisted('tweet id:12345')
        assert not blacklist.is_blacklisted('site:danbooru')
        assert not blacklist.is_blacklisted('blue_eyes')

    def test_wildcard_anywhere(self):
        blacklist = TagBlacklist(['*:private', 'meta:*:temp'])
        assert blacklist.is_blacklisted('album:private')
        assert blacklist.is_blacklisted('meta:x:temp')
        assert not blacklist.is_blacklisted('private')

    def test_regex_characters_are_literal(self):
        blacklist = TagBlacklist(['a.b*'])
        assert blacklist.is_blacklisted('a.bc')
        assert not blacklist.is_blacklisted('axbc')

    def test_filter(self):
        blacklist = TagBlacklist(['secret:*'])
        tags = [{'name': 'secret:1'}, {'name': 'public'}]
        assert blacklist.filter(tags) == [{'name': 'public'}]

    def test_empty_list(self):
        blacklist = TagBlacklist([])
        assert not blacklist
        assert blacklist.sql_exclusion() == ('1', [])

    def test_sql_exclusion_escapes_patterns(self):
        sql, params = TagBlacklist(['tweet id:*', 'a_b']).sql_exclusion('t.name')
        assert sql.startswith('NOT (')
        assert params == ['tweet id:%', 'a\\_b']


@pytest.mark.integration
class TestSqlAgreesWithPython:

    def test_blacklist_sql(self, seeder, db_connection):
        for name in ['hydl-src-site:x', 'site:pixiv', 'tweet id:1', 'keep_me', 'site_pixiv']:
            seeder.tag(name)
        seeder.commit()

        blacklist = TagBlacklist(config.TAG_BLACKLIST)
        sql, params = blacklist.sql_exclusion('t.name')
        kept = {row['name'] for row in db_connection.execute(f"SELECT name FROM tags t WHERE {sql}", params)}

        assert kept == {'keep_me', 'site_pixiv'}

    def test_post_hiding_sql(self, scenario, db_connection):
        sql, params = PostHidingFilter(['1girl']).sql_condition('p.id')
        visible = {row['id'] for row in db_connection.execute(f"SELECT id FROM posts p WHERE {sql}", params)}

        assert visible == {scenario['P1'], scenario['P3']}
