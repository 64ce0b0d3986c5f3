"""
Pytest fixtures and test configuration
"""
import pytest
import os
import hashlib
import tempfile
import shutil

# Set testing environment variables BEFORE importing app modules
os.environ['TESTING'] = 'true'

import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import config
import database
from core.cache import SearchCaches
from events.cache_events import clear_all_callbacks
from services.search_engine import SearchEngine, reset_search_engine
from utils.tag_blacklist import PostHidingFilter, TagBlacklist


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_db_path(temp_dir):
    """Path to test database file."""
    return os.path.join(temp_dir, 'test_booru.db')


@pytest.fixture
def db_connection(test_db_path, monkeypatch):
    """
    Create a test database connection.
    Uses monkeypatch to override the DB_FILE path.
    """
    import database.core
    monkeypatch.setattr(database.core, 'DB_FILE', test_db_path)

    database.initialize_database()

    conn = database.get_db_connection()
    yield conn

    conn.close()


class StoreSeeder:
    """Writes posts, tags and notes the way the ingestion pipeline would."""

    def __init__(self, conn):
        self.conn = conn
        self._clock = 0

    def tag(self, name, category='GENERAL'):
        self.conn.execute(
            "INSERT OR IGNORE INTO tags (name, category) VALUES (?, ?)", (name, category)
        )
        row = self.conn.execute(
            "SELECT id FROM tags WHERE name = ? AND category = ?", (name, category)
        ).fetchone()
        return row['id']

    def post(self, key, tags=(), width=1000, height=800, mime_type='image/png'):
        """
        Insert a post. `tags` holds names or (name, category) pairs.
        Each post is imported one minute after the previous one.
        """
        self._clock += 1
        imported_at = f"2024-01-01 {self._clock // 60:02d}:{self._clock % 60:02d}:00"
        post_hash = hashlib.sha256(str(key).encode()).hexdigest()
        cur = self.conn.execute(
            "INSERT INTO posts (hash, width, height, mime_type, imported_at) VALUES (?, ?, ?, ?, ?)",
            (post_hash, width, height, mime_type, imported_at),
        )
        post_id = cur.lastrowid
        for entry in tags:
            name, category = entry if isinstance(entry, tuple) else (entry, 'GENERAL')
            self.conn.execute(
                "INSERT OR IGNORE INTO post_tags (post_id, tag_id) VALUES (?, ?)",
                (post_id, self.tag(name, category)),
            )
        return post_id

    def note(self, post_id, content, name='note'):
        content_hash = hashlib.sha256(content.encode()).hexdigest()
        cur = self.conn.execute(
            "INSERT INTO notes (post_id, name, content, content_hash) VALUES (?, ?, ?, ?)",
            (post_id, name, content, content_hash),
        )
        return cur.lastrowid

    def commit(self):
        """Recompute tags.post_count (the stats job) and commit."""
        self.conn.execute("""
            UPDATE tags SET post_count = (
                SELECT COUNT(*) FROM post_tags pt WHERE pt.tag_id = tags.id
            )
        """)
        self.conn.commit()


@pytest.fixture
def seeder(db_connection):
    return StoreSeeder(db_connection)


@pytest.fixture
def scenario(seeder):
    """
    The reference three-post store:
        P1 {blue_eyes, solo}, P2 {blue_eyes, 1girl}, P3 {red_eyes, solo}
    P3 is the newest import.
    """
    ids = {
        'P1': seeder.post('P1', ['blue_eyes', 'solo'], width=1920, height=1080),
        'P2': seeder.post('P2', ['blue_eyes', '1girl'], width=400, height=600, mime_type='video/mp4'),
        'P3': seeder.post('P3', ['red_eyes', 'solo'], width=500, height=500, mime_type='image/gif'),
    }
    seeder.commit()
    return ids


def make_engine(blacklist=(), hidden=()):
    return SearchEngine(
        caches=SearchCaches(),
        blacklist=TagBlacklist(blacklist),
        post_hiding=PostHidingFilter(hidden),
    )


@pytest.fixture
def engine():
    """Isolated engine with no blacklist and no hidden posts."""
    engine = make_engine()
    yield engine
    engine.composer.shutdown()


@pytest.fixture
def app(test_db_path, monkeypatch):
    """Create Quart app configured for testing."""
    monkeypatch.setattr(config, 'DATABASE_PATH', test_db_path)
    monkeypatch.setattr(config, 'RELOAD_SECRET', 'test-secret')
    import database.core
    monkeypatch.setattr(database.core, 'DB_FILE', test_db_path)

    reset_search_engine()
    clear_all_callbacks()

    from app import create_app
    app = create_app()
    app.config['TESTING'] = True

    yield app

    reset_search_engine()
    clear_all_callbacks()


@pytest.fixture
def client(app):
    """Quart test client."""
    return app.test_client()
