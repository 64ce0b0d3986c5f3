# database/core.py
import sqlite3
from contextlib import contextmanager
from typing import Generator

import config

DB_FILE = config.DATABASE_PATH

TAG_CATEGORIES = ('ARTIST', 'COPYRIGHT', 'CHARACTER', 'GENERAL', 'META')


def get_db_connection():
    """Create a database connection with optimized read settings."""
    # Wait for locks up to the configured timeout instead of failing immediately
    conn = sqlite3.connect(DB_FILE, check_same_thread=False, timeout=config.DB_BUSY_TIMEOUT)

    conn.execute("PRAGMA foreign_keys = ON")

    # WAL mode lets readers run alongside the ingestion writer
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")

    # Negative value means KB
    cache_size_kb = -1 * config.DB_CACHE_SIZE_MB * 1024
    conn.execute(f"PRAGMA cache_size = {cache_size_kb}")

    mmap_size_bytes = config.DB_MMAP_SIZE_MB * 1024 * 1024
    conn.execute(f"PRAGMA mmap_size = {mmap_size_bytes}")

    conn.execute("PRAGMA temp_store = MEMORY")

    # Enable row factory for dict-like access
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db_reader() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for a short-lived, read-only unit of work.

    Every search query gets its own connection so the post list and the
    total count can run on separate threads. The connection is always
    closed, even when the query raises.

    Usage:
        with get_db_reader() as conn:
            conn.execute("SELECT COUNT(*) FROM posts").fetchone()
    """
    conn = get_db_connection()
    try:
        yield conn
    finally:
        conn.close()


def initialize_database():
    """Create the database and tables if they don't exist."""
    with get_db_connection() as conn:
        cur = conn.cursor()

        # Posts; orientation is derived from the dimensions and stored for indexing
        cur.execute("""
        CREATE TABLE IF NOT EXISTS posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            hash TEXT NOT NULL UNIQUE CHECK(length(hash) = 64),
            width INTEGER,
            height INTEGER,
            mime_type TEXT NOT NULL,
            imported_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            orientation TEXT GENERATED ALWAYS AS (
                CASE
                    WHEN width IS NULL OR height IS NULL THEN NULL
                    WHEN width > height THEN 'landscape'
                    WHEN height > width THEN 'portrait'
                    ELSE 'square'
                END
            ) STORED
        )
        """)

        # Tags; the same name may exist once per category
        cur.execute("""
        CREATE TABLE IF NOT EXISTS tags (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'GENERAL'
                CHECK(category IN ('ARTIST', 'COPYRIGHT', 'CHARACTER', 'GENERAL', 'META')),
            post_count INTEGER NOT NULL DEFAULT 0,
            UNIQUE(name, category)
        )
        """)

        # Post-to-Tag mapping table
        cur.execute("""
        CREATE TABLE IF NOT EXISTS post_tags (
            post_id INTEGER NOT NULL,
            tag_id INTEGER NOT NULL,
            FOREIGN KEY (post_id) REFERENCES posts (id) ON DELETE CASCADE,
            FOREIGN KEY (tag_id) REFERENCES tags (id) ON DELETE CASCADE,
            PRIMARY KEY (post_id, tag_id)
        )
        """)

        # Notes attached to posts; content_hash is the sha256 of content
        cur.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            post_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            content TEXT NOT NULL,
            content_hash TEXT NOT NULL,
            FOREIGN KEY (post_id) REFERENCES posts (id) ON DELETE CASCADE,
            UNIQUE(post_id, name)
        )
        """)

        cur.execute("CREATE INDEX IF NOT EXISTS idx_posts_imported_at ON posts(imported_at)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_posts_mime_type ON posts(mime_type)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_posts_orientation ON posts(orientation)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_tags_name ON tags(name COLLATE NOCASE)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_tags_category_count ON tags(category, post_count)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_tags_post_count ON tags(post_count)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_post_tags_tag ON post_tags(tag_id, post_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_notes_post ON notes(post_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_notes_content_hash ON notes(content_hash)")

        # Full-text index over note content, kept in sync by triggers
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='notes_fts'")
        if cur.fetchone() is None:
            cur.execute("""
            CREATE VIRTUAL TABLE notes_fts USING fts5(
                content,
                content='notes',
                content_rowid='id',
                tokenize='unicode61 remove_diacritics 2'
            )
            """)
            cur.execute("INSERT INTO notes_fts(notes_fts) VALUES ('rebuild')")

        cur.execute("""
        CREATE TRIGGER IF NOT EXISTS notes_fts_insert AFTER INSERT ON notes
        BEGIN
            INSERT INTO notes_fts(rowid, content) VALUES (new.id, new.content);
        END
        """)
        cur.execute("""
        CREATE TRIGGER IF NOT EXISTS notes_fts_delete AFTER DELETE ON notes
        BEGIN
            INSERT INTO notes_fts(notes_fts, rowid, content) VALUES ('delete', old.id, old.content);
        END
        """)
        cur.execute("""
        CREATE TRIGGER IF NOT EXISTS notes_fts_update AFTER UPDATE OF content ON notes
        BEGIN
            INSERT INTO notes_fts(notes_fts, rowid, content) VALUES ('delete', old.id, old.content);
            INSERT INTO notes_fts(rowid, content) VALUES (new.id, new.content);
        END
        """)

        conn.commit()
