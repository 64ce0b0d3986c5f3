"""
Centralized configuration for all modules
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Application name (shown in logs and API responses)
APP_NAME = os.environ.get('APP_NAME', 'BooruSearch')


def _parse_list(value):
    """Split a comma-separated setting into trimmed, lowercased, non-empty entries."""
    return [part.strip().lower() for part in (value or '').split(',') if part.strip()]


def _parse_limits(value):
    """Parse "CATEGORY:limit,..." into an ordered dict of per-category caps."""
    limits = {}
    for entry in (value or '').split(','):
        if ':' not in entry:
            continue
        category, limit = entry.split(':', 1)
        try:
            limits[category.strip().upper()] = int(limit)
        except ValueError:
            continue
    return limits


# ==================== SERVER ====================

HOST = os.environ.get('HOST', '0.0.0.0')
PORT = int(os.environ.get('PORT', 5000))

# Log level for the application logger (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

# System control secret (required by admin endpoints such as cache invalidation)
RELOAD_SECRET = os.environ.get('RELOAD_SECRET', 'change-this-secret')

# ==================== DATABASE ====================

# Populated by the ingestion pipeline; the search engine only reads it
DATABASE_PATH = os.environ.get('DATABASE_PATH', './booru.db')

# SQLite cache size in MB (default 64MB)
DB_CACHE_SIZE_MB = int(os.environ.get('DB_CACHE_SIZE_MB', 64))

# Memory-mapped I/O size in MB (default 256MB)
DB_MMAP_SIZE_MB = int(os.environ.get('DB_MMAP_SIZE_MB', 256))

# Seconds to wait on a locked database before the query fails
DB_BUSY_TIMEOUT = float(os.environ.get('DB_BUSY_TIMEOUT', 10))

# ==================== PAGINATION ====================

POSTS_PER_PAGE = int(os.environ.get('POSTS_PER_PAGE', 48))
MAX_POSTS_PER_PAGE = 100
MAX_PAGE = 10000
TAGS_PER_PAGE = int(os.environ.get('TAGS_PER_PAGE', 100))
MAX_TAGS_PER_PAGE = 200

# ==================== WILDCARDS ====================

# Maximum number of tags a single wildcard pattern may expand to
WILDCARD_TAG_LIMIT = int(os.environ.get('WILDCARD_TAG_LIMIT', 500))

# Patterns with fewer literal (non-*) characters are rejected as too broad
WILDCARD_MIN_LITERAL_CHARS = int(os.environ.get('WILDCARD_MIN_LITERAL_CHARS', 2))

# ==================== CACHES ====================

# Tag name -> tag ids (LRU, flushed on invalidation)
TAG_ID_CACHE_SIZE = int(os.environ.get('TAG_ID_CACHE_SIZE', 10000))

# Sorted tag id tuple -> post ids carrying all of them (LRU)
POST_IDS_CACHE_SIZE = int(os.environ.get('POST_IDS_CACHE_SIZE', 500))

# Wildcard pattern -> resolved tags (LRU + TTL, seconds)
WILDCARD_CACHE_SIZE = int(os.environ.get('WILDCARD_CACHE_SIZE', 1000))
WILDCARD_CACHE_TTL = int(os.environ.get('WILDCARD_CACHE_TTL', 5 * 60))

# Tag tree responses (LRU + TTL, seconds)
TREE_CACHE_SIZE = int(os.environ.get('TREE_CACHE_SIZE', 200))
TREE_CACHE_TTL = int(os.environ.get('TREE_CACHE_TTL', 5 * 60))

# Tag browser listing pages and category counts (long TTL, cleared on sync)
TAGS_PAGE_CACHE_SIZE = int(os.environ.get('TAGS_PAGE_CACHE_SIZE', 50))
TAGS_PAGE_CACHE_TTL = int(os.environ.get('TAGS_PAGE_CACHE_TTL', 24 * 60 * 60))

# ==================== TAG TREE ====================

TAG_CATEGORIES = ['ARTIST', 'COPYRIGHT', 'CHARACTER', 'GENERAL', 'META']

# Per-category caps for the unfiltered tree, so GENERAL cannot crowd out the rest
TREE_CATEGORY_LIMITS = _parse_limits(
    os.environ.get('TREE_CATEGORY_LIMITS', 'ARTIST:20,COPYRIGHT:10,CHARACTER:10,GENERAL:50,META:10')
)

TREE_DEFAULT_LIMIT = 50
TREE_MAX_LIMIT = 100

# ==================== TAG BLACKLIST ====================

# Import bookkeeping tags that should never show up in suggestion lists
DEFAULT_TAG_BLACKLIST = 'hydl-src-site:*,site:pixiv,hydl-sub-id:*,hydl-import-time:*,tweet id:*'

# Hidden from tag lists and suggestions only; posts carrying them still match searches
TAG_BLACKLIST = _parse_list(DEFAULT_TAG_BLACKLIST + ',' + os.environ.get('TAG_BLACKLIST', ''))

# Posts carrying any of these tags are removed from every search result
HIDE_POSTS_WITH_TAGS = _parse_list(os.environ.get('HIDE_POSTS_WITH_TAGS', ''))

# ==================== NOTE SEARCH ====================

NOTE_SEARCH_MIN_LENGTH = 2

# Maximum number of tokens in a highlighted snippet
NOTE_SNIPPET_TOKENS = int(os.environ.get('NOTE_SNIPPET_TOKENS', 24))
