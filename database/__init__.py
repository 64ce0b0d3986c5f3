from .core import (
    DB_FILE,
    TAG_CATEGORIES,
    get_db_connection,
    get_db_reader,
    initialize_database,
)

__all__ = [
    'DB_FILE',
    'TAG_CATEGORIES',
    'get_db_connection',
    'get_db_reader',
    'initialize_database',
]
