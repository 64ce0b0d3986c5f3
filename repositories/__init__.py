"""
Repository modules for the data access layer.

Every SQL statement the search engine runs lives in one of these modules.
They are read-only: the tables are written by the ingestion pipeline.
"""

from . import note_repository, post_repository, tag_repository

__all__ = [
    'note_repository',
    'post_repository',
    'tag_repository',
]
