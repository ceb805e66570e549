"""
Database module for the reading list.

Provides the SQLAlchemy models and engine/session helpers.
"""

from .models import Base, Book, Author, ReadState, split_author_name
from .session import (
    create_db_engine, library_db_url, make_session_factory, session_scope
)

__all__ = [
    'Base',
    'Book',
    'Author',
    'ReadState',
    'split_author_name',
    'create_db_engine',
    'library_db_url',
    'make_session_factory',
    'session_scope',
]
