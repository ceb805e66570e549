"""Shared fixtures for reading list tests."""

import shutil
import tempfile
from pathlib import Path

import pytest

from readinglist.db.models import Book, ReadState
from readinglist.store import BookStore


@pytest.fixture
def store():
    """In-memory store."""
    store = BookStore.in_memory()
    yield store
    store.close()


@pytest.fixture
def temp_library():
    """Create a temporary on-disk library."""
    temp_dir = tempfile.mkdtemp()
    store = BookStore.open(Path(temp_dir))

    yield store

    store.close()
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def populated_store(store):
    """
    Store with books in every read state:

        Dune            finished   Herbert, Frank
        Dune Messiah    to read    Herbert, Frank
        Neuromancer     reading    William Gibson
        Snow Crash      to read
        The Hobbit      finished   Tolkien, J.R.R.
    """
    store.add_book("Dune", ReadState.FINISHED, author="Herbert, Frank", isbn13="9780441172719")
    store.add_book("Dune Messiah", ReadState.TO_READ, author="Herbert, Frank")
    store.add_book("Neuromancer", ReadState.READING, author="William Gibson")
    store.add_book("Snow Crash", ReadState.TO_READ)
    store.add_book("The Hobbit", ReadState.FINISHED, author="Tolkien, J.R.R.")
    return store


@pytest.fixture
def find_book():
    """Look a book up by exact title."""
    def find(store, title):
        return store.session.query(Book).filter_by(title=title).one()
    return find
