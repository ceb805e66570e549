"""
Record store for books and authors.

RecordStore is the interface the list coordinator depends on. BookStore
implements it on SQLAlchemy + SQLite.

Usage:
    store = BookStore.open("/path/to/library")
    book = store.add_book("Dune", author="Herbert, Frank")
    results = store.query(build_query({ReadState.TO_READ, ReadState.READING}))
    store.close()
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from itertools import groupby
from pathlib import Path
from typing import Callable, Iterator, List, Optional
import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db.models import Author, Book, ReadState, split_author_name
from .db.session import create_db_engine, library_db_url, make_session_factory
from .hooks import HookRegistry
from .query import Query

logger = logging.getLogger(__name__)

STORE_CHANGED = 'store_changed'


@dataclass(frozen=True)
class StoreChange:
    """Describes one mutation of the store."""
    kind: str  # added, updated, deleted
    book_id: int


@dataclass(frozen=True)
class IndexPath:
    """Row locator within a result set."""
    section: int
    row: int


@dataclass
class Section:
    """Books sharing one read state, in display order."""
    state: ReadState
    books: List[Book] = field(default_factory=list)

    def __len__(self):
        return len(self.books)


@dataclass
class ResultSet:
    """Ordered, sectioned result of a query."""
    query: Query
    sections: List[Section] = field(default_factory=list)

    def __len__(self):
        return sum(len(s) for s in self.sections)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def books(self) -> Iterator[Book]:
        for section in self.sections:
            yield from section.books

    def index_path_for(self, book_id: int) -> Optional[IndexPath]:
        for section_index, section in enumerate(self.sections):
            for row, book in enumerate(section.books):
                if book.id == book_id:
                    return IndexPath(section_index, row)
        return None

    def book_at(self, index_path: IndexPath) -> Book:
        return self.sections[index_path.section].books[index_path.row]

    @classmethod
    def from_books(cls, query: Query, books: List[Book]) -> 'ResultSet':
        """Group books, already ordered by read state, into sections."""
        sections = [
            Section(state, list(group))
            for state, group in groupby(books, key=lambda b: b.read_state)
        ]
        return cls(query=query, sections=sections)


class RecordStore(ABC):
    """Queryable, observable store of books."""

    @abstractmethod
    def query(self, query: Query) -> ResultSet:
        """Run a query and remember the result for index_path_for()."""

    @abstractmethod
    def get_book(self, book_id: int) -> Optional[Book]:
        """Look a book up by id; None if it does not exist."""

    @abstractmethod
    def delete(self, book: Book) -> None:
        """Delete a book and notify observers."""

    @abstractmethod
    def index_path_for(self, book: Book) -> Optional[IndexPath]:
        """Locate a book in the most recent result set."""

    @abstractmethod
    def notify_on_change(self, callback: Callable[[StoreChange], None]) -> None:
        """Register a callback run after every mutation."""

    @abstractmethod
    def remove_change_callback(self, callback: Callable[[StoreChange], None]) -> bool:
        """Unregister a change callback."""


_ISBN_SEPARATORS = re.compile(r'[\s-]')


def normalize_isbn13(isbn: str) -> str:
    """
    Strip separators from an ISBN-13 and verify its check digit.

    Raises:
        ValueError: If the value is not a valid ISBN-13
    """
    digits = _ISBN_SEPARATORS.sub('', isbn)
    if len(digits) != 13 or not digits.isdigit():
        raise ValueError(f"ISBN-13 must have 13 digits: {isbn!r}")

    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(digits))
    if total % 10 != 0:
        raise ValueError(f"Invalid ISBN-13 check digit: {isbn!r}")
    return digits


class BookStore(RecordStore):
    """SQLite-backed record store."""

    def __init__(self, session: Session, library_path: Optional[Path] = None):
        self.session = session
        self.library_path = Path(library_path) if library_path else None
        self.hooks = HookRegistry()
        self._last_results: Optional[ResultSet] = None

    @classmethod
    def open(cls, library_path: Path, echo: bool = False) -> 'BookStore':
        """
        Open or create a library.

        Args:
            library_path: Path to library directory
            echo: If True, log all SQL statements

        Returns:
            BookStore instance
        """
        library_path = Path(library_path)
        engine = create_db_engine(library_db_url(library_path), echo=echo)
        session = make_session_factory(engine)()

        logger.info(f"Opened library at {library_path}")
        return cls(session, library_path)

    @classmethod
    def in_memory(cls) -> 'BookStore':
        """Open a throwaway store backed by an in-memory database."""
        engine = create_db_engine()
        return cls(make_session_factory(engine)())

    def close(self):
        """Close the session and release the engine."""
        if self.session is None:
            return
        engine = self.session.get_bind()
        self.session.close()
        engine.dispose()
        self.session = None
        self.hooks.clear()
        logger.info("Closed library")

    def _require_open(self) -> Session:
        if self.session is None:
            raise RuntimeError("Store is closed")
        return self.session

    # =========================================================================
    # Queries
    # =========================================================================

    def query(self, query: Query) -> ResultSet:
        session = self._require_open()
        books = (
            session.query(Book)
            .filter(query.criterion())
            .order_by(Book.read_state, Book.sort_index, Book.title, Book.id)
            .all()
        )
        self._last_results = ResultSet.from_books(query, books)
        logger.debug(f"Query [{query}] returned {len(books)} books")
        return self._last_results

    def get_book(self, book_id: int) -> Optional[Book]:
        return self._require_open().get(Book, book_id)

    def get_book_by_isbn(self, isbn: str) -> Optional[Book]:
        return self._require_open().query(Book).filter_by(isbn13=normalize_isbn13(isbn)).first()

    def index_path_for(self, book: Book) -> Optional[IndexPath]:
        if self._last_results is None:
            return None
        return self._last_results.index_path_for(book.id)

    def count(self, state: Optional[ReadState] = None) -> int:
        query = self._require_open().query(Book)
        if state is not None:
            query = query.filter(Book.read_state == state)
        return query.count()

    # =========================================================================
    # Mutations
    # =========================================================================

    def get_or_create_author(self, last_name: str, first_names: Optional[str] = None) -> Author:
        session = self._require_open()
        author = session.query(Author).filter_by(
            last_name=last_name, first_names=first_names
        ).first()
        if author is None:
            author = Author(last_name=last_name, first_names=first_names)
            session.add(author)
            session.flush()
        return author

    def add_book(
        self,
        title: str,
        read_state: ReadState = ReadState.TO_READ,
        author: Optional[str] = None,
        isbn13: Optional[str] = None,
        sort_index: Optional[int] = None,
    ) -> Book:
        """
        Add a book.

        Args:
            title: Book title
            read_state: Initial read state
            author: Author name, "Last, First" or "First Last"
            isbn13: Optional ISBN-13; separators are allowed
            sort_index: Optional manual position within its section

        Returns:
            Created Book

        Raises:
            ValueError: On blank title, invalid or duplicate ISBN
        """
        session = self._require_open()
        title = (title or '').strip()
        if not title:
            raise ValueError("Title cannot be empty")
        read_state = ReadState(read_state)

        if isbn13 is not None:
            isbn13 = normalize_isbn13(isbn13)
            if session.query(Book).filter_by(isbn13=isbn13).first():
                raise ValueError(f"A book with ISBN {isbn13} already exists")

        book = Book(title=title, read_state=read_state, isbn13=isbn13, sort_index=sort_index)
        if author:
            book.author = self.get_or_create_author(*split_author_name(author))
        self._stamp_dates(book, read_state)

        session.add(book)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ValueError(f"Could not add '{title}': {e.orig}") from e

        logger.info(f"Added book: {book.title}")
        self._notify('added', book.id)
        return book

    def set_read_state(self, book_id: int, state: ReadState) -> Book:
        """
        Move a book to another read state.

        Raises:
            ValueError: If the book does not exist
        """
        book = self.get_book(book_id)
        if book is None:
            raise ValueError(f"Book {book_id} not found")

        state = ReadState(state)
        if book.read_state is state:
            return book

        book.read_state = state
        self._stamp_dates(book, state)
        self.session.commit()

        logger.info(f"Set read state for book {book_id}: {state.name}")
        self._notify('updated', book.id)
        return book

    def delete(self, book: Book) -> None:
        session = self._require_open()
        book_id = book.id
        session.delete(book)
        session.commit()

        logger.info(f"Deleted book {book_id}")
        self._notify('deleted', book_id)

    @staticmethod
    def _stamp_dates(book: Book, state: ReadState) -> None:
        now = datetime.utcnow()
        if state is ReadState.READING and not book.started_at:
            book.started_at = now
        elif state is ReadState.FINISHED:
            if not book.started_at:
                book.started_at = now
            book.finished_at = now

    # =========================================================================
    # Change notification
    # =========================================================================

    def notify_on_change(self, callback: Callable[[StoreChange], None]) -> None:
        self.hooks.register_hook(STORE_CHANGED, callback)

    def remove_change_callback(self, callback: Callable[[StoreChange], None]) -> bool:
        return self.hooks.unregister_hook(STORE_CHANGED, callback)

    def _notify(self, kind: str, book_id: int) -> None:
        self.hooks.trigger(STORE_CHANGED, StoreChange(kind, book_id))
