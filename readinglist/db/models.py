"""
SQLAlchemy models for the reading list database.

Books carry a read state (to read, reading, finished) and an optional
author. Read states are stored as integers so that ordering by the column
gives the section order used when listing books.
"""

from datetime import datetime
from enum import IntEnum
from typing import Optional, Tuple

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class ReadState(IntEnum):
    """Lifecycle state of a book. Values define section order."""
    READING = 1
    TO_READ = 2
    FINISHED = 3

    @property
    def description(self) -> str:
        return _READ_STATE_DESCRIPTIONS[self]


_READ_STATE_DESCRIPTIONS = {
    ReadState.READING: 'Reading',
    ReadState.TO_READ: 'To Read',
    ReadState.FINISHED: 'Finished',
}


class ReadStateType(TypeDecorator):
    """Persist ReadState as its integer value."""
    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(ReadState(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ReadState(value)


class Author(Base):
    """Author entity. Display names are derived, never stored."""
    __tablename__ = 'authors'

    id = Column(Integer, primary_key=True)
    last_name = Column(String(200), nullable=False, index=True)
    first_names = Column(String(200))

    books = relationship('Book', back_populates='author')

    __table_args__ = (
        UniqueConstraint('last_name', 'first_names', name='uix_author_name'),
    )

    @property
    def display_first_last(self) -> str:
        """'Frank Herbert', or just the last name."""
        if not self.first_names:
            return self.last_name
        return f"{self.first_names} {self.last_name}"

    @property
    def display_last_comma_first(self) -> str:
        """'Herbert, Frank', or just the last name."""
        if not self.first_names:
            return self.last_name
        return f"{self.last_name}, {self.first_names}"

    def __repr__(self):
        return f"<Author(id={self.id}, name='{self.display_last_comma_first}')>"


class Book(Base):
    """A book on the reading list."""
    __tablename__ = 'books'

    id = Column(Integer, primary_key=True)
    title = Column(String(500), nullable=False, index=True)
    read_state = Column(ReadStateType, nullable=False, default=ReadState.TO_READ)
    isbn13 = Column(String(13), unique=True)
    sort_index = Column(Integer)  # Manual ordering within a section
    author_id = Column(Integer, ForeignKey('authors.id', ondelete='SET NULL'))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    started_at = Column(DateTime)
    finished_at = Column(DateTime)

    author = relationship('Author', back_populates='books', lazy='joined')

    __table_args__ = (
        Index('idx_book_state_sort', 'read_state', 'sort_index'),
    )

    @property
    def author_display(self) -> Optional[str]:
        return self.author.display_first_last if self.author else None

    def __repr__(self):
        return f"<Book(id={self.id}, title='{self.title[:50]}', state={self.read_state.name})>"


def split_author_name(name: str) -> Tuple[str, Optional[str]]:
    """
    Split a free-text author name into (last_name, first_names).

    Accepts "Last, First" or "First Middle Last".

    Raises:
        ValueError: If the name is blank
    """
    name = ' '.join(name.split())
    if not name:
        raise ValueError("Author name cannot be empty")

    if ',' in name:
        last, _, first = name.partition(',')
        last, first = last.strip(), first.strip()
        if not last:
            raise ValueError(f"Author name has no last name: {name!r}")
        return last, first or None

    parts = name.rsplit(' ', 1)
    if len(parts) == 1:
        return parts[0], None
    return parts[1], parts[0]
