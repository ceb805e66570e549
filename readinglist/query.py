"""
Query construction for the book list.

A Query is the conjunction of read-state membership and an optional
case-insensitive "contains" match on the title. The same matching rule
is used in memory (Query.matches) and in SQL (Query.criterion), via the
casefold function registered on every connection.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional
import logging

from sqlalchemy import String, and_, func

from .db.models import Book, ReadState
from .db.session import casefold

logger = logging.getLogger(__name__)


def normalize_search_text(search_text: Optional[str]) -> Optional[str]:
    """Strip search text; blank text means no text filter."""
    if search_text is None:
        return None
    search_text = search_text.strip()
    return search_text or None


def title_contains(title: Optional[str], text: str) -> bool:
    """Case-insensitive substring match on a title."""
    if title is None:
        return False
    return casefold(text) in casefold(title)


@dataclass(frozen=True)
class Query:
    """Filter issued against the record store. Immutable; rebuilt on change."""
    states: FrozenSet[ReadState]
    title_text: Optional[str] = None

    @property
    def has_text_filter(self) -> bool:
        return self.title_text is not None

    def matches(self, book) -> bool:
        """Evaluate the query against a single in-memory book."""
        if book.read_state not in self.states:
            return False
        if self.title_text is not None:
            return title_contains(book.title, self.title_text)
        return True

    def criterion(self):
        """SQLAlchemy filter clause equivalent to matches()."""
        clauses = [Book.read_state.in_(sorted(self.states))]
        if self.title_text is not None:
            clauses.append(
                func.casefold(Book.title, type_=String).contains(casefold(self.title_text), autoescape=True)
            )
        return and_(*clauses)

    def __str__(self):
        states = ', '.join(s.name for s in sorted(self.states))
        if self.title_text is None:
            return f"state in ({states})"
        return f"state in ({states}) and title contains {self.title_text!r}"


def build_query(states: Iterable[ReadState], search_text: Optional[str] = None) -> Query:
    """
    Combine read-state membership with an optional title filter.

    Args:
        states: Read states to include (at least one)
        search_text: Title substring; None or blank means no text filter

    Returns:
        Query instance

    Raises:
        ValueError: If no states are given
    """
    states = frozenset(ReadState(s) for s in states)
    if not states:
        raise ValueError("A query needs at least one read state")

    query = Query(states=states, title_text=normalize_search_text(search_text))
    logger.debug(f"Built query: {query}")
    return query
