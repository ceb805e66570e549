"""
Segmented list coordinator.

Owns the state behind the book list: which segment is shown, the scroll
position remembered for each segment, and whether a title search is
active. Every change rebuilds the query and re-issues it against the
record store; results go to a Presenter.

All events run to completion one at a time. Store change notifications
re-query and re-render but never touch the segment or saved positions.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional
import logging

from .classifier import Segment, default_state_for, segment_for, states_for
from .db.models import Book, ReadState
from .events import (
    BookDeleteRequested, RestoreRequested, SearchActivated, SearchDeactivated,
    SearchTextChanged, SegmentChangeRequested, ViewAppeared,
)
from .query import Query, build_query, normalize_search_text
from .store import IndexPath, RecordStore, ResultSet, StoreChange

logger = logging.getLogger(__name__)


class EmptyState(Enum):
    """Why the list is (or is not) empty."""
    NOT_EMPTY = 'not_empty'
    SEGMENT_EMPTY = 'segment_empty'
    NO_SEARCH_RESULTS = 'no_search_results'

    def title(self, segment: Segment) -> Optional[str]:
        if self is EmptyState.NO_SEARCH_RESULTS:
            return "No results"
        if self is EmptyState.SEGMENT_EMPTY:
            if segment is Segment.TO_READ:
                return "You are not reading any books!"
            return "You haven't yet finished a book. Get going!"
        return None

    def description(self) -> Optional[str]:
        if self is EmptyState.NO_SEARCH_RESULTS:
            return "Try changing your search."
        if self is EmptyState.SEGMENT_EMPTY:
            return "Add a book by clicking the + button above."
        return None


class Presenter(ABC):
    """
    Presentation layer as seen by the coordinator.

    Scroll offsets are opaque to the coordinator; it only stores what
    scroll_offset() returns and hands it back later.
    """

    @abstractmethod
    def render(self, results: ResultSet, segment: Segment, empty_state: EmptyState) -> None:
        """Display a fresh result set."""

    @abstractmethod
    def scroll_offset(self) -> Any:
        """Current scroll position of the list."""

    @abstractmethod
    def set_scroll_offset(self, offset: Any) -> None:
        """Move the list to a previously saved position."""

    @abstractmethod
    def select_row(self, index_path: IndexPath) -> None:
        """Select a row and scroll it into view."""

    def dismiss_overlays(self) -> None:
        """Close any modal or transient view in progress."""

    def show_detail(self, book: Book) -> None:
        """Show a book in the detail view."""

    def clear_detail(self) -> None:
        """Clear the detail view."""

    def displayed_book_id(self) -> Optional[int]:
        """Id of the book in the detail view, if any."""
        return None


class SegmentedListCoordinator:
    """
    Drives the book list.

    Args:
        store: Record store to query
        presenter: Receives rendered results and scroll/selection commands
        initial_segment: Segment shown first
    """

    def __init__(
        self,
        store: RecordStore,
        presenter: Presenter,
        initial_segment: Segment = Segment.TO_READ,
    ):
        self.store = store
        self.presenter = presenter
        self._segment = initial_segment
        self._scroll_positions: Optional[Dict[Segment, Any]] = None
        self._search_active = False
        self._search_text: Optional[str] = None
        self._results: Optional[ResultSet] = None
        self._started = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def current_segment(self) -> Segment:
        return self._segment

    @property
    def search_active(self) -> bool:
        return self._search_active

    @property
    def search_text(self) -> Optional[str]:
        return self._search_text

    @property
    def is_showing_search_results(self) -> bool:
        """True when search is active and has non-blank text."""
        return self._search_active and self._search_text is not None

    @property
    def results(self) -> Optional[ResultSet]:
        return self._results

    @property
    def scroll_positions(self) -> Dict[Segment, Any]:
        return dict(self._scroll_positions or {})

    def current_query(self) -> Query:
        text = self._search_text if self._search_active else None
        return build_query(states_for(self._segment), text)

    def empty_state(self) -> EmptyState:
        if self._results is not None and not self._results.is_empty:
            return EmptyState.NOT_EMPTY
        if self.is_showing_search_results:
            return EmptyState.NO_SEARCH_RESULTS
        return EmptyState.SEGMENT_EMPTY

    def default_state_for_new_book(self) -> ReadState:
        return default_state_for(self._segment)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> ResultSet:
        """Subscribe to store changes and issue the first query."""
        if not self._started:
            self.store.notify_on_change(self._on_store_change)
            self._started = True
        return self._requery()

    def stop(self) -> None:
        if self._started:
            self.store.remove_change_callback(self._on_store_change)
            self._started = False

    def view_appeared(self) -> None:
        """On first display, seed every segment's position with the current one."""
        if self._scroll_positions is None:
            offset = self.presenter.scroll_offset()
            self._scroll_positions = {segment: offset for segment in Segment}
            logger.debug(f"Initialised scroll positions at {offset!r}")

    # =========================================================================
    # Events
    # =========================================================================

    def dispatch(self, event) -> Any:
        """Route a presentation event to its handler."""
        if isinstance(event, ViewAppeared):
            return self.view_appeared()
        if isinstance(event, SegmentChangeRequested):
            return self.select_segment(event.segment)
        if isinstance(event, SearchActivated):
            return self.activate_search()
        if isinstance(event, SearchTextChanged):
            return self.set_search_text(event.text)
        if isinstance(event, SearchDeactivated):
            return self.deactivate_search()
        if isinstance(event, RestoreRequested):
            return self.restore(event.book_id)
        if isinstance(event, BookDeleteRequested):
            return self.delete_book(event.book_id)
        raise TypeError(f"Unknown event: {event!r}")

    def select_segment(self, segment: Segment) -> bool:
        """
        Switch to another segment.

        Saves the outgoing segment's scroll position, re-queries, and
        restores the incoming segment's saved position if there is one.

        Returns:
            False if the segment was already selected (nothing happens)
        """
        if not self._switch_segment(Segment(segment)):
            return False
        self._select_displayed_book()
        return True

    def _switch_segment(self, segment: Segment) -> bool:
        """Save position, re-query and restore position; no row selection."""
        if segment is self._segment:
            logger.debug(f"Segment {segment.name} already selected")
            return False

        if self._scroll_positions is None:
            self._scroll_positions = {}
        self._scroll_positions[self._segment] = self.presenter.scroll_offset()

        logger.debug(f"Segment change {self._segment.name} -> {segment.name}")
        self._segment = segment
        self._requery()

        if segment in self._scroll_positions:
            self.presenter.set_scroll_offset(self._scroll_positions[segment])
        return True

    def activate_search(self) -> None:
        """Start searching. Nothing is filtered until text is entered."""
        if self._search_active:
            return
        self._search_active = True
        if self._search_text is not None:
            self._requery()

    def set_search_text(self, text: Optional[str]) -> None:
        text = normalize_search_text(text)
        if text == self._search_text:
            return
        self._search_text = text
        if self._search_active:
            self._requery()

    def deactivate_search(self) -> None:
        """Drop the title filter and re-issue the state-only query."""
        if not self._search_active:
            return
        self._search_active = False
        self._search_text = None
        self._requery()

    def restore(self, book_id: int) -> bool:
        """
        Bring a book into view: switch to its segment, select its row and
        show it in detail.

        Returns:
            False if the book is not in the store (nothing changes)
        """
        book = self.store.get_book(book_id)
        if book is None:
            logger.warning(f"Cannot restore book {book_id}: not found")
            return False

        self.presenter.dismiss_overlays()
        self._switch_segment(segment_for(book.read_state))

        index_path = self._results.index_path_for(book.id) if self._results else None
        if index_path is not None:
            self.presenter.select_row(index_path)
        else:
            logger.debug(f"Book {book_id} not in current results")

        self.presenter.show_detail(book)
        return True

    def delete_book(self, book_id: int) -> bool:
        """
        Delete a book, clearing the detail view if it shows that book.

        Returns:
            False if the book is not in the store
        """
        book = self.store.get_book(book_id)
        if book is None:
            logger.warning(f"Cannot delete book {book_id}: not found")
            return False

        if self.presenter.displayed_book_id() == book_id:
            self.presenter.clear_detail()
        self.store.delete(book)
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _requery(self) -> ResultSet:
        self._results = self.store.query(self.current_query())
        self.presenter.render(self._results, self._segment, self.empty_state())
        return self._results

    def _on_store_change(self, change: StoreChange) -> None:
        logger.debug(f"Store changed ({change.kind} book {change.book_id}); refreshing")
        self._requery()

    def _select_displayed_book(self) -> None:
        book_id = self.presenter.displayed_book_id()
        if book_id is None:
            return
        book = self.store.get_book(book_id)
        if book is None or book.read_state not in states_for(self._segment):
            return
        index_path = self._results.index_path_for(book.id) if self._results else None
        if index_path is not None:
            self.presenter.select_row(index_path)
