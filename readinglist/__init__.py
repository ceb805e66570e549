"""
readinglist - track books to read, being read, and finished.

The core is a query and segmentation engine over a record store:

    from readinglist import BookStore, SegmentedListCoordinator, Segment

    store = BookStore.open("~/books")
    coordinator = SegmentedListCoordinator(store, presenter)
    coordinator.start()
    coordinator.select_segment(Segment.FINISHED)
"""

from .classifier import (
    Segment, UnknownReadStateError, default_state_for, section_title,
    segment_for, states_for,
)
from .coordinator import EmptyState, Presenter, SegmentedListCoordinator
from .db.models import Author, Book, ReadState
from .query import Query, build_query
from .store import BookStore, IndexPath, RecordStore, ResultSet, Section, StoreChange

__version__ = "0.1.0"

__all__ = [
    'Author',
    'Book',
    'BookStore',
    'EmptyState',
    'IndexPath',
    'Presenter',
    'Query',
    'ReadState',
    'RecordStore',
    'ResultSet',
    'Section',
    'Segment',
    'SegmentedListCoordinator',
    'StoreChange',
    'UnknownReadStateError',
    'build_query',
    'default_state_for',
    'section_title',
    'segment_for',
    'states_for',
]
