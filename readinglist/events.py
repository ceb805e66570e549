"""
Events sent from the presentation layer to the list coordinator.
"""

from dataclasses import dataclass
from typing import Optional

from .classifier import Segment


@dataclass(frozen=True)
class ViewAppeared:
    """The list became visible."""


@dataclass(frozen=True)
class SegmentChangeRequested:
    segment: Segment


@dataclass(frozen=True)
class SearchActivated:
    pass


@dataclass(frozen=True)
class SearchTextChanged:
    text: Optional[str]


@dataclass(frozen=True)
class SearchDeactivated:
    pass


@dataclass(frozen=True)
class RestoreRequested:
    """Bring a specific book into view, e.g. from a deep link."""
    book_id: int


@dataclass(frozen=True)
class BookDeleteRequested:
    book_id: int
