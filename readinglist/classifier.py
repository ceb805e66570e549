"""
Read-state classification.

Maps a book's stored read state to the segment of the list it is shown
in, and back. The state space is closed: anything outside ReadState is a
programming error.
"""

from enum import Enum
from typing import FrozenSet, Optional

from .db.models import ReadState


class UnknownReadStateError(ValueError):
    """Raised when a value outside the ReadState enum reaches the classifier."""


class Segment(Enum):
    """User-facing grouping of books."""
    TO_READ = 0
    FINISHED = 1

    @property
    def label(self) -> str:
        return 'To Read' if self is Segment.TO_READ else 'Finished'

    @classmethod
    def from_name(cls, name: str) -> 'Segment':
        """Parse 'to-read', 'to_read', 'finished' (any case)."""
        key = name.strip().upper().replace('-', '_')
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown segment '{name}'. Use 'to-read' or 'finished'") from None


_SEGMENT_STATES = {
    Segment.TO_READ: frozenset({ReadState.TO_READ, ReadState.READING}),
    Segment.FINISHED: frozenset({ReadState.FINISHED}),
}

# Read state given to a book added while a segment is shown
_DEFAULT_STATES = {
    Segment.TO_READ: ReadState.TO_READ,
    Segment.FINISHED: ReadState.FINISHED,
}


def _coerce_state(state) -> ReadState:
    if isinstance(state, ReadState):
        return state
    try:
        return ReadState(state)
    except (ValueError, TypeError):
        raise UnknownReadStateError(f"Unknown read state: {state!r}") from None


def segment_for(state: ReadState) -> Segment:
    """Finished books go to FINISHED, everything else to TO_READ."""
    state = _coerce_state(state)
    return Segment.FINISHED if state is ReadState.FINISHED else Segment.TO_READ


def states_for(segment: Segment) -> FrozenSet[ReadState]:
    """Read states shown in a segment."""
    return _SEGMENT_STATES[segment]


def default_state_for(segment: Segment) -> ReadState:
    return _DEFAULT_STATES[segment]


def section_title(segment: Segment, state: ReadState) -> Optional[str]:
    """Section header text; the finished segment has a single untitled section."""
    if segment is Segment.FINISHED:
        return None
    return _coerce_state(state).description
