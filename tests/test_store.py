"""
Tests for the SQLite record store.
"""

from pathlib import Path

import pytest

from readinglist.classifier import Segment, states_for
from readinglist.db.models import Author, Book, ReadState
from readinglist.query import build_query
from readinglist.store import BookStore, IndexPath, StoreChange, normalize_isbn13


class TestOpenClose:

    def test_open_creates_database(self, temp_library):
        assert (temp_library.library_path / 'library.db').exists()

    def test_data_survives_reopen(self, temp_library):
        path = temp_library.library_path
        temp_library.add_book("Dune", ReadState.READING)
        temp_library.close()

        reopened = BookStore.open(path)
        try:
            assert reopened.count() == 1
            assert reopened.count(ReadState.READING) == 1
        finally:
            reopened.close()

    def test_closed_store_refuses_work(self):
        store = BookStore.in_memory()
        store.close()
        with pytest.raises(RuntimeError, match="closed"):
            store.get_book(1)
        # Closing twice is harmless
        store.close()


class TestAddBook:

    def test_add_defaults_to_to_read(self, store):
        book = store.add_book("Dune")
        assert book.id is not None
        assert book.read_state is ReadState.TO_READ
        assert book.started_at is None
        assert book.finished_at is None

    def test_title_is_required(self, store):
        with pytest.raises(ValueError, match="Title"):
            store.add_book("   ")

    def test_author_is_shared(self, store):
        a = store.add_book("Dune", author="Herbert, Frank")
        b = store.add_book("Dune Messiah", author="Frank Herbert")
        assert a.author.id == b.author.id
        assert store.session.query(Author).count() == 1
        assert a.author_display == "Frank Herbert"

    def test_book_without_author(self, store):
        assert store.add_book("Beowulf").author_display is None

    def test_reading_stamps_start(self, store):
        book = store.add_book("Dune", ReadState.READING)
        assert book.started_at is not None
        assert book.finished_at is None

    def test_finished_stamps_both(self, store):
        book = store.add_book("Dune", ReadState.FINISHED)
        assert book.started_at is not None
        assert book.finished_at is not None

    def test_isbn_is_normalised(self, store):
        book = store.add_book("Dune", isbn13="978-0-441-17271-9")
        assert book.isbn13 == "9780441172719"
        assert store.get_book_by_isbn("978 0441172719").id == book.id

    def test_duplicate_isbn_rejected(self, store):
        store.add_book("Dune", isbn13="9780441172719")
        with pytest.raises(ValueError, match="already exists"):
            store.add_book("Dune (again)", isbn13="9780441172719")
        assert store.count() == 1


class TestNormalizeIsbn:

    @pytest.mark.parametrize("isbn", ["9780441172719", "978-0-306-40615-7"])
    def test_valid(self, isbn):
        assert len(normalize_isbn13(isbn)) == 13

    @pytest.mark.parametrize("isbn", ["", "12345", "978044117271X", "9780441172718"])
    def test_invalid(self, isbn):
        with pytest.raises(ValueError):
            normalize_isbn13(isbn)


class TestQuery:

    def test_to_read_segment_sections(self, populated_store):
        results = populated_store.query(build_query(states_for(Segment.TO_READ)))

        assert [s.state for s in results.sections] == [ReadState.READING, ReadState.TO_READ]
        assert [b.title for b in results.sections[0].books] == ["Neuromancer"]
        assert [b.title for b in results.sections[1].books] == ["Dune Messiah", "Snow Crash"]
        assert len(results) == 3

    def test_finished_with_search_text(self, populated_store):
        results = populated_store.query(build_query(states_for(Segment.FINISHED), "dune"))
        assert [b.title for b in results.books()] == ["Dune"]

    def test_empty_sections_are_omitted(self, populated_store):
        results = populated_store.query(build_query(states_for(Segment.TO_READ), "snow"))
        assert len(results.sections) == 1
        assert results.sections[0].state is ReadState.TO_READ

    def test_empty_result(self, store):
        results = store.query(build_query(states_for(Segment.FINISHED)))
        assert results.is_empty
        assert results.sections == []

    def test_sort_index_orders_within_section(self, store):
        store.add_book("Zebra", sort_index=1)
        store.add_book("Apple", sort_index=2)
        results = store.query(build_query({ReadState.TO_READ}))
        assert [b.title for b in results.books()] == ["Zebra", "Apple"]


class TestIndexPath:

    def test_locates_book_in_last_results(self, populated_store, find_book):
        populated_store.query(build_query(states_for(Segment.TO_READ)))
        snow = find_book(populated_store, "Snow Crash")
        assert populated_store.index_path_for(snow) == IndexPath(section=1, row=1)

    def test_none_when_not_in_results(self, populated_store, find_book):
        populated_store.query(build_query(states_for(Segment.TO_READ)))
        dune = find_book(populated_store, "Dune")
        assert populated_store.index_path_for(dune) is None

    def test_none_before_any_query(self, populated_store, find_book):
        assert populated_store.index_path_for(find_book(populated_store, "Dune")) is None

    def test_book_at(self, populated_store):
        results = populated_store.query(build_query(states_for(Segment.FINISHED)))
        assert results.book_at(IndexPath(0, 1)).title == "The Hobbit"


class TestMutationsAndNotifications:

    @pytest.fixture
    def changes(self, store):
        received = []
        store.notify_on_change(received.append)
        return received

    def test_add_notifies(self, store, changes):
        book = store.add_book("Dune")
        assert changes == [StoreChange('added', book.id)]

    def test_set_read_state(self, store, changes):
        book = store.add_book("Dune")
        store.set_read_state(book.id, ReadState.READING)
        store.set_read_state(book.id, ReadState.FINISHED)

        assert book.read_state is ReadState.FINISHED
        assert book.started_at is not None
        assert book.finished_at is not None
        assert [c.kind for c in changes] == ['added', 'updated', 'updated']

    def test_set_same_state_is_silent(self, store, changes):
        book = store.add_book("Dune")
        store.set_read_state(book.id, ReadState.TO_READ)
        assert [c.kind for c in changes] == ['added']

    def test_set_state_unknown_book(self, store):
        with pytest.raises(ValueError, match="not found"):
            store.set_read_state(42, ReadState.READING)

    def test_delete(self, store, changes):
        book = store.add_book("Dune")
        book_id = book.id
        store.delete(book)

        assert store.get_book(book_id) is None
        assert changes[-1] == StoreChange('deleted', book_id)

    def test_failed_listener_does_not_block_mutation(self, store):
        def broken(change):
            raise RuntimeError("listener broke")

        store.notify_on_change(broken)
        book = store.add_book("Dune")
        assert store.get_book(book.id) is not None

    def test_remove_change_callback(self, store):
        received = []

        def listener(change):
            received.append(change)

        store.notify_on_change(listener)
        assert store.remove_change_callback(listener)
        store.add_book("Dune")
        assert received == []
