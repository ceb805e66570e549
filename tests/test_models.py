"""
Tests for database models.
"""

import pytest

from readinglist.db.models import Author, ReadState, split_author_name


class TestAuthorDisplayNames:

    def test_with_first_names(self):
        author = Author(last_name="Herbert", first_names="Frank")
        assert author.display_first_last == "Frank Herbert"
        assert author.display_last_comma_first == "Herbert, Frank"

    def test_last_name_only(self):
        author = Author(last_name="Homer")
        assert author.display_first_last == "Homer"
        assert author.display_last_comma_first == "Homer"


class TestSplitAuthorName:

    @pytest.mark.parametrize("name,expected", [
        ("Herbert, Frank", ("Herbert", "Frank")),
        ("Frank Herbert", ("Herbert", "Frank")),
        ("J. R. R. Tolkien", ("Tolkien", "J. R. R.")),
        ("Homer", ("Homer", None)),
        ("Homer,", ("Homer", None)),
        ("  Ursula   K.  Le Guin ", ("Guin", "Ursula K. Le")),
    ])
    def test_split(self, name, expected):
        assert split_author_name(name) == expected

    @pytest.mark.parametrize("name", ["", "   ", ", Frank"])
    def test_invalid(self, name):
        with pytest.raises(ValueError):
            split_author_name(name)


def test_read_state_order_puts_reading_first():
    assert sorted(ReadState) == [ReadState.READING, ReadState.TO_READ, ReadState.FINISHED]
    assert ReadState.TO_READ.description == "To Read"
