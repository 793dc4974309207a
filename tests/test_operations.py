"""Unit tests for sbm.operations module."""

from unittest.mock import MagicMock

import pytest

from sbm.errors import (
    CapacityExceededError,
    DeclinedError,
    FetchError,
    RowNotFoundError,
    TagNotFoundError,
    ValidationError,
)
from sbm.models import ROW_TAG_C, Store
from sbm.operations import (
    add_row,
    add_tag,
    open_row,
    parse_row_id,
    remove_row,
    rename_tag,
    update_row,
)
from sbm.query import list_by_title


def yes(message):
    return True


def no(message):
    return False


class TestAddRow:
    """Test add_row function."""

    def test_explicit_title(self):
        """Should create a row findable by title."""
        s = Store()
        row = add_row(s, "https://example.com", title="Example")
        assert row.id == 1
        assert list_by_title(s, "exam") == [row]

    def test_fetches_title_when_missing(self):
        """Should ask the fetcher for a title."""
        s = Store()
        fetch = MagicMock(return_value="Fetched Title")
        row = add_row(s, "https://example.com", fetch_title=fetch)
        fetch.assert_called_once_with("https://example.com")
        assert row.title == "Fetched Title"

    @pytest.mark.parametrize("field", ["url", "title", "comment"])
    def test_undecodable_text_rejected(self, field):
        """Should refuse text carrying lone surrogates and create nothing."""
        s = Store()
        args = {"url": "https://example.com", "title": "T", "comment": "c"}
        args[field] = "bad \udcff byte"
        url = args.pop("url")
        with pytest.raises(ValidationError, match="not valid UTF-8"):
            add_row(s, url, **args)
        assert s.rows == []

    def test_fetch_failure_creates_nothing(self):
        """Should propagate FetchError without creating a row or using an ID."""
        s = Store()
        fetch = MagicMock(side_effect=FetchError("boom"))
        with pytest.raises(FetchError):
            add_row(s, "https://example.com", fetch_title=fetch)
        assert s.rows == []
        assert s.next_row_uid == 1

    def test_explicit_title_skips_fetch(self):
        """Should not fetch when a title is given."""
        fetch = MagicMock()
        add_row(Store(), "https://example.com", title="T", fetch_title=fetch)
        fetch.assert_not_called()

    def test_empty_url(self):
        """Should reject an empty URL."""
        with pytest.raises(ValidationError):
            add_row(Store(), "   ", title="T")

    def test_tags_resolved(self, store):
        """Should attach tags given by ID or name."""
        row = add_row(store, "https://x.test", title="X", tag_refs="2 news")
        assert row.tags == [2, 3]

    def test_unresolved_tags_skipped(self, store, caplog):
        """Should skip unknown tags, warn, and still create the row."""
        row = add_row(store, "https://x.test", title="X", tag_refs=["ghost reading", "99"])
        assert row.tags == [1]
        assert "ghost" in caplog.text

    def test_duplicate_tags_collapsed(self, store):
        """Should not fill two slots with the same tag."""
        row = add_row(store, "https://x.test", title="X", tag_refs="1 reading")
        assert row.tags == [1]

    def test_too_many_tags(self):
        """Should refuse more tags than slots."""
        s = Store()
        names = [f"t{i}" for i in range(ROW_TAG_C + 1)]
        for name in names:
            s.append_tag(name)
        with pytest.raises(CapacityExceededError):
            add_row(s, "https://x.test", title="X", tag_refs=" ".join(names))
        assert s.rows == []


class TestUpdateRow:
    """Test update_row function."""

    def test_preserves_unspecified_fields(self, store):
        """Should change only the comment and updated_at."""
        row = store.find_row(2)
        before = row.updated_at
        update_row(store, 2, comment="new")
        assert row.title == "Python Docs"
        assert row.comment == "new"
        assert row.tags == [2]
        assert row.updated_at > before

    def test_undecodable_title_rejected(self, store):
        """Should leave the row untouched when the new title is not valid UTF-8."""
        with pytest.raises(ValidationError):
            update_row(store, 2, title="bad \udcff", comment="new")
        row = store.find_row(2)
        assert row.title == "Python Docs"
        assert row.comment == ""

    def test_tags_toggle(self, store):
        """Should add absent tags and remove present ones after confirmation."""
        update_row(store, 3, tag_refs="work reading", confirm=yes)
        assert store.find_row(3).tags == [3, 2]

    def test_toggle_declined(self, store):
        """Should raise DeclinedError when removal is declined."""
        with pytest.raises(DeclinedError):
            update_row(store, 3, tag_refs="reading", confirm=no)

    def test_unknown_tag_fatal(self, store):
        """Should raise TagNotFoundError for unresolvable tags."""
        with pytest.raises(TagNotFoundError):
            update_row(store, 1, tag_refs="ghost")

    def test_missing_row(self, store):
        """Should raise RowNotFoundError."""
        with pytest.raises(RowNotFoundError):
            update_row(store, 99, title="x")

    def test_touch_without_fields(self, store):
        """Should refresh updated_at even when nothing else changes."""
        row = store.find_row(1)
        before = row.updated_at
        update_row(store, 1)
        assert row.updated_at > before


class TestRemoveAndOpen:
    """Test remove_row and open_row functions."""

    def test_remove_confirmed(self, store):
        """Should tombstone the row and leave tags alone."""
        remove_row(store, 1, yes)
        assert store.find_row(1) is None
        assert store.find_tag(1) is not None
        assert len(store.rows) == 3

    def test_remove_declined(self, store):
        """Should keep the row when declined."""
        with pytest.raises(DeclinedError):
            remove_row(store, 1, no)
        assert store.find_row(1) is not None

    def test_open(self, store):
        """Should return the row's URL."""
        assert open_row(store, 2) == "https://docs.python.org"

    def test_open_missing(self, store):
        """Should raise RowNotFoundError for a deleted row."""
        remove_row(store, 2, yes)
        with pytest.raises(RowNotFoundError):
            open_row(store, 2)


class TestTags:
    """Test add_tag and rename_tag functions."""

    def test_add_tag_normalizes(self):
        """Should store spaces as '-'."""
        tag = add_tag(Store(), "work stuff")
        assert tag.name == "work-stuff"
        assert tag.id == 1

    def test_add_tag_numeric_leading(self):
        """Should reject names starting with a digit."""
        with pytest.raises(ValidationError):
            add_tag(Store(), "3abc")

    def test_rename(self, store):
        """Should rename by name or ID."""
        assert rename_tag(store, "work", "job").name == "job"
        assert rename_tag(store, "2", "career").name == "career"
        assert store.find_tag_by_name("career").id == 2

    def test_rename_missing(self, store):
        """Should raise TagNotFoundError."""
        with pytest.raises(TagNotFoundError):
            rename_tag(store, "ghost", "x")

    def test_rename_numeric(self, store):
        """Should reject a new name starting with a digit."""
        with pytest.raises(ValidationError):
            rename_tag(store, "work", "9lives")


class TestIdMonotonicity:
    """IDs must never be reused within a store's lifetime."""

    def test_ids_increase_across_removals(self):
        """Should assign ever-increasing IDs even after removals."""
        s = Store()
        seen = []
        for i in range(5):
            row = add_row(s, f"https://x{i}.test", title=f"x{i}")
            tag = add_tag(s, f"tag{i}")
            seen.append((row.id, tag.id))
            remove_row(s, row.id, yes)
        row_ids = [r for r, _ in seen]
        tag_ids = [t for _, t in seen]
        assert row_ids == sorted(set(row_ids))
        assert tag_ids == sorted(set(tag_ids))


class TestParseRowId:
    """Test parse_row_id function."""

    def test_valid(self):
        """Should parse decimal strings."""
        assert parse_row_id(" 12 ") == 12

    @pytest.mark.parametrize("token", ["abc", "-1", "0", ""])
    def test_invalid(self, token):
        """Should reject non-positive or non-numeric IDs."""
        with pytest.raises(ValidationError):
            parse_row_id(token)
