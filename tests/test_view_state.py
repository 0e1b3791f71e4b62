import pytest

from errors import ValidationError
from utils.cli_config import CLIConfig
from view_state import BookListState


@pytest.fixture
def state(lib):
    lib.add_book("War and Peace", "Leo Tolstoy", "Classic", 2)
    lib.add_book("dune", "Frank Herbert", "Sci-Fi", 5)
    lib.add_book("Anna Karenina", "Leo Tolstoy", "Classic", 0)
    s = BookListState(lib, page_size=2)
    s.refresh()
    return s


def test_refresh_without_query_shows_everything(state):
    assert [b.id for b in state.books] == [1, 2, 3]
    assert not state.is_filtered


def test_refresh_reruns_last_search_after_changes(state, lib):
    state.search("author", "tolstoy")
    assert [b.title for b in state.books] == ["War and Peace", "Anna Karenina"]

    lib.add_book("Resurrection", "Leo Tolstoy", "Classic", 1)
    lib.remove_book(1)
    assert [b.title for b in state.refresh()] == ["Anna Karenina", "Resurrection"]


def test_clear_search_returns_to_full_list(state):
    state.search("genre", "sci")
    assert len(state.books) == 1
    state.clear_search()
    assert len(state.books) == 3


def test_search_unknown_field_is_rejected(state):
    with pytest.raises(ValidationError):
        state.search("isbn", "1")


def test_sort_is_case_insensitive_and_reversible(state):
    state.set_sort("title")
    assert [b.title for b in state.books] == ["Anna Karenina", "dune", "War and Peace"]

    state.toggle_sort("title")
    assert state.descending
    assert [b.title for b in state.books] == ["War and Peace", "dune", "Anna Karenina"]

    state.toggle_sort("copies")
    assert not state.descending
    assert [b.copies for b in state.books] == [0, 2, 5]


def test_sort_unknown_key_is_rejected(state):
    with pytest.raises(ValidationError):
        state.set_sort("isbn")


def test_paging(state):
    assert state.page_count == 2
    assert [b.id for b in state.page(1)] == [1, 2]
    assert [b.id for b in state.page(2)] == [3]
    # out of range pages clamp to the nearest page
    assert [b.id for b in state.page(9)] == [3]
    assert [b.id for b in state.page(0)] == [1, 2]


def test_empty_collection_has_one_empty_page(lib):
    s = BookListState(lib)
    s.refresh()
    assert s.page_count == 1
    assert s.page(1) == []


def test_from_preferences_uses_saved_values(lib, tmp_path):
    prefs = CLIConfig(tmp_path)
    prefs.set("preferences.sort_by", "title")
    prefs.set("preferences.sort_descending", True)
    prefs.set("preferences.page_size", 5)

    s = BookListState.from_preferences(lib, prefs)
    assert (s.sort_key, s.descending, s.page_size) == ("title", True, 5)


@pytest.mark.parametrize("sort_by, page_size", [("isbn", "abc"), (7, 0), (None, True)])
def test_from_preferences_falls_back_on_invalid_values(lib, tmp_path, caplog, sort_by, page_size):
    prefs = CLIConfig(tmp_path)
    prefs.set("preferences.sort_by", sort_by)
    prefs.set("preferences.page_size", page_size)

    s = BookListState.from_preferences(lib, prefs, default_page_size=20)
    assert (s.sort_key, s.page_size) == ("id", 20)
    assert "Ignoring invalid sort preference" in caplog.text
    assert "Ignoring invalid page size preference" in caplog.text


def test_from_preferences_caps_page_size(lib, tmp_path):
    prefs = CLIConfig(tmp_path)
    prefs.set("preferences.page_size", 500)

    s = BookListState.from_preferences(lib, prefs, max_page_size=100)
    assert s.page_size == 100
