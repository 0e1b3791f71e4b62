import pytest

import main
from view_state import BookListState


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to every rich prompt the menu shows."""
    queue = []

    def fake_ask(*args, **kwargs):
        return queue.pop(0)

    monkeypatch.setattr(main.Prompt, "ask", fake_ask)
    monkeypatch.setattr(main.IntPrompt, "ask", fake_ask)
    monkeypatch.setattr(main.Confirm, "ask", fake_ask)
    return queue


def test_add_from_menu(lib, answers):
    answers.extend(["Dune", "Herbert", "Sci-Fi", "3"])
    main.add(lib, BookListState(lib))
    assert [b.title for b in lib.list_books()] == ["Dune"]


def test_add_with_bad_copies_keeps_collection_unchanged(lib, answers, capsys):
    answers.extend(["Dune", "Herbert", "Sci-Fi", "-1"])
    main.add(lib, BookListState(lib))
    assert lib.list_books() == []
    assert "Copies cannot be negative" in capsys.readouterr().out


def test_update_from_menu(lib, answers):
    book = lib.add_book("Dune", "Herbert", "Sci-Fi", 3)
    answers.extend([book.id, "Dune", "Frank Herbert", "Sci-Fi", "2"])
    main.update(lib, BookListState(lib))
    assert lib.get_book(book.id).author == "Frank Herbert"
    assert lib.get_book(book.id).copies == 2


def test_remove_asks_for_confirmation(lib, answers):
    book = lib.add_book("Dune", "Herbert", "Sci-Fi", 3)

    answers.extend([book.id, False])
    main.remove(lib, BookListState(lib))
    assert len(lib.list_books()) == 1

    answers.extend([book.id, True])
    main.remove(lib, BookListState(lib))
    assert lib.list_books() == []


def test_remove_missing_book_reports_not_found(lib, answers, capsys):
    answers.append(7)
    main.remove(lib, BookListState(lib))
    assert "Book with id 7 not found." in capsys.readouterr().out


def test_search_keeps_query_for_later_refresh(lib, answers):
    lib.add_book("War and Peace", "Tolstoy", "Classic", 1)
    lib.add_book("Dune", "Herbert", "Sci-Fi", 3)
    state = BookListState(lib)

    answers.extend(["title", "war"])
    main.search(state)
    assert state.query == ("title", "war")
    assert [b.title for b in state.books] == ["War and Peace"]


def test_run_menu_dispatches_until_exit(lib, answers, tmp_path):
    prefs = main.CLIConfig(tmp_path / "prefs")
    answers.extend(["2", "Dune", "Herbert", "Sci-Fi", "1", "0"])
    main.run_menu(lib, prefs)
    assert [b.title for b in lib.list_books()] == ["Dune"]


def test_run_menu_survives_invalid_saved_preferences(lib, answers, tmp_path):
    prefs = main.CLIConfig(tmp_path / "prefs")
    prefs.set("preferences.sort_by", "isbn")
    prefs.set("preferences.page_size", "abc")
    lib.add_book("Dune", "Herbert", "Sci-Fi", 3)

    answers.extend(["1", "0"])
    main.run_menu(lib, prefs)
    assert len(lib.list_books()) == 1
