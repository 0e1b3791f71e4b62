import csv
import json

from book import Book
from utils.cli_config import CLIConfig
from utils.ui_helpers import export_csv, get_output_mode, print_list_result, print_stats_result, set_output_mode


BOOKS = [
    Book("Dune", "Herbert", "Sci-Fi", 3, id=1),
    Book("Emma, Revisited", "Austen", "Classic", 0, id=2),
]


def test_output_mode_ignores_unknown_values():
    assert get_output_mode() == "plain"
    set_output_mode("JSON")
    assert get_output_mode() == "json"
    set_output_mode("xml")
    assert get_output_mode() == "json"


def test_plain_list_output(capsys):
    print_list_result(BOOKS)
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "1 - Dune by Herbert [Sci-Fi] (3 copies)",
        "2 - Emma, Revisited by Austen [Classic] (0 copies)",
    ]


def test_json_stats_output(capsys):
    set_output_mode("json")
    print_stats_result({"total_books": 2, "total_copies": 3})
    assert json.loads(capsys.readouterr().out) == {"total_books": 2, "total_copies": 3}


def test_export_csv_quotes_commas(tmp_path):
    target = tmp_path / "books.csv"
    assert export_csv(BOOKS, target) == 2

    with open(target, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["id", "title", "author", "genre", "copies"]
    assert rows[2] == ["2", "Emma, Revisited", "Austen", "Classic", "0"]


def test_export_empty_list_writes_header_only(tmp_path):
    target = tmp_path / "empty.csv"
    assert export_csv([], target) == 0
    assert target.read_text(encoding="utf-8").strip() == "id,title,author,genre,copies"


def test_cli_config_defaults_and_persistence(tmp_path):
    prefs = CLIConfig(tmp_path / "prefs")
    assert prefs.get("preferences.page_size") == 20
    assert prefs.get("preferences.missing", "fallback") == "fallback"

    prefs.set("preferences.sort_by", "title")
    prefs.set("new_section.flag", True)

    reloaded = CLIConfig(tmp_path / "prefs")
    assert reloaded.get("preferences.sort_by") == "title"
    assert reloaded.get("new_section.flag") is True

    reloaded.reset_to_default()
    assert CLIConfig(tmp_path / "prefs").get("preferences.sort_by") == "id"


def test_cli_config_recovers_from_corrupt_file(tmp_path):
    prefs_dir = tmp_path / "prefs"
    prefs_dir.mkdir()
    (prefs_dir / "config.json").write_text("{not json", encoding="utf-8")

    prefs = CLIConfig(prefs_dir)
    assert prefs.get("ui_settings.confirm_deletions") is True
