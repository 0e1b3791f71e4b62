import csv
import os
import json
from pathlib import Path
from typing import List, Any, Dict, Union
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

EXPORT_COLUMNS = ["id", "title", "author", "genre", "copies"]

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def build_books_table(books: List[Any], title: str = "📚 Books") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Genre", style="white")
    table.add_column("Copies", style="green", justify="right")
    for b in books:
        table.add_row(str(b.id), b.title, b.author, b.genre, str(b.copies))
    return table

def print_list_result(books: List[Any]) -> None:
    """Print books in the current output mode.
    - plain: 'ID - Title by Author [Genre] (N copies)' lines, or 'No books in library.'
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        _console.print(build_books_table(books))
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author} [{b.genre}] ({b.copies} copies)")

def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(format_stats(stats, markup=True), title="📊 Stats", border_style="blue"))
    else:
        print(format_stats(stats))

def format_stats(stats: Dict[str, Any], markup: bool = False) -> str:
    labels = [
        ("total_books", "Total Books"),
        ("total_copies", "Total Copies"),
        ("unique_authors", "Unique Authors"),
        ("unique_genres", "Unique Genres"),
        ("out_of_stock", "Out of Stock"),
    ]
    lines = []
    for key, label in labels:
        label = f"[bold]{label}:[/]" if markup else f"{label}:"
        lines.append(f"{label} {stats.get(key, 0)}")
    return "\n".join(lines)

def export_csv(books: List[Any], path: Union[str, Path]) -> int:
    """Write books to a CSV file with a header row. Returns the number of rows written."""
    with open(path, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for book in books:
            writer.writerow({k: v for k, v in book.to_dict().items() if k in EXPORT_COLUMNS})
    return len(books)
