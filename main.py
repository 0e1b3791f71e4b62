import logging
from dataclasses import replace
from typing import Optional, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.markup import escape
from rich.table import Table
from rich import box

from config import settings
from errors import LibraryError, NotFound, PersistenceError, ValidationError
from library import Library
from storage import SEARCHABLE_FIELDS, create_store
from utils.cli_config import CLIConfig
from utils.ui_helpers import (
    build_books_table,
    export_csv,
    format_stats,
    print_list_result,
    print_stats_result,
    set_output_mode,
)
from view_state import SORT_KEYS, BookListState

APP_NAME = "Book Collection CLI"

console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_library(store: Optional[str] = None, db_file: Optional[str] = None) -> Library:
    """Open the configured store once and wrap it in the coordinator."""
    app_settings = replace(
        settings,
        storage_backend=store or settings.storage_backend,
        db_file=db_file or settings.db_file,
    )
    return Library(create_store(app_settings))


def load_preferences() -> CLIConfig:
    return CLIConfig(settings.config_dir)


def describe_error(error: LibraryError) -> str:
    if isinstance(error, ValidationError):
        return f"Invalid input: {error}"
    if isinstance(error, NotFound):
        return str(error)
    if isinstance(error, PersistenceError):
        return f"Storage error: {error}"
    return f"Error: {error}"


def _fail(error: LibraryError) -> None:
    print(describe_error(error))
    raise typer.Exit(code=1)


# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME, invoke_without_command=True, no_args_is_help=False)


@app.callback()
def _global_options(
    ctx: typer.Context,
    store: Optional[str] = typer.Option(None, "--store", "-s", help="Storage backend: sqlite | memory"),
    db_file: Optional[str] = typer.Option(None, "--db-file", help="SQLite database file"),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Open the collection; without a command, start the interactive menu."""
    configure_logging(settings.log_level)
    if output:
        set_output_mode(output)
    # preferences live outside the collection; opening the store would create the database file
    if ctx.invoked_subcommand == "config":
        return
    try:
        library = build_library(store, db_file)
    except (LibraryError, ValueError) as e:
        print(f"Could not open the collection: {e}")
        raise typer.Exit(code=1)
    ctx.obj = library
    ctx.call_on_close(library.close)

    if ctx.invoked_subcommand is None:
        run_menu(library, load_preferences())


@app.command("list")
def cli_list(
    ctx: typer.Context,
    sort: str = typer.Option("id", "--sort", help="Sort by: id | title | author | genre | copies"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
):
    """List every book in the collection."""
    state = BookListState(ctx.obj)
    try:
        state.set_sort(sort, desc)
        books = state.refresh()
    except LibraryError as e:
        _fail(e)
    print_list_result(books)


@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Author"),
    genre: str = typer.Argument(..., help="Genre"),
    copies: str = typer.Option("1", "--copies", "-c", help="Copies available"),
):
    """Add a book to the collection."""
    library: Library = ctx.obj
    try:
        book = library.add_book(title, author, genre, copies)
    except LibraryError as e:
        _fail(e)
    print(f"Successfully added: {book.title} by {book.author} (id {book.id})")


@app.command("update")
def cli_update(
    ctx: typer.Context,
    book_id: int = typer.Argument(..., help="Book id"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g"),
    copies: Optional[str] = typer.Option(None, "--copies", "-c"),
):
    """Update fields of a book by id."""
    library: Library = ctx.obj
    try:
        book = library.update_book(book_id, title=title, author=author, genre=genre, copies=copies)
    except LibraryError as e:
        _fail(e)
    print(f"Updated: {book.id} - {book.title} by {book.author} [{book.genre}] ({book.copies} copies)")


@app.command("remove")
def cli_remove(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book id")):
    """Remove a book by id."""
    library: Library = ctx.obj
    try:
        library.remove_book(book_id)
    except LibraryError as e:
        _fail(e)
    print(f"Book with id {book_id} has been removed.")


@app.command("find")
def cli_find(ctx: typer.Context, book_id: int = typer.Argument(..., help="Book id")):
    """Find a book by id and show its details."""
    library: Library = ctx.obj
    try:
        book = library.get_book(book_id)
    except LibraryError as e:
        _fail(e)
    print("Book Found")
    print(f"Title: {book.title}")
    print(f"Author: {book.author}")
    print(f"Genre: {book.genre}")
    print(f"Copies: {book.copies}")


@app.command("search")
def cli_search(
    ctx: typer.Context,
    term: str = typer.Argument(..., help="Text to look for"),
    by: str = typer.Option("title", "--by", "-b", help="Field to search: title | author | genre"),
    limit: int = typer.Option(0, "--limit", "-l", help="Maximum results to show (0 = all)"),
):
    """Case-insensitive substring search on title, author or genre."""
    state = BookListState(ctx.obj)
    try:
        books = state.search(by, term)
    except LibraryError as e:
        _fail(e)
    if limit > 0:
        books = books[:limit]
    if not books:
        print("No books match the search.")
        return
    print_list_result(books)


@app.command("export")
def cli_export(
    ctx: typer.Context,
    file: str = typer.Option("books_export.csv", "--file", "-f", help="Destination CSV file"),
):
    """Export the collection to a CSV file."""
    library: Library = ctx.obj
    try:
        books = library.list_books()
    except LibraryError as e:
        _fail(e)
    if not books:
        print("No books to export.")
        return
    try:
        count = export_csv(books, file)
    except OSError as e:
        print(f"Could not write {file}: {e}")
        raise typer.Exit(code=1)
    print(f"Exported {count} books to {file}")


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show collection statistics."""
    library: Library = ctx.obj
    try:
        stats = library.get_statistics()
    except LibraryError as e:
        _fail(e)
    print_stats_result(stats)


@app.command("gui")
def cli_gui(ctx: typer.Context):
    """Open the desktop window."""
    # tkinter is only imported when the window is actually requested
    from gui import run_gui

    run_gui(ctx.obj, load_preferences())


@app.command("config")
def cli_config(
    action: str = typer.Argument(..., help="Action: show, get, set, reset"),
    key: Optional[str] = typer.Argument(None, help="Configuration key (dot notation)"),
    value: Optional[str] = typer.Argument(None, help="Configuration value"),
):
    """Manage UI preferences."""
    preferences = load_preferences()
    if action == "show":
        preferences.show_config()
    elif action == "get":
        if not key:
            print("Error: 'get' needs a key")
            raise typer.Exit(code=1)
        current = preferences.get(key)
        if current is None:
            print(f"Key '{key}' not found")
        else:
            print(f"{key}: {current}")
    elif action == "set":
        if not key or value is None:
            print("Error: 'set' needs both a key and a value")
            raise typer.Exit(code=1)
        parsed = parse_config_value(value)
        preferences.set(key, parsed)
        print(f"{key} set to {parsed}")
    elif action == "reset":
        preferences.reset_to_default()
    else:
        print(f"Unknown action: {action}")
        print("Available actions: show, get, set, reset")
        raise typer.Exit(code=1)


def parse_config_value(value: str) -> Any:
    """Turn 'true'/'false' and numbers typed on the command line into real values."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.lstrip("-").isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


# --- Interactive menu ---
def _show_error(error: LibraryError) -> None:
    style = "yellow" if isinstance(error, NotFound) else "bold red"
    console.print(f"[{style}]{escape(describe_error(error))}[/]")


def list_all_books(state: BookListState) -> None:
    """Show the current view (whole collection or last search), one page at a time."""
    try:
        state.refresh()
    except LibraryError as e:
        _show_error(e)
        return
    if not state.books:
        console.print("[yellow]No books to show.[/]")
        return

    page = 1
    while True:
        heading = "📚 Collection"
        if state.query:
            heading = f"🔎 {state.query[0].title()} contains '{escape(state.query[1])}'"
        console.print(build_books_table(state.page(page), title=heading))
        console.print(
            f"[dim]Page {page}/{state.page_count} · {len(state.books)} books · sorted by "
            f"{state.sort_key}{' desc' if state.descending else ''}[/]"
        )
        if state.page_count == 1:
            return
        choice = Prompt.ask("Page", choices=["n", "p", "q"], default="n" if page < state.page_count else "q")
        if choice == "q":
            return
        page = min(page + 1, state.page_count) if choice == "n" else max(page - 1, 1)


def add(library: Library, state: BookListState) -> None:
    title = Prompt.ask("Title")
    author = Prompt.ask("Author")
    genre = Prompt.ask("Genre")
    copies = Prompt.ask("Copies available", default="1")
    try:
        book = library.add_book(title, author, genre, copies)
    except LibraryError as e:
        _show_error(e)
        return
    console.print(Panel.fit(
        f"[green]Added:[/] [bold]{escape(book.title)}[/] - {escape(book.author)} (id {book.id})",
        title="✅ Success",
        border_style="green",
    ))
    list_all_books(state)


def update(library: Library, state: BookListState) -> None:
    book_id = IntPrompt.ask("Id of the book to update")
    try:
        book = library.get_book(book_id)
    except LibraryError as e:
        _show_error(e)
        return

    console.print("[dim]Press Enter to keep the current value.[/]")
    title = Prompt.ask("Title", default=book.title)
    author = Prompt.ask("Author", default=book.author)
    genre = Prompt.ask("Genre", default=book.genre)
    copies = Prompt.ask("Copies available", default=str(book.copies))
    try:
        book = library.update_book(book_id, title=title, author=author, genre=genre, copies=copies)
    except LibraryError as e:
        _show_error(e)
        return
    console.print(f"[green]✅ Updated [bold]{escape(book.title)}[/].[/]")
    list_all_books(state)


def remove(library: Library, state: BookListState, confirm: bool = True) -> None:
    """Delete a book, asking for confirmation first."""
    book_id = IntPrompt.ask("🔍 Id of the book to delete")
    try:
        book = library.get_book(book_id)
    except LibraryError as e:
        _show_error(e)
        return

    console.print(Panel(
        f"[bold]Title:[/] {escape(book.title)}\n"
        f"[bold]Author:[/] {escape(book.author)}\n"
        f"[bold]Genre:[/] {escape(book.genre)}\n"
        f"[bold]Copies:[/] {book.copies}",
        title="📚 Book to delete",
        border_style="yellow",
    ))
    if confirm and not Confirm.ask("🗑️ Delete this book?", default=False):
        console.print("[blue]🚫 Deletion cancelled.[/]")
        return
    try:
        library.remove_book(book_id)
    except LibraryError as e:
        _show_error(e)
        return
    console.print(f"[green]✅ [bold]{escape(book.title)}[/] deleted.[/]")
    list_all_books(state)


def find(library: Library) -> None:
    book_id = IntPrompt.ask("Id to look up")
    try:
        book = library.get_book(book_id)
    except LibraryError as e:
        _show_error(e)
        return
    console.print(Panel.fit(
        f"[bold]Title:[/] {escape(book.title)}\n"
        f"[bold]Author:[/] {escape(book.author)}\n"
        f"[bold]Genre:[/] {escape(book.genre)}\n"
        f"[bold]Copies:[/] {book.copies}",
        title=f"🔍 Book {book.id}",
        border_style="green",
    ))


def search(state: BookListState) -> None:
    field = Prompt.ask("Search by", choices=list(SEARCHABLE_FIELDS), default="title")
    term = Prompt.ask("Text to look for (empty shows everything)", default="")
    try:
        if term.strip():
            state.search(field, term)
        else:
            state.clear_search()
    except LibraryError as e:
        _show_error(e)
        return
    list_all_books(state)


def sort(state: BookListState) -> None:
    key = Prompt.ask("Sort by", choices=list(SORT_KEYS), default=state.sort_key)
    descending = Confirm.ask("Descending?", default=False)
    state.set_sort(key, descending)
    list_all_books(state)


def export(state: BookListState, default_file: str) -> None:
    path = Prompt.ask("Export to", default=default_file)
    try:
        books = state.refresh()
        count = export_csv(books, path)
    except LibraryError as e:
        _show_error(e)
        return
    except OSError as e:
        console.print(f"[bold red]Could not write {escape(path)}: {escape(str(e))}[/]")
        return
    console.print(f"[green]✅ Exported {count} books to {escape(path)}[/]")


def stats(library: Library) -> None:
    try:
        statistics = library.get_statistics()
    except LibraryError as e:
        _show_error(e)
        return
    console.print(Panel.fit(format_stats(statistics, markup=True), title="📊 Statistics", border_style="blue"))


def run_menu(library: Library, preferences: CLIConfig) -> None:
    """Interactive menu for the collection."""
    state = BookListState.from_preferences(
        library,
        preferences,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    confirm_deletions = bool(preferences.get("ui_settings.confirm_deletions", True))
    export_file = preferences.get("preferences.export_file", "books_export.csv")

    def render_menu() -> None:
        menu_items = [
            ("1", "List books", "📚"),
            ("2", "Add a book", "➕"),
            ("3", "Update a book", "✏️"),
            ("4", "Delete a book", "🗑️"),
            ("5", "Find by id", "🔎"),
            ("6", "Search title / author / genre", "💡"),
            ("7", "Sort", "↕️"),
            ("8", "Export to CSV", "💾"),
            ("9", "Statistics", "📊"),
            ("0", "Exit", "🚪"),
        ]

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

        console.print(Panel(
            table,
            title=settings.app_name,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        ))

    actions = {
        "1": lambda: list_all_books(state),
        "2": lambda: add(library, state),
        "3": lambda: update(library, state),
        "4": lambda: remove(library, state, confirm=confirm_deletions),
        "5": lambda: find(library),
        "6": lambda: search(state),
        "7": lambda: sort(state),
        "8": lambda: export(state, export_file),
        "9": lambda: stats(library),
    }

    while True:
        render_menu()
        choice = Prompt.ask("Choose an option", choices=[*actions, "0"], default="1").strip()
        if choice == "0":
            console.print("[green]Goodbye![/]")
            break
        actions[choice]()
        console.print()


if __name__ == "__main__":
    app(prog_name="book-collection")
