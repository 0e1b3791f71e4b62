"""Storage gateways for the book collection.

``BookStore`` is the capability set the coordinator depends on. Two
implementations are provided: ``InMemoryBookStore`` keeps records in a dict for
the lifetime of the process, ``SqliteBookStore`` persists them in the ``books``
table. ``create_store`` picks one from the application settings.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, List, Protocol

from book import Book
from database import initialize_database
from errors import NotFound, PersistenceError

logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ("title", "author", "genre")

# Largest value a SQLite INTEGER column can hold
SQLITE_MAX_INTEGER = 2**63 - 1


def fits_integer_column(value) -> bool:
    return isinstance(value, int) and -SQLITE_MAX_INTEGER - 1 <= value <= SQLITE_MAX_INTEGER


class BookStore(Protocol):
    """Contract shared by every storage gateway.

    Identifiers are assigned by the store on ``add`` and never change.
    Substring searches are case-insensitive and return an empty list when
    nothing matches.
    """

    def add(self, book: Book) -> int:
        """Persist a book that has no id yet and return the id assigned to it.

        Raises:
            PersistenceError: If the store is unavailable or rejects the record
        """
        ...

    def get_by_id(self, book_id: int) -> Book:
        """Raises NotFound if no record has this id."""
        ...

    def get_all(self) -> List[Book]:
        ...

    def update(self, book: Book) -> None:
        """Overwrite title, author, genre and copies of the record with ``book.id``.

        Raises:
            NotFound: If no record has this id
        """
        ...

    def delete(self, book_id: int) -> None:
        """Raises NotFound if no record has this id."""
        ...

    def search_by_title(self, substring: str) -> List[Book]:
        ...

    def search_by_author(self, substring: str) -> List[Book]:
        ...

    def search_by_genre(self, substring: str) -> List[Book]:
        ...

    def close(self) -> None:
        ...


class InMemoryBookStore:
    """Dict-backed store. Ids start at 1 and are never reused."""

    def __init__(self) -> None:
        self._books: Dict[int, Book] = {}
        self._next_id = 1
        self._closed = False

    def __enter__(self) -> "InMemoryBookStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise PersistenceError("The in-memory store has been closed.")

    @staticmethod
    def _check_constraints(book: Book) -> None:
        # Same rule the SQLite schema enforces with CHECK(copies_available >= 0)
        if not fits_integer_column(book.copies) or book.copies < 0:
            raise PersistenceError(f"Invalid copies value {book.copies!r} for {book.title!r}.")

    def add(self, book: Book) -> int:
        self._ensure_open()
        if book.id is not None:
            raise PersistenceError(f"Book already has id {book.id}; use update instead.")
        self._check_constraints(book)
        book_id = self._next_id
        self._next_id += 1
        self._books[book_id] = book.with_id(book_id)
        logger.info(f"Added book id={book_id} title={book.title!r}")
        return book_id

    def get_by_id(self, book_id: int) -> Book:
        self._ensure_open()
        try:
            return self._books[book_id].copy()
        except KeyError:
            raise NotFound(book_id) from None

    def get_all(self) -> List[Book]:
        self._ensure_open()
        # dicts keep insertion order, which is also id order here
        return [book.copy() for book in self._books.values()]

    def update(self, book: Book) -> None:
        self._ensure_open()
        if book.id not in self._books:
            raise NotFound(book.id)
        self._check_constraints(book)
        self._books[book.id] = book.copy()
        logger.info(f"Updated book id={book.id}")

    def delete(self, book_id: int) -> None:
        self._ensure_open()
        if self._books.pop(book_id, None) is None:
            raise NotFound(book_id)
        logger.info(f"Deleted book id={book_id}")

    def _search(self, field: str, substring: str) -> List[Book]:
        self._ensure_open()
        needle = (substring or "").strip().casefold()
        return [
            book.copy()
            for book in self._books.values()
            if needle in getattr(book, field).casefold()
        ]

    def search_by_title(self, substring: str) -> List[Book]:
        return self._search("title", substring)

    def search_by_author(self, substring: str) -> List[Book]:
        return self._search("author", substring)

    def search_by_genre(self, substring: str) -> List[Book]:
        return self._search("genre", substring)

    def close(self) -> None:
        self._closed = True


class SqliteBookStore:
    """Store backed by the ``books`` table of a SQLite database.

    The connection is opened once at construction and released by ``close``.
    Every statement is parameterized; any ``sqlite3.Error`` surfaces as
    ``PersistenceError`` and failed writes are rolled back.
    """

    _COLUMNS = "id, title, author, genre, copies_available"

    def __init__(self, db_file: str) -> None:
        self.db_file = db_file
        try:
            self._conn = initialize_database(db_file)
        except sqlite3.Error as e:
            logger.error(f"Could not open database {db_file}: {e}")
            raise PersistenceError(f"Could not open database {db_file}: {e}") from e
        # SQLite's own lower()/LIKE only fold ASCII letters
        self._conn.create_function("casefold", 1, _casefold, deterministic=True)

    def __enter__(self) -> "SqliteBookStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        try:
            cursor = self._conn.cursor()
            yield cursor
            self._conn.commit()
        except (sqlite3.Error, OverflowError) as e:
            # sqlite3 raises OverflowError for ints wider than 64 bits
            try:
                self._conn.rollback()
            except sqlite3.Error:
                # Closed connections cannot roll back; nothing was written either way.
                pass
            logger.error(f"Database error on {self.db_file}: {e}")
            raise PersistenceError(str(e)) from e

    def _query(self, sql: str, params: tuple = ()) -> List[Book]:
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Database error on {self.db_file}: {e}")
            raise PersistenceError(str(e)) from e
        return [Book.from_dict(dict(row)) for row in rows]

    def add(self, book: Book) -> int:
        if book.id is not None:
            raise PersistenceError(f"Book already has id {book.id}; use update instead.")
        with self._transaction() as cursor:
            cursor.execute(
                "INSERT INTO books (title, author, genre, copies_available) VALUES (?, ?, ?, ?)",
                (book.title, book.author, book.genre, book.copies),
            )
            book_id = cursor.lastrowid
        logger.info(f"Added book id={book_id} title={book.title!r}")
        return book_id

    def get_by_id(self, book_id: int) -> Book:
        if not fits_integer_column(book_id):
            raise NotFound(book_id)
        rows = self._query(f"SELECT {self._COLUMNS} FROM books WHERE id = ?", (book_id,))
        if not rows:
            raise NotFound(book_id)
        return rows[0]

    def get_all(self) -> List[Book]:
        return self._query(f"SELECT {self._COLUMNS} FROM books ORDER BY id")

    def update(self, book: Book) -> None:
        if not fits_integer_column(book.id):
            raise NotFound(book.id)
        with self._transaction() as cursor:
            cursor.execute(
                "UPDATE books SET title = ?, author = ?, genre = ?, copies_available = ? WHERE id = ?",
                (book.title, book.author, book.genre, book.copies, book.id),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise NotFound(book.id)
        logger.info(f"Updated book id={book.id}")

    def delete(self, book_id: int) -> None:
        if not fits_integer_column(book_id):
            raise NotFound(book_id)
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM books WHERE id = ?", (book_id,))
            deleted = cursor.rowcount
        if deleted == 0:
            raise NotFound(book_id)
        logger.info(f"Deleted book id={book_id}")

    def _search(self, field: str, substring: str) -> List[Book]:
        if field not in SEARCHABLE_FIELDS:
            raise ValueError(f"Cannot search by {field!r}")
        needle = (substring or "").strip().casefold()
        return self._query(
            f"SELECT {self._COLUMNS} FROM books WHERE instr(casefold({field}), ?) > 0 ORDER BY id",
            (needle,),
        )

    def search_by_title(self, substring: str) -> List[Book]:
        return self._search("title", substring)

    def search_by_author(self, substring: str) -> List[Book]:
        return self._search("author", substring)

    def search_by_genre(self, substring: str) -> List[Book]:
        return self._search("genre", substring)

    def close(self) -> None:
        self._conn.close()


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def create_store(settings) -> BookStore:
    """Build the store selected by ``settings.storage_backend``."""
    backend = (settings.storage_backend or "sqlite").lower()
    if backend == "memory":
        logger.info("Using in-memory book store")
        return InMemoryBookStore()
    if backend == "sqlite":
        logger.info(f"Using SQLite book store at {settings.db_file}")
        return SqliteBookStore(settings.db_file)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r} (use 'sqlite' or 'memory')")
