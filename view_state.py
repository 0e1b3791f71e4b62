"""What the user is currently looking at: the last query, its sort order and paging."""

import logging
import math
from typing import List, Optional, Tuple

from book import Book
from errors import ValidationError
from library import Library
from storage import SEARCHABLE_FIELDS

SORT_KEYS = ("id", "title", "author", "genre", "copies")

logger = logging.getLogger(__name__)


class BookListState:
    def __init__(self, library: Library, page_size: int = 20, sort_key: str = "id", descending: bool = False) -> None:
        self.library = library
        self.page_size = max(1, int(page_size))
        self.query: Optional[Tuple[str, str]] = None
        self.books: List[Book] = []
        self.set_sort(sort_key, descending)

    @classmethod
    def from_preferences(cls, library: Library, preferences, default_page_size: int = 20, max_page_size: int = 100) -> "BookListState":
        """Build the view from saved preferences, falling back to defaults for anything invalid."""
        page_size = preferences.get("preferences.page_size", default_page_size)
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            logger.warning(f"Ignoring invalid page size preference {page_size!r}")
            page_size = default_page_size
        page_size = min(page_size, max_page_size)

        sort_key = preferences.get("preferences.sort_by", "id")
        if not isinstance(sort_key, str) or sort_key.strip().lower() not in SORT_KEYS:
            logger.warning(f"Ignoring invalid sort preference {sort_key!r}")
            sort_key = "id"

        descending = preferences.get("preferences.sort_descending", False)
        return cls(library, page_size=page_size, sort_key=sort_key, descending=descending is True)

    @property
    def is_filtered(self) -> bool:
        return self.query is not None

    def refresh(self) -> List[Book]:
        """Reload from the last search, or from the whole collection when there is none."""
        if self.query is None:
            books = self.library.list_books()
        else:
            field, term = self.query
            books = self.library.search(field, term)
        self.books = self._sorted(books)
        return self.books

    def search(self, field: str, term: str) -> List[Book]:
        field = (field or "").strip().lower()
        if field not in SEARCHABLE_FIELDS:
            raise ValidationError(f"Cannot search by {field!r}. Use one of: {', '.join(SEARCHABLE_FIELDS)}.")
        self.query = (field, (term or "").strip())
        return self.refresh()

    def clear_search(self) -> List[Book]:
        self.query = None
        return self.refresh()

    def set_sort(self, key: str, descending: bool = False) -> None:
        key = (key or "id").strip().lower()
        if key not in SORT_KEYS:
            raise ValidationError(f"Cannot sort by {key!r}. Use one of: {', '.join(SORT_KEYS)}.")
        self.sort_key = key
        self.descending = descending
        self.books = self._sorted(self.books)

    def toggle_sort(self, key: str) -> None:
        """Clicking the same column twice flips the direction."""
        descending = not self.descending if key == self.sort_key else False
        self.set_sort(key, descending)

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.books) / self.page_size))

    def page(self, number: int = 1) -> List[Book]:
        number = min(max(1, number), self.page_count)
        start = (number - 1) * self.page_size
        return self.books[start:start + self.page_size]

    def _sorted(self, books: List[Book]) -> List[Book]:
        def sort_value(book: Book):
            value = getattr(book, self.sort_key)
            if isinstance(value, str):
                return (value.casefold(), book.id or 0)
            return (value if value is not None else 0, book.id or 0)

        return sorted(books, key=sort_value, reverse=self.descending)
