import logging
from typing import Any, Dict, List, Optional

from book import Book
from errors import ValidationError
from storage import SEARCHABLE_FIELDS, BookStore
from utils.validators import CopiesValidator, TextValidator

logger = logging.getLogger(__name__)


class Library:
    """Forwards user actions to the storage gateway.

    Fields are validated here so bad input never reaches the store; errors
    raised by the store are passed through unchanged.
    """

    def __init__(self, store: BookStore) -> None:
        self.store = store

    # ------------------------- Core operations ------------------------- #
    def add_book(self, title: str, author: str, genre: str, copies: Any = 0) -> Book:
        """Validate the fields, persist a new book and return it with its id."""
        book = self._validated(title, author, genre, copies)
        book_id = self.store.add(book)
        return book.with_id(book_id)

    def get_book(self, book_id: int) -> Book:
        return self.store.get_by_id(book_id)

    def list_books(self) -> List[Book]:
        return self.store.get_all()

    def update_book(
        self,
        book_id: int,
        *,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        copies: Any = None,
    ) -> Book:
        """Change any of title/author/genre/copies of a book. The id never changes."""
        if title is None and author is None and genre is None and copies is None:
            self._reject("Nothing to update. Provide title, author, genre and/or copies.")

        current = self.store.get_by_id(book_id)
        updated = self._validated(
            current.title if title is None else title,
            current.author if author is None else author,
            current.genre if genre is None else genre,
            current.copies if copies is None else copies,
        ).with_id(current.id)
        self.store.update(updated)
        return updated

    def remove_book(self, book_id: int) -> None:
        self.store.delete(book_id)

    def search(self, field: str, term: str) -> List[Book]:
        """Case-insensitive substring search on title, author or genre."""
        field = (field or "").strip().lower()
        if field not in SEARCHABLE_FIELDS:
            self._reject(f"Cannot search by {field!r}. Use one of: {', '.join(SEARCHABLE_FIELDS)}.")
        return getattr(self.store, f"search_by_{field}")(term or "")

    def search_by_title(self, term: str) -> List[Book]:
        return self.store.search_by_title(term)

    def search_by_author(self, term: str) -> List[Book]:
        return self.store.search_by_author(term)

    def search_by_genre(self, term: str) -> List[Book]:
        return self.store.search_by_genre(term)

    def get_statistics(self) -> Dict[str, Any]:
        books = self.store.get_all()
        return {
            "total_books": len(books),
            "total_copies": sum(b.copies for b in books),
            "unique_authors": len({b.author.casefold() for b in books}),
            "unique_genres": len({b.genre.casefold() for b in books}),
            "out_of_stock": sum(1 for b in books if b.copies == 0),
        }

    def close(self) -> None:
        self.store.close()

    # ------------------------- Utilities ------------------------- #
    def _validated(self, title: Any, author: Any, genre: Any, copies: Any) -> Book:
        try:
            return Book(
                title=TextValidator.require(title, "Title"),
                author=TextValidator.require(author, "Author"),
                genre=TextValidator.require(genre, "Genre"),
                copies=CopiesValidator.parse(copies),
            )
        except ValidationError as e:
            logger.warning(f"Rejected book fields: {e}")
            raise

    @staticmethod
    def _reject(message: str) -> None:
        logger.warning(f"Rejected request: {message}")
        raise ValidationError(message)
