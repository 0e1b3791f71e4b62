"""Exceptions raised by the coordinator and the storage gateways."""


class LibraryError(Exception):
    """Base class for every error the presentation layer reports to the user."""


class ValidationError(LibraryError, ValueError):
    """A book field was rejected before reaching storage."""


class NotFound(LibraryError, LookupError):
    def __init__(self, book_id) -> None:
        self.book_id = book_id
        super().__init__(f"Book with id {book_id} not found.")


class PersistenceError(LibraryError):
    """The store is unreachable or rejected the write."""
