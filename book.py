from __future__ import annotations

from dataclasses import asdict, dataclass, replace


@dataclass
class Book:
    """A single book in the personal collection."""

    title: str
    author: str
    genre: str
    copies: int = 0
    id: int | None = None

    def __post_init__(self) -> None:
        self.title = (self.title or "").strip()
        self.author = (self.author or "").strip()
        self.genre = (self.genre or "").strip()

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} [{self.genre}] ({self.copies} copies)"

    def with_id(self, book_id: int) -> "Book":
        """Return a copy carrying the storage-assigned identifier."""
        if self.id is not None and self.id != book_id:
            raise ValueError(f"Book already has id {self.id}; ids cannot be reassigned.")
        return replace(self, id=book_id)

    def copy(self) -> "Book":
        return replace(self)

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # SQLite rows use the column name copies_available
        copies = data.get("copies", data.get("copies_available", 0))
        return Book(
            id=data.get("id"),
            title=data["title"],
            author=data["author"],
            genre=data.get("genre") or "",
            copies=int(copies or 0),
        )
