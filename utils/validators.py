from typing import Any, Optional

from errors import ValidationError

# Copy counts are stored in a 64-bit SQLite INTEGER column
MAX_COPIES = 2**63 - 1


class TextValidator:
    """Checks for the free-text book fields."""

    @staticmethod
    def require(text: Optional[str], field_name: str) -> str:
        cleaned = str(text).strip() if text is not None else ""
        if not cleaned:
            raise ValidationError(f"{field_name} cannot be empty.")
        return cleaned


class CopiesValidator:
    """Copy counts arrive as ints from code and as strings from forms."""

    @staticmethod
    def parse(value: Any) -> int:
        # bool is an int subclass; True copies makes no sense
        if isinstance(value, bool):
            raise ValidationError("Copies must be a whole number.")
        if isinstance(value, int):
            count = value
        else:
            text = str(value).strip() if value is not None else ""
            if not text:
                raise ValidationError("Copies cannot be empty.")
            try:
                count = int(text)
            except ValueError:
                raise ValidationError(f"Copies must be a whole number, got {text!r}.") from None
        if count < 0:
            raise ValidationError("Copies cannot be negative.")
        if count > MAX_COPIES:
            raise ValidationError(f"Copies cannot be more than {MAX_COPIES}.")
        return count
