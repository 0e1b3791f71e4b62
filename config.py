import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Storage settings
    storage_backend: str = field(default_factory=lambda: os.getenv("LIBRARY_STORAGE", "sqlite").lower())
    db_file: str = field(
        default_factory=lambda: os.getenv("LIBRARY_DB_FILE") or os.getenv("LIBRARY_DATA_FILE") or "library.db"
    )

    # Directory holding the UI preferences file (defaults to ~/.book-collection)
    config_dir: Optional[str] = field(default_factory=lambda: os.getenv("LIBRARY_CONFIG_DIR"))

    # Application settings
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Book Collection"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING").upper())

    # Paging settings; saved page sizes above the maximum are capped
    default_page_size: int = field(default_factory=lambda: int(os.getenv("DEFAULT_PAGE_SIZE", "20")))
    max_page_size: int = field(default_factory=lambda: int(os.getenv("MAX_PAGE_SIZE", "100")))


settings = Settings()
