import sqlite3
import os


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Open a connection to the SQLite database with name-addressable rows."""
    if db_file != ":memory:":
        parent = os.path.dirname(os.path.abspath(db_file))
        os.makedirs(parent, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(conn: sqlite3.Connection) -> None:
    """Create the books table and its indices if they do not exist."""
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS books (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            genre TEXT NOT NULL DEFAULT '',
            copies_available INTEGER NOT NULL DEFAULT 0 CHECK(copies_available >= 0)
        )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_author ON books(author)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_genre ON books(genre)")
    conn.commit()


def initialize_database(db_file: str) -> sqlite3.Connection:
    """Open the database and make sure the schema exists. Caller owns the connection."""
    conn = get_db_connection(db_file)
    try:
        create_tables(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn
