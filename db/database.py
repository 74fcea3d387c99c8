import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".lexiloop"
DB_PATH = CONFIG_DIR / "lexiloop.db"

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_progress_last_reviewed(conn)
        ensure_session_combined_score(conn)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("Database ready at %s (schema v%s)", DB_PATH, SCHEMA_VERSION)

def ensure_progress_last_reviewed(conn: sqlite3.Connection) -> None:
    """Ensure card_progress has last_reviewed_at for installs created before v2."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(card_progress)")
    columns = {row[1] for row in cursor.fetchall()}
    if "last_reviewed_at" not in columns:
        cursor.execute("ALTER TABLE card_progress ADD COLUMN last_reviewed_at TEXT")

def ensure_session_combined_score(conn: sqlite3.Connection) -> None:
    """Ensure practice_sessions has combined_score for installs created before v2."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(practice_sessions)")
    columns = {row[1] for row in cursor.fetchall()}
    if "combined_score" not in columns:
        cursor.execute("ALTER TABLE practice_sessions ADD COLUMN combined_score INTEGER")

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, detect_types=sqlite3.PARSE_DECLTYPES, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
