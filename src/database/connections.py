"""
Database Connection Management for the Syllabus Store

Provides SQLite connection management with:
- Foreign key constraint enforcement
- Write-Ahead Logging (WAL) for better concurrency
- Proper transaction handling and cleanup
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from src.config import DATABASE_PATH
from src.utils.logging_config import logger


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


def _configure_connection(conn: sqlite3.Connection) -> None:
    """
    Configure SQLite connection pragmas.

    - Foreign keys: Enforce referential integrity
    - WAL mode: Write-Ahead Logging for concurrent readers
    - NORMAL synchronous: Balance between safety and performance

    Args:
        conn: SQLite connection object
    """
    cursor = conn.cursor()

    cursor.execute("PRAGMA foreign_keys = ON;")
    cursor.execute("PRAGMA journal_mode = WAL;")
    cursor.execute("PRAGMA synchronous = NORMAL;")
    logger.debug("Connection pragmas applied (foreign_keys, WAL, synchronous=NORMAL)")

    cursor.close()


@contextmanager
def get_connection(
    db_path: Optional[Path] = None,
    read_only: bool = False,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for SQLite database connections.

    Provides a configured connection with:
    - Row factory for dict-like access
    - Automatic commit on success
    - Automatic rollback on error
    - Guaranteed cleanup

    Args:
        db_path: Path to SQLite database file (defaults to DATABASE_PATH from config)
        read_only: Open connection in read-only mode (default: False)

    Yields:
        sqlite3.Connection: Configured database connection

    Raises:
        DatabaseConnectionError: If connection cannot be established or a
            database error occurs

    Example:
        >>> from src.database.connections import get_connection
        >>> with get_connection() as conn:
        ...     count = conn.execute("SELECT COUNT(*) FROM syllabi").fetchone()[0]
        ...     print(f"Syllabi: {count}")
    """
    db_path = Path(db_path or DATABASE_PATH)

    if not read_only:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = None

    try:
        if read_only:
            if not db_path.exists():
                raise DatabaseConnectionError(f"Database file does not exist: {db_path}")
            conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
            logger.debug(f"Opened read-only connection to: {db_path}")
        else:
            conn = sqlite3.connect(str(db_path))
            logger.debug(f"Opened connection to: {db_path}")

        conn.row_factory = sqlite3.Row

        if not read_only:
            _configure_connection(conn)

        yield conn

        if not read_only:
            conn.commit()
            logger.debug("Transaction committed successfully")

    except sqlite3.Error as e:
        if conn and not read_only:
            conn.rollback()
            logger.warning("Transaction rolled back due to error")

        error_msg = f"Database error: {e}"
        logger.error(error_msg)
        raise DatabaseConnectionError(error_msg) from e

    except Exception:
        if conn and not read_only:
            conn.rollback()
            logger.warning("Transaction rolled back due to error")
        raise

    finally:
        if conn:
            conn.close()
            logger.debug("Connection closed")


def verify_connection(db_path: Optional[Path] = None) -> bool:
    """
    Verify that the database file can be opened and queried.

    Returns:
        bool: True if a basic query succeeds
    """
    db_path = db_path or DATABASE_PATH

    try:
        with get_connection(db_path=db_path, read_only=True) as conn:
            result = conn.execute("SELECT 1").fetchone()
            if result[0] != 1:
                logger.error("Basic query test failed")
                return False

            logger.info("Database connection verified successfully")
            return True

    except DatabaseConnectionError as e:
        logger.error(f"Connection verification failed: {e}")
        return False


__all__ = [
    "get_connection",
    "verify_connection",
    "DatabaseConnectionError",
]
