"""
Database Schema Module for the Syllabus Store

Defines the SQLite schema for extracted syllabi:
- One row per parsed syllabus document
- Curriculum kind and education category enumerations enforced by CHECK
  constraints (last line of validation after the model layer)
- The Topic tree stored as JSON in its canonical camelCase shape
- Denormalized node counts for the summary listing
- Creation and last-modified timestamps

Transaction boundaries are enforced at the operation level.
"""

import sqlite3
from pathlib import Path
from typing import Optional

from src.config import CURRICULUM_TYPES, DATABASE_PATH, EDUCATION_CATEGORIES
from src.utils.logging_config import logger


class SchemaError(Exception):
    """Raised when schema creation or validation fails."""
    pass


def _sql_list(values) -> str:
    return ", ".join(f"'{v}'" for v in values)


# ==================================
# Schema DDL Statements
# ==================================

# Syllabi table: one extracted syllabus document per row
SYLLABI_TABLE = f"""
CREATE TABLE IF NOT EXISTS syllabi (
    id TEXT PRIMARY KEY,
    subject TEXT NOT NULL,
    curriculum_type TEXT NOT NULL,
    category TEXT,
    grade_range TEXT,
    form TEXT,
    extraction_method TEXT,
    topics_json TEXT NOT NULL DEFAULT '[]',
    topic_count INTEGER NOT NULL DEFAULT 0,
    subtopic_count INTEGER NOT NULL DEFAULT 0,
    outcome_count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL,
    CONSTRAINT valid_curriculum_type CHECK (curriculum_type IN ({_sql_list(CURRICULUM_TYPES)})),
    CONSTRAINT valid_category CHECK (category IS NULL OR category IN ({_sql_list(EDUCATION_CATEGORIES)})),
    CONSTRAINT non_empty_subject CHECK (length(trim(subject)) > 0)
);
"""

SYLLABI_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_syllabi_subject ON syllabi(subject);",
    "CREATE INDEX IF NOT EXISTS idx_syllabi_curriculum_type ON syllabi(curriculum_type);",
    "CREATE INDEX IF NOT EXISTS idx_syllabi_created_at ON syllabi(created_at);",
]

REQUIRED_TABLES = ["syllabi"]


def create_schema(db_path: Optional[Path] = None, force_recreate: bool = False) -> None:
    """
    Create all database tables and indexes.

    Args:
        db_path: Path to SQLite database file (defaults to DATABASE_PATH from config)
        force_recreate: If True, drop all tables and recreate from scratch

    Raises:
        SchemaError: If schema creation fails
    """
    db_path = Path(db_path or DATABASE_PATH)

    logger.debug(f"Creating database schema at: {db_path}")

    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = None
    try:
        conn = sqlite3.connect(str(db_path))
        cursor = conn.cursor()

        try:
            if force_recreate:
                logger.warning("Force recreate enabled - dropping all existing tables")
                _drop_all_tables(cursor)

            logger.debug("Creating syllabi table...")
            cursor.execute(SYLLABI_TABLE)
            for idx_sql in SYLLABI_INDEXES:
                cursor.execute(idx_sql)

            conn.commit()
            logger.debug(f"Database schema ready at {db_path}")

        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Schema creation failed, rolling back: {e}")
            raise SchemaError(f"Failed to create schema: {e}") from e

    except sqlite3.Error as e:
        logger.error(f"Database connection error: {e}")
        raise SchemaError(f"Database error: {e}") from e

    finally:
        if conn:
            conn.close()


def _drop_all_tables(cursor: sqlite3.Cursor) -> None:
    """
    Drop all tables in the database (used for force_recreate).

    Args:
        cursor: SQLite cursor object
    """
    for table in REQUIRED_TABLES:
        cursor.execute(f"DROP TABLE IF EXISTS {table};")
        logger.debug(f"Dropped table: {table}")


def validate_schema(db_path: Optional[Path] = None) -> bool:
    """
    Validate that all required tables exist.

    Args:
        db_path: Path to SQLite database file (defaults to DATABASE_PATH from config)

    Returns:
        True if schema is valid, False otherwise
    """
    db_path = Path(db_path or DATABASE_PATH)

    if not db_path.exists():
        logger.error(f"Database file does not exist: {db_path}")
        return False

    conn = None
    try:
        conn = sqlite3.connect(str(db_path))
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        existing_tables = {row[0] for row in cursor.fetchall()}

        missing_tables = set(REQUIRED_TABLES) - existing_tables
        if missing_tables:
            logger.error(f"Missing tables: {missing_tables}")
            return False

        logger.debug("Schema validation passed")
        return True

    except sqlite3.Error as e:
        logger.error(f"Schema validation error: {e}")
        return False

    finally:
        if conn:
            conn.close()


def get_table_stats(db_path: Optional[Path] = None) -> dict:
    """
    Get row counts for all tables in the database.

    Returns:
        Dictionary mapping table names to row counts (-1 if unreadable)
    """
    db_path = Path(db_path or DATABASE_PATH)

    if not db_path.exists():
        logger.error(f"Database file does not exist: {db_path}")
        return {}

    stats = {}
    conn = None
    try:
        conn = sqlite3.connect(str(db_path))
        cursor = conn.cursor()

        for table in REQUIRED_TABLES:
            try:
                cursor.execute(f"SELECT COUNT(*) FROM {table};")
                stats[table] = cursor.fetchone()[0]
            except sqlite3.Error as e:
                logger.warning(f"Could not get stats for {table}: {e}")
                stats[table] = -1

        return stats

    except sqlite3.Error as e:
        logger.error(f"Error getting table stats: {e}")
        return {}

    finally:
        if conn:
            conn.close()


# ==================================
# Exports
# ==================================

__all__ = [
    "create_schema",
    "validate_schema",
    "get_table_stats",
    "SchemaError",
]
