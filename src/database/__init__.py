"""
Database Module for the Syllabus Structure Extraction Engine

Provides SQLite connection management, the syllabus schema and the store
operations (create, get, list, delete).
"""

from src.database.connections import (
    get_connection,
    verify_connection,
    DatabaseConnectionError,
)
from src.database.schema import (
    create_schema,
    validate_schema,
    get_table_stats,
    SchemaError,
)
from src.database.operations import (
    DatabaseError,
    create_syllabus,
    get_syllabus,
    list_syllabi,
    delete_syllabus,
)

__all__ = [
    # Connection management
    "get_connection",
    "verify_connection",
    "DatabaseConnectionError",
    # Schema management
    "create_schema",
    "validate_schema",
    "get_table_stats",
    "SchemaError",
    # Store operations
    "DatabaseError",
    "create_syllabus",
    "get_syllabus",
    "list_syllabi",
    "delete_syllabus",
]
