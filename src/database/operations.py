"""
Database Operations Module

Store operations for extracted syllabi:
- create_syllabus: persist a validated document, assigning id and timestamps
- get_syllabus: retrieve one document by identifier
- list_syllabi: summary projection (no topic trees) for listing
- delete_syllabus: administrative deletion by identifier

Documents are immutable once created; there is no update operation.
"""

import json
import uuid
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.database.connections import DatabaseConnectionError, get_connection
from src.database.schema import SchemaError, create_schema
from src.models import SyllabusDocument, topics_from_list
from src.utils.logging_config import logger


class DatabaseError(Exception):
    """Raised when database operations fail."""
    pass


SUMMARY_COLUMNS = (
    "id, subject, curriculum_type, category, grade_range, form, extraction_method, "
    "topic_count, subtopic_count, outcome_count, created_at, updated_at"
)


def _ensure_schema(db_path: Optional[Path]) -> None:
    try:
        create_schema(db_path=db_path)
    except SchemaError as e:
        raise DatabaseError(f"Syllabus store unavailable: {e}") from e


def create_syllabus(document: SyllabusDocument, db_path: Optional[Path] = None) -> SyllabusDocument:
    """
    Persist a parsed syllabus document.

    Assigns ``id``, ``created_at`` and ``updated_at`` on the document.

    Args:
        document: Validated document with at least one Topic
        db_path: Database path (defaults to DATABASE_PATH from config)

    Returns:
        The same document with identity fields set

    Raises:
        DatabaseError: If the document has no Topics or the insert fails
            (including curriculum kind / category constraint violations)

    Example:
        >>> stored = create_syllabus(document)
        >>> print(stored.id)
    """
    if not document.topics:
        raise DatabaseError("Refusing to store a syllabus with no topics")

    _ensure_schema(db_path)

    document_id = str(uuid.uuid4())
    now = datetime.now(UTC)
    counts = document.counts()
    topics_json = json.dumps([t.to_dict() for t in document.topics], ensure_ascii=False)

    try:
        with get_connection(db_path) as conn:
            conn.execute(
                """
                INSERT INTO syllabi (
                    id, subject, curriculum_type, category, grade_range, form,
                    extraction_method, topics_json, topic_count, subtopic_count,
                    outcome_count, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document_id,
                    document.subject,
                    document.curriculum_type,
                    document.category,
                    document.grade_range,
                    document.form,
                    document.extraction_method,
                    topics_json,
                    counts["topics"],
                    counts["subtopics"],
                    counts["outcomes"],
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
    except DatabaseConnectionError as e:
        logger.error(f"Failed to store syllabus '{document.subject}': {e}")
        raise DatabaseError(f"Failed to store syllabus: {e}") from e

    document.id = document_id
    document.created_at = now
    document.updated_at = now

    logger.success(
        f"✓ Stored syllabus {document_id} ({document.subject}, {document.curriculum_type}): "
        f"{counts['topics']} topics, {counts['subtopics']} subtopics, {counts['outcomes']} outcomes"
    )
    return document


def _row_to_document(row) -> SyllabusDocument:
    return SyllabusDocument(
        id=row["id"],
        subject=row["subject"],
        curriculum_type=row["curriculum_type"],
        category=row["category"],
        grade_range=row["grade_range"],
        form=row["form"],
        extraction_method=row["extraction_method"],
        topics=topics_from_list(json.loads(row["topics_json"])),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def get_syllabus(syllabus_id: str, db_path: Optional[Path] = None) -> Optional[SyllabusDocument]:
    """
    Retrieve one syllabus by identifier.

    Returns:
        SyllabusDocument, or None if no such record exists

    Raises:
        DatabaseError: If the query fails
    """
    _ensure_schema(db_path)

    try:
        with get_connection(db_path) as conn:
            row = conn.execute("SELECT * FROM syllabi WHERE id = ?", (syllabus_id,)).fetchone()
    except DatabaseConnectionError as e:
        raise DatabaseError(f"Failed to load syllabus {syllabus_id}: {e}") from e

    if row is None:
        logger.debug(f"Syllabus not found: {syllabus_id}")
        return None
    return _row_to_document(row)


def list_syllabi(
    subject: Optional[str] = None,
    curriculum_type: Optional[str] = None,
    db_path: Optional[Path] = None,
) -> List[Dict[str, Any]]:
    """
    List stored syllabi as summary records, newest first.

    Args:
        subject: Optional exact subject filter
        curriculum_type: Optional "cbc" / "obc" filter
        db_path: Database path (defaults to DATABASE_PATH from config)

    Returns:
        List of dicts with identity, descriptors and node counts (no topics)

    Raises:
        DatabaseError: If the query fails
    """
    _ensure_schema(db_path)

    clauses = []
    params: List[Any] = []
    if subject:
        clauses.append("subject = ?")
        params.append(subject)
    if curriculum_type:
        clauses.append("curriculum_type = ?")
        params.append(curriculum_type)

    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    query = f"SELECT {SUMMARY_COLUMNS} FROM syllabi{where} ORDER BY created_at DESC"

    try:
        with get_connection(db_path) as conn:
            rows = conn.execute(query, params).fetchall()
    except DatabaseConnectionError as e:
        raise DatabaseError(f"Failed to list syllabi: {e}") from e

    return [
        {
            "id": row["id"],
            "subject": row["subject"],
            "curriculumType": row["curriculum_type"],
            "category": row["category"],
            "gradeRange": row["grade_range"],
            "form": row["form"],
            "extractionMethod": row["extraction_method"],
            "topicCount": row["topic_count"],
            "subtopicCount": row["subtopic_count"],
            "outcomeCount": row["outcome_count"],
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }
        for row in rows
    ]


def delete_syllabus(syllabus_id: str, db_path: Optional[Path] = None) -> bool:
    """
    Delete one syllabus by identifier.

    Returns:
        True if a record was deleted, False if none matched

    Raises:
        DatabaseError: If the delete fails
    """
    _ensure_schema(db_path)

    try:
        with get_connection(db_path) as conn:
            cursor = conn.execute("DELETE FROM syllabi WHERE id = ?", (syllabus_id,))
            deleted = cursor.rowcount > 0
    except DatabaseConnectionError as e:
        raise DatabaseError(f"Failed to delete syllabus {syllabus_id}: {e}") from e

    if deleted:
        logger.info(f"Deleted syllabus {syllabus_id}")
    else:
        logger.warning(f"No syllabus found to delete: {syllabus_id}")
    return deleted


__all__ = [
    "DatabaseError",
    "create_syllabus",
    "get_syllabus",
    "list_syllabi",
    "delete_syllabus",
]
