"""
STEP 4 — STORAGE

Persists a successfully extracted syllabus document. Only reached when a
non-empty tree exists; failed extractions are never stored.

Input: SyllabusDocument
Output: Stored SyllabusDocument (id and timestamps assigned)
"""

from pathlib import Path
from typing import Optional

from src.database.operations import DatabaseError, create_syllabus
from src.models import SyllabusDocument
from src.utils.logging_config import logger


def run(document: SyllabusDocument, db_path: Optional[Path] = None) -> SyllabusDocument:
    """
    Execute Step 4: Storage.

    Raises:
        DatabaseError: If the insert fails
    """
    logger.info(f"Storing syllabus: {document.subject} ({document.curriculum_type})")
    try:
        return create_syllabus(document, db_path=db_path)
    except DatabaseError as e:
        logger.error(f"❌ Failed to store syllabus: {e}")
        raise
