"""
Extraction Runner

Runs the per-document steps in order and reports the outcome as a value
rather than an exception:

    Step 0 validation -> Step 1 conversion -> Step 2 structure
        -> (empty tree) Step 3 AI fallback -> Step 4 storage

Failure at any stage discards the in-progress tree and returns a failed
ExtractionResult with a named reason. Nothing is persisted unless a
non-empty tree was produced. Each call is independent: all parser state is
created inside the call.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from src.database.operations import DatabaseError
from src.models import METHOD_AI_FALLBACK, SyllabusDocument
from src.parsers import BaseConverter, ConversionError
from src.pipeline import step0_validation, step1_conversion, step2_structure, step3_fallback, step4_storage
from src.pipeline.step0_validation import InputValidationError
from src.utils.llm_helpers import (
    FallbackCoordinator,
    FallbackParseError,
    FallbackResponseError,
    FallbackUnavailableError,
)
from src.utils.logging_config import (
    document_context,
    log_extraction_failure,
    log_extraction_summary,
    log_step_complete,
    log_step_start,
)
from src.utils.segmentation import ContentClassifier


# Failure reasons reported to callers
FAILURE_INVALID_INPUT = "invalid_input"
FAILURE_CONVERSION = "conversion_failed"
FAILURE_NO_TOPICS = "no_topics_extracted"
FAILURE_FALLBACK_UNAVAILABLE = "fallback_unavailable"
FAILURE_FALLBACK_RESPONSE = "fallback_response_error"
FAILURE_FALLBACK_UNPARSEABLE = "fallback_unparseable"
FAILURE_STORAGE = "storage_failed"


@dataclass
class ExtractionResult:
    """
    Outcome of one extraction.

    On success ``document`` holds the tree and ``method`` the entry path
    that produced it ("line", "table" or "ai_fallback"). On failure
    ``failure_reason`` is one of the FAILURE_* constants and ``error`` the
    human-readable message.
    """

    success: bool
    document: Optional[SyllabusDocument] = None
    failure_reason: Optional[str] = None
    error: Optional[str] = None
    method: Optional[str] = None
    stored: bool = False

    @classmethod
    def failed(cls, reason: str, error: str) -> "ExtractionResult":
        log_extraction_failure(reason, error)
        return cls(success=False, failure_reason=reason, error=error)


def extract_syllabus(
    data: Optional[bytes],
    file_format: Optional[str],
    subject: Optional[str],
    curriculum_type: Optional[str],
    category: Optional[str] = None,
    grade_range: Optional[str] = None,
    form: Optional[str] = None,
    name: str = "document",
    converter: Optional[BaseConverter] = None,
    classifier: Optional[ContentClassifier] = None,
    coordinator: Optional[FallbackCoordinator] = None,
    use_fallback: bool = True,
) -> ExtractionResult:
    """
    Extract the syllabus tree from one document without storing it.

    Args:
        data: Raw document bytes
        file_format: Declared format ("docx", "pdf", "txt", "html", ...)
        subject: Subject name
        curriculum_type: "cbc" or "obc"
        category: Optional education category
        grade_range: Optional grade/form range descriptor ("Grades 10-12")
        form: Optional legacy form descriptor ("Form 1")
        name: Document name for logs and saved conversions
        converter: Converter override
        classifier: Content classifier override
        coordinator: AI fallback coordinator override
        use_fallback: Invoke the AI fallback when structural parsing fails

    Returns:
        ExtractionResult

    Example:
        >>> result = extract_syllabus(b"10.1 General Physics\\n10.1.1 Units", "txt", "Physics", "obc",
        ...                           grade_range="Grades 10-12")
        >>> result.document.topics[0].name
        '10.1 General Physics'
    """
    with document_context(name):
        return _run_steps(
            data, file_format, subject, curriculum_type, category, grade_range, form, name,
            converter, classifier, coordinator, use_fallback,
        )


def _run_steps(
    data, file_format, subject, curriculum_type, category, grade_range, form, name,
    converter, classifier, coordinator, use_fallback,
) -> ExtractionResult:
    started = time.time()
    step_name = f"Syllabus extraction: {subject or '<no subject>'} ({curriculum_type or '?'})"
    log_step_start(step_name)

    try:
        request = step0_validation.run(
            data, file_format, subject, curriculum_type,
            category=category, grade_range=grade_range, form=form, name=name,
        )
    except InputValidationError as e:
        return ExtractionResult.failed(FAILURE_INVALID_INPUT, str(e))

    try:
        conversion = step1_conversion.run(request, converter=converter)
    except ConversionError as e:
        return ExtractionResult.failed(FAILURE_CONVERSION, str(e))

    structure = step2_structure.run(conversion, request, classifier=classifier)
    topics = structure.topics
    method = structure.method

    if structure.is_empty:
        if not use_fallback:
            return ExtractionResult.failed(FAILURE_NO_TOPICS, "no topics extracted")
        try:
            topics = step3_fallback.run(structure.text, request, coordinator=coordinator)
            method = METHOD_AI_FALLBACK
        except FallbackUnavailableError as e:
            return ExtractionResult.failed(FAILURE_FALLBACK_UNAVAILABLE, str(e))
        except FallbackResponseError as e:
            return ExtractionResult.failed(FAILURE_FALLBACK_RESPONSE, str(e))
        except FallbackParseError as e:
            return ExtractionResult.failed(FAILURE_FALLBACK_UNPARSEABLE, str(e))

    document = SyllabusDocument(
        subject=request.subject,
        curriculum_type=request.curriculum_type,
        topics=topics,
        category=request.category,
        grade_range=request.grade_range,
        form=request.form,
        extraction_method=method,
    )

    log_extraction_summary(method, document.counts())
    log_step_complete(step_name, time.time() - started)
    return ExtractionResult(success=True, document=document, method=method)


def ingest_syllabus(*args, db_path: Optional[Path] = None, **kwargs) -> ExtractionResult:
    """
    Extract one document and store it on success.

    Accepts the same arguments as extract_syllabus, plus ``db_path``.
    A failed extraction is returned as-is and nothing is stored.
    """
    result = extract_syllabus(*args, **kwargs)
    if not result.success:
        return result

    with document_context(kwargs.get("name", "document")):
        try:
            result.document = step4_storage.run(result.document, db_path=db_path)
        except DatabaseError as e:
            return ExtractionResult.failed(FAILURE_STORAGE, str(e))

    result.stored = True
    return result


__all__ = [
    "FAILURE_INVALID_INPUT",
    "FAILURE_CONVERSION",
    "FAILURE_NO_TOPICS",
    "FAILURE_FALLBACK_UNAVAILABLE",
    "FAILURE_FALLBACK_RESPONSE",
    "FAILURE_FALLBACK_UNPARSEABLE",
    "FAILURE_STORAGE",
    "ExtractionResult",
    "extract_syllabus",
    "ingest_syllabus",
]
