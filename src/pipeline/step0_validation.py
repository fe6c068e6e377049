"""
STEP 0 — INPUT VALIDATION

Rejects input-contract violations before any parsing begins:
- Missing or empty document bytes
- Missing subject
- Missing or unknown curriculum kind
- Unknown education category
- Unsupported declared document format

Input: Raw request fields
Output: Validated ExtractionRequest
"""

from dataclasses import dataclass
from typing import Optional

from src.config import CURRICULUM_TYPES, EDUCATION_CATEGORIES
from src.parsers import DoclingConverter, TextConverter, normalize_format
from src.utils.logging_config import logger


SUPPORTED_FORMATS = TextConverter.supported_formats + DoclingConverter.supported_formats


class InputValidationError(Exception):
    """Raised when required request fields are missing or invalid."""
    pass


@dataclass
class ExtractionRequest:
    """A validated extraction request for one document."""

    data: bytes
    file_format: str
    subject: str
    curriculum_type: str
    category: Optional[str] = None
    grade_range: Optional[str] = None
    form: Optional[str] = None
    name: str = "document"

    @property
    def range_descriptor(self) -> Optional[str]:
        """Grade range, falling back to the legacy form field."""
        return self.grade_range or self.form


def run(
    data: Optional[bytes],
    file_format: Optional[str],
    subject: Optional[str],
    curriculum_type: Optional[str],
    category: Optional[str] = None,
    grade_range: Optional[str] = None,
    form: Optional[str] = None,
    name: str = "document",
) -> ExtractionRequest:
    """
    Execute Step 0: Input validation.

    Returns:
        ExtractionRequest with normalized fields

    Raises:
        InputValidationError: On the first contract violation found
    """
    errors = []

    if not data:
        errors.append("document content is required")
    elif not isinstance(data, (bytes, bytearray)):
        errors.append("document content must be bytes")

    if not subject or not str(subject).strip():
        errors.append("subject is required")

    kind = (curriculum_type or "").strip().lower()
    if not kind:
        errors.append("curriculum type is required")
    elif kind not in CURRICULUM_TYPES:
        errors.append(f"curriculum type must be one of {CURRICULUM_TYPES}, got {curriculum_type!r}")

    if category is not None and category not in EDUCATION_CATEGORIES:
        errors.append(f"category must be one of {EDUCATION_CATEGORIES}, got {category!r}")

    fmt = normalize_format(file_format or "")
    if not fmt:
        errors.append("document format is required")
    elif fmt not in SUPPORTED_FORMATS:
        errors.append(f"unsupported document format: {fmt}")

    if errors:
        message = "; ".join(errors)
        logger.error(f"❌ Invalid extraction request: {message}")
        raise InputValidationError(message)

    request = ExtractionRequest(
        data=bytes(data),
        file_format=fmt,
        subject=str(subject).strip(),
        curriculum_type=kind,
        category=category,
        grade_range=grade_range.strip() if grade_range else None,
        form=form.strip() if form else None,
        name=name,
    )
    logger.debug(f"Validated request: {request.subject} ({request.curriculum_type}, {request.file_format})")
    return request
