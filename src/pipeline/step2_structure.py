"""
STEP 2 — STRUCTURE EXTRACTION

Reconstructs the Topic -> Subtopic -> Outcome tree from converted content.

Entry path selection:
1. HTML with tables -> table extractor on the cell grid
2. If the table path finds nothing (or there are no tables), the HTML is
   flattened to text and the line-based path runs on it
3. Plain text -> line-based path

The valid top-level numbers come from the grade range (or legacy form)
descriptor, else from the education category.

Input: ConversionResult (from Step 1), ExtractionRequest
Output: StructureResult (empty topic list means structural failure)
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.models import METHOD_LINE, METHOD_TABLE, Topic, find_containment_violations
from src.parsers import ConversionResult
from src.pipeline.step0_validation import ExtractionRequest
from src.utils.cleanup.html_normalizer import extract_table_rows, html_to_text
from src.utils.logging_config import logger
from src.utils.segmentation import (
    ContentClassifier,
    extract_table,
    get_default_classifier,
    parse_lines,
    resolve_top_levels,
)


@dataclass
class StructureResult:
    """Topics found by structural parsing, plus the text used for fallback."""

    topics: List[Topic] = field(default_factory=list)
    method: Optional[str] = None
    text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.topics


def run(
    conversion: ConversionResult,
    request: ExtractionRequest,
    classifier: Optional[ContentClassifier] = None,
) -> StructureResult:
    """
    Execute Step 2: Structure extraction.

    Never raises on malformed content; an unparseable document simply
    yields an empty StructureResult.

    Args:
        conversion: Converted document content
        request: Validated extraction request
        classifier: Content classifier (built from configuration if omitted)

    Returns:
        StructureResult
    """
    classifier = classifier or get_default_classifier()
    top_levels = resolve_top_levels(request.range_descriptor, request.category)
    logger.info(f"Valid top-level numbers: {min(top_levels)}-{max(top_levels)}")

    if conversion.is_html:
        text = html_to_text(conversion.content)
        rows = extract_table_rows(conversion.content)
        if rows:
            logger.info(f"Running table extraction on {len(rows)} rows")
            topics = extract_table(rows, request.curriculum_type, top_levels, classifier)
            if topics:
                return _finish(topics, METHOD_TABLE, text)
            logger.warning("⚠ Table extraction found no topics, retrying line-based path")
    else:
        text = conversion.content

    logger.info("Running line-based extraction")
    topics = parse_lines(text, request.curriculum_type, top_levels, classifier)
    return _finish(topics, METHOD_LINE, text)


def _finish(topics: List[Topic], method: str, text: str) -> StructureResult:
    if not topics:
        logger.warning("⚠ Structural parsing extracted no topics")
        return StructureResult(topics=[], method=None, text=text)

    violations = find_containment_violations(topics)
    for violation in violations:
        logger.warning(f"⚠ {violation}")

    subtopics = sum(len(t.subtopics) for t in topics)
    logger.success(f"✓ Extracted {len(topics)} topics, {subtopics} subtopics ({method} path)")
    return StructureResult(topics=topics, method=method, text=text)
