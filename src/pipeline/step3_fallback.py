"""
STEP 3 — AI FALLBACK EXTRACTION

Invoked only when Step 2 extracted no Topics. Sends the document text
(truncated on a line boundary to the configured budget) to the AI service
once and parses its JSON reply into the canonical tree.

All-or-nothing: nothing from Step 2 is merged, and a failure is not retried.

Input: Document text, ExtractionRequest
Output: Non-empty Topic list
"""

from typing import List, Optional

from src.models import Topic
from src.pipeline.step0_validation import ExtractionRequest
from src.utils.llm_helpers import FallbackCoordinator, FallbackError
from src.utils.logging_config import logger


def run(
    text: str,
    request: ExtractionRequest,
    coordinator: Optional[FallbackCoordinator] = None,
) -> List[Topic]:
    """
    Execute Step 3: AI fallback.

    Raises:
        FallbackError: Subclass naming the failure (unavailable, response,
            unparseable)
    """
    coordinator = coordinator or FallbackCoordinator()

    logger.info("Structural parsing failed, invoking AI fallback extraction")
    try:
        topics = coordinator.extract(
            text,
            subject=request.subject,
            curriculum_type=request.curriculum_type,
            grade_range=request.range_descriptor,
        )
    except FallbackError as e:
        logger.error(f"❌ AI fallback failed: {e}")
        raise

    logger.success(f"✓ AI fallback extracted {len(topics)} topics")
    return topics
