"""
STEP 1 — DOCUMENT CONVERSION

Converts the request's raw bytes into plain text or tagged HTML using the
converter for its declared format. The returned representation selects the
line-based or table-based entry path in Step 2.

Input: ExtractionRequest (from Step 0)
Output: ConversionResult
"""

from typing import Optional

from src.parsers import BaseConverter, ConversionError, ConversionResult, get_converter
from src.pipeline.step0_validation import ExtractionRequest
from src.utils.logging_config import logger


def run(request: ExtractionRequest, converter: Optional[BaseConverter] = None) -> ConversionResult:
    """
    Execute Step 1: Conversion.

    Args:
        request: Validated extraction request
        converter: Converter override (chosen by format if omitted)

    Returns:
        ConversionResult

    Raises:
        ConversionError: If the document cannot be converted
    """
    converter = converter or get_converter(request.file_format)

    logger.info(f"Converting {request.name}.{request.file_format} with {converter.__class__.__name__}")
    try:
        result = converter.convert(request.data, request.file_format)
    except ConversionError:
        raise
    except (ValueError, TypeError, OSError) as e:
        logger.error(f"❌ Conversion failed: {e}")
        raise ConversionError(f"Conversion failed: {e}") from e

    logger.success(f"✓ Converted to {result.output_format} ({len(result.content):,} chars)")
    return result
