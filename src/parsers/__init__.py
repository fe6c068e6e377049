"""
Converter Module for the Syllabus Structure Extraction Engine

Provides converters that turn raw document bytes into plain text or tagged
HTML. Plain text and HTML are passed through; word-processor and
page-layout files go through Docling (optional dependency).
"""

from src.parsers.base import (
    OUTPUT_TEXT,
    OUTPUT_HTML,
    BaseConverter,
    ConversionError,
    ConversionResult,
    normalize_format,
)
from src.parsers.text_parser import TextConverter
from src.parsers.docling_parser import DoclingConverter


def get_converter(file_format: str) -> BaseConverter:
    """
    Pick the converter for a declared format.

    Raises:
        ConversionError: If no converter supports the format
    """
    file_format = normalize_format(file_format)
    if file_format in TextConverter.supported_formats:
        return TextConverter()
    if file_format in DoclingConverter.supported_formats:
        return DoclingConverter()
    raise ConversionError(f"Unsupported document format: {file_format}")


__all__ = [
    "OUTPUT_TEXT",
    "OUTPUT_HTML",
    "BaseConverter",
    "ConversionError",
    "ConversionResult",
    "normalize_format",
    "TextConverter",
    "DoclingConverter",
    "get_converter",
]
