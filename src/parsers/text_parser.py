"""
Plain Text and HTML Converter

Handles inputs that need no layout analysis: plain text is decoded and
passed to the line-based path, HTML is passed through unchanged to the
table path.
"""

from __future__ import annotations

from .base import (
    OUTPUT_HTML,
    OUTPUT_TEXT,
    BaseConverter,
    ConversionError,
    ConversionResult,
    normalize_format,
)


TEXT_CONVERTER_VERSION = "1.0"

TEXT_FORMATS = ("txt", "text", "md")
HTML_FORMATS = ("html", "htm")


def decode_bytes(data: bytes) -> str:
    """
    Decode document bytes, trying UTF-8 (with or without BOM) first.

    Example:
        >>> decode_bytes("10.1 Physics".encode("utf-8"))
        '10.1 Physics'
    """
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


class TextConverter(BaseConverter):
    """Passthrough converter for plain text and HTML input."""

    supported_formats = TEXT_FORMATS + HTML_FORMATS

    def convert(self, data: bytes, file_format: str) -> ConversionResult:
        file_format = normalize_format(file_format)
        if file_format not in self.supported_formats:
            raise ConversionError(f"TextConverter does not support format: {file_format}")

        if not isinstance(data, (bytes, bytearray)):
            raise ConversionError("Document content must be bytes")

        content = decode_bytes(bytes(data))
        output_format = OUTPUT_HTML if file_format in HTML_FORMATS else OUTPUT_TEXT
        self.logger.debug(f"Decoded {len(data):,} bytes as {output_format}")

        return ConversionResult(
            content=content,
            output_format=output_format,
            converter_version=TEXT_CONVERTER_VERSION,
        )
