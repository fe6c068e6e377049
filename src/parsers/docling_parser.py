"""
Docling Converter Implementation

Uses IBM Docling (open-source, offline document converter) to turn
word-processor and page-layout files into tagged HTML that preserves table
and list structure for the table extraction path.

Features:
- Offline processing (no API key required)
- DOCX, PDF and PPTX input
- Multi-page table reconstruction
- HTML export keeping <table>, <ul>/<ol> and <br> structure

Docling is an optional dependency (``pip install .[docling]``); it is only
imported when a DoclingConverter is created.

Outputs:
- Tagged HTML
- Optionally saved to data/conversions/ for inspection
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from io import BytesIO
from pathlib import Path
from typing import Optional

from .base import OUTPUT_HTML, BaseConverter, ConversionError, ConversionResult, normalize_format


DOCLING_FORMATS = ("docx", "pdf", "pptx")


def _docling_version() -> str:
    try:
        return version("docling")
    except PackageNotFoundError:
        return "unknown"


class DoclingConverter(BaseConverter):
    """
    Docling-based document converter.

    Wraps Docling's DocumentConverter and exports each document to HTML.

    Example:
        >>> converter = DoclingConverter()
        >>> result = converter.convert(Path("syllabus.docx").read_bytes(), "docx")
        >>> print(result.content[:100])
    """

    supported_formats = DOCLING_FORMATS

    def __init__(self, output_dir: Optional[Path] = None) -> None:
        """
        Initialize Docling with its default configuration.

        Args:
            output_dir: Directory to save HTML exports to (None disables saving)

        Raises:
            ConversionError: If Docling is not installed or fails to initialize
        """
        super().__init__()

        try:
            from docling.document_converter import DocumentConverter
        except ImportError as e:
            raise ConversionError(
                "Docling is not installed. Install with: pip install '.[docling]'"
            ) from e

        self.version = _docling_version()
        self.logger.info(f"Initializing Docling converter (version {self.version})")

        try:
            self._converter = DocumentConverter()
            self.logger.success("Docling DocumentConverter initialized successfully")
        except Exception as e:
            self.logger.error(f"Failed to initialize Docling: {e}")
            raise ConversionError(f"Docling initialization failed: {e}") from e

        self._output_dir = output_dir
        if self._output_dir is not None:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            self.logger.debug(f"Output directory: {self._output_dir}")

    def convert(self, data: bytes, file_format: str, name: str = "document") -> ConversionResult:
        """
        Convert document bytes to tagged HTML using Docling.

        Args:
            data: Raw file bytes
            file_format: Declared format ("docx", "pdf", "pptx")
            name: Base name used for the stream and saved output

        Returns:
            ConversionResult with HTML content

        Raises:
            ConversionError: If the format is unsupported or conversion fails
        """
        from docling.datamodel.base_models import DocumentStream

        file_format = normalize_format(file_format)
        if file_format not in self.supported_formats:
            raise ConversionError(f"DoclingConverter does not support format: {file_format}")

        self.logger.info(f"Starting Docling conversion: {name}.{file_format} ({len(data) / 1024:.1f} KB)")

        try:
            stream = DocumentStream(name=f"{name}.{file_format}", stream=BytesIO(data))
            result = self._converter.convert(stream)
            html = result.document.export_to_html()
        except Exception as e:
            self.logger.error(f"Docling conversion failed: {e}")
            raise ConversionError(f"Docling conversion failed: {e}") from e

        self.logger.success(f"✓ HTML exported ({len(html):,} chars)")

        if self._output_dir is not None:
            self._save_output(name, html)

        return ConversionResult(
            content=html,
            output_format=OUTPUT_HTML,
            converter_version=f"docling-{self.version}",
        )

    def _save_output(self, base_name: str, html: str) -> None:
        """Save the HTML export for inspection."""
        html_path = self._output_dir / f"{base_name}_docling.html"
        try:
            html_path.write_text(html, encoding="utf-8")
            self.logger.success(f"✓ Saved HTML: {html_path}")
        except OSError as e:
            self.logger.warning(f"Could not save HTML: {e}")
