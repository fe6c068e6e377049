"""
Converter Base Classes and Data Structures

Defines the conversion collaborator interface: raw file bytes plus a
declared format in, plain text or tagged HTML out.

All converter implementations must inherit from BaseConverter and return a
ConversionResult containing:
- content: Extracted plain text or tagged HTML
- output_format: "text" or "html" (selects the line or table entry path)
- converter_version: Converter version for reproducibility
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.utils.logging_config import logger


# Representations a converter can return
OUTPUT_TEXT = "text"
OUTPUT_HTML = "html"
OUTPUT_FORMATS = (OUTPUT_TEXT, OUTPUT_HTML)


class ConversionError(Exception):
    """Raised when a document cannot be converted."""
    pass


@dataclass
class ConversionResult:
    """
    Result of converting one document.

    Example:
        >>> result = converter.convert(data, "docx")
        >>> print(f"{result.output_format}: {len(result.content)} chars")
    """

    content: str
    output_format: str
    converter_version: str

    def __post_init__(self):
        """Validate fields after initialization."""
        if not isinstance(self.content, str):
            raise TypeError("content must be a string")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}")
        if not isinstance(self.converter_version, str) or not self.converter_version.strip():
            raise ValueError("converter_version must be a non-empty string")

    @property
    def is_html(self) -> bool:
        return self.output_format == OUTPUT_HTML


class BaseConverter(ABC):
    """
    Abstract base class for document converters.

    Subclasses declare the input formats they accept in ``supported_formats``
    and implement convert().

    Example:
        >>> class MyConverter(BaseConverter):
        ...     supported_formats = ("txt",)
        ...     def convert(self, data: bytes, file_format: str) -> ConversionResult:
        ...         return ConversionResult(data.decode(), "text", "1.0")
    """

    supported_formats: tuple = ()

    def __init__(self):
        """Initialize the converter."""
        self.logger = logger.bind(converter=self.__class__.__name__)
        self.logger.debug(f"Initialized {self.__class__.__name__}")

    def supports(self, file_format: str) -> bool:
        return normalize_format(file_format) in self.supported_formats

    @abstractmethod
    def convert(self, data: bytes, file_format: str) -> ConversionResult:
        """
        Convert raw file bytes into text or tagged HTML.

        Args:
            data: Raw file bytes
            file_format: Declared format ("docx", "pdf", "txt", "html", ...)

        Returns:
            ConversionResult

        Raises:
            ConversionError: If the bytes cannot be converted
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement convert() method"
        )


def normalize_format(file_format: str) -> str:
    """
    Normalize a declared format or file extension.

    Example:
        >>> normalize_format(".DOCX")
        'docx'
    """
    return (file_format or "").strip().lower().lstrip('.')
