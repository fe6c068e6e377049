"""
Utilities Module for the Syllabus Structure Extraction Engine

Organized by pipeline step for clarity and maintainability.

Structure:
- logging_config.py: Shared logging utilities
- cleanup/: Text and HTML normalization
- segmentation/: Tokenizer, content classifier, tree builder, table extractor
- llm_helpers.py: AI fallback coordinator and document generation
"""

# Re-export logging utilities at top level
from src.utils.logging_config import document_context, setup_logger, logger

__all__ = [
    "setup_logger",
    "document_context",
    "logger",
]
