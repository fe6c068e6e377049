"""
Cleanup Utilities (Step 2 input)

Normalization of converted syllabus text and tagged HTML before
tokenization.
"""

# Text normalization
from src.utils.cleanup.text_normalizer import (
    BULLET_CHARS,
    normalize_line_endings,
    normalize_bullets,
    normalize_whitespace,
    split_flattened_numbers,
    normalize_text,
    normalize_lines,
)

# HTML normalization
from src.utils.cleanup.html_normalizer import (
    TableRow,
    extract_table_rows,
    has_tables,
    html_to_text,
    split_cell_items,
)


__all__ = [
    # Text normalization
    'BULLET_CHARS',
    'normalize_line_endings',
    'normalize_bullets',
    'normalize_whitespace',
    'split_flattened_numbers',
    'normalize_text',
    'normalize_lines',
    # HTML normalization
    'TableRow',
    'extract_table_rows',
    'has_tables',
    'html_to_text',
    'split_cell_items',
]
