"""
Text Normalization for Structure Extraction

Functions for canonicalizing converted syllabus text before tokenization.
Purely functional: never fails, never changes wording.

Normalizations:
- Line endings (CRLF/CR -> LF) and invisible characters
- Bullet glyphs -> '- '
- Runs of spaces/tabs collapsed, trailing/leading spaces trimmed
- 2+ blank lines collapsed to one
- Line breaks inserted before hierarchy numbers that conversion flattened
  onto the end of the previous line ("... units 10.1.2 Measurement")
"""

import re
from typing import Iterable, List, Optional

from src.utils.logging_config import logger


# Bullet character normalization mapping
BULLET_CHARS = {
    '•': '-',
    '◦': '-',
    '–': '-',
    '—': '-',
    '∙': '-',
    '●': '-',
    '○': '-',
    '■': '-',
    '□': '-',
    '▪': '-',
    '▸': '-',
    '▹': '-',
    '►': '-',
    '▻': '-',
    '➢': '-',
    '➤': '-',
    '✓': '-',
    '✔': '-',
    '\uf0b7': '-',  # Symbol-font bullet from word-processor exports
    '\uf0d8': '-',  # Wingdings arrow bullet
    '\uf0fc': '-',  # Wingdings check bullet
    '*': '-',
}

# Characters that carry no content but break pattern matching
INVISIBLE_CHARS = {
    '\u00a0': ' ',  # no-break space
    '\u2007': ' ',  # figure space
    '\u202f': ' ',  # narrow no-break space
    '\u200b': '',  # zero-width space
    '\u200c': '',
    '\u200d': '',
    '\ufeff': '',  # byte-order mark
    '\u00ad': '',  # soft hyphen
}

# A hierarchy number glued onto a line after other text. Three or four
# segments always split (caption optional); two segments only when a
# capitalised caption follows, so ordinary decimals ("3.14 m") stay put.
FLATTENED_NUMBER_PATTERN = re.compile(
    r'(?<=\S)[ \t]+(?=(\d{1,2})(?:(?:\.\d{1,2}){2,3}\.?(?:[ \t]+\S|$)|\.\d{1,2}\.?[ \t]+[A-Z]))',
    flags=re.MULTILINE,
)

BULLET_PATTERN = re.compile(
    r'^[ \t]*(?:' + '|'.join(re.escape(c) for c in BULLET_CHARS) + r')[ \t]*',
    flags=re.MULTILINE,
)


def normalize_line_endings(text: str) -> str:
    """
    Convert CRLF and CR line endings to LF and strip invisible characters.

    Example:
        >>> normalize_line_endings("a\\r\\nb\\rc")
        'a\\nb\\nc'
    """
    if not text:
        return text

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = text.replace('\f', '\n').replace('\v', '\n')
    for char, replacement in INVISIBLE_CHARS.items():
        text = text.replace(char, replacement)
    return text


def normalize_bullets(text: str) -> str:
    """
    Normalize bullet characters to consistent '- ' format.

    Converts various Unicode bullet characters (•, ◦, –, etc.) at the start
    of a line to a dash bullet. A plain '-' bullet is left as is.

    Args:
        text: Text with various bullet formats

    Returns:
        Text with normalized bullets

    Example:
        >>> normalize_bullets("• First item\\n◦ Second item")
        '- First item\\n- Second item'
    """
    if not text:
        return text

    return BULLET_PATTERN.sub('- ', text)


def normalize_whitespace(text: str) -> str:
    """
    Normalize whitespace: collapse space runs, trim lines, collapse 2+ blank
    lines to a single blank line.

    Example:
        >>> normalize_whitespace("  Line 1  \\n\\n\\n\\nLine\\t\\t2  ")
        'Line 1\\n\\nLine 2'
    """
    if not text:
        return text

    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'^ +| +$', '', text, flags=re.MULTILINE)
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


def split_flattened_numbers(text: str, top_levels: Optional[Iterable[int]] = None) -> str:
    """
    Insert a line break before hierarchy numbers flattened onto a prior line.

    Args:
        text: Text with one logical unit per line (mostly)
        top_levels: Valid top-level numbers; when given, only numbers whose
            first segment is in this set are split off

    Returns:
        Text with each embedded hierarchy number starting its own line

    Example:
        >>> split_flattened_numbers("10.1.1 Units 10.1.1.1 Distinguish units")
        '10.1.1 Units\\n10.1.1.1 Distinguish units'
    """
    if not text:
        return text

    allowed = set(top_levels) if top_levels is not None else None

    def _replace(match: re.Match) -> str:
        if allowed is not None and int(match.group(1)) not in allowed:
            return match.group(0)
        return '\n'

    return FLATTENED_NUMBER_PATTERN.sub(_replace, text)


def normalize_text(text: str, top_levels: Optional[Iterable[int]] = None) -> str:
    """
    Apply all normalization rules in order.

    Idempotent: normalize_text(normalize_text(x)) == normalize_text(x).

    Args:
        text: Raw converted text
        top_levels: Valid top-level numbers for flattened-number splitting

    Returns:
        Normalized text

    Example:
        >>> normalize_text("10.1 General Physics\\r\\n\\r\\n\\r\\n• Knows units")
        '10.1 General Physics\\n\\n- Knows units'
    """
    if not text:
        return ""

    text = normalize_line_endings(text)
    text = normalize_whitespace(text)
    text = normalize_bullets(text)
    text = split_flattened_numbers(text, top_levels)
    text = normalize_whitespace(text)

    return text


def normalize_lines(text: str, top_levels: Optional[Iterable[int]] = None) -> List[str]:
    """
    Normalize text and return its trimmed, non-empty lines in order.

    Example:
        >>> normalize_lines("  10.1  General\\n\\n\\n  • Item ")
        ['10.1 General', '- Item']
    """
    normalized = normalize_text(text, top_levels)
    lines = [line.strip() for line in normalized.split('\n') if line.strip()]
    logger.debug(f"Normalized text into {len(lines)} lines")
    return lines


__all__ = [
    'BULLET_CHARS',
    'normalize_line_endings',
    'normalize_bullets',
    'normalize_whitespace',
    'split_flattened_numbers',
    'normalize_text',
    'normalize_lines',
]
