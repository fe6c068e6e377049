"""
HTML Table Normalization for Structure Extraction

Turns the tagged HTML produced by the conversion collaborator into a grid of
rows and cells for the table extractor, and into flattened text for the
line-based path.

Per cell:
- <br> and block boundaries (<p>, <div>) become embedded newlines
- <li> items become '- ' bullet lines
- HTML entities are decoded (BeautifulSoup does this on parse)
- The raw cell markup is kept alongside the text for bullet extraction

Nested tables are flattened into their parent cell's text rather than
producing rows of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from bs4 import BeautifulSoup, NavigableString, Tag

from src.utils.cleanup.text_normalizer import (
    normalize_bullets,
    normalize_line_endings,
    normalize_text,
    normalize_whitespace,
)
from src.utils.logging_config import logger


# Block-level tags whose boundaries become line breaks in cell text
BLOCK_TAGS = {'p', 'div', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'tr', 'table', 'ul', 'ol'}

# BeautifulSoup parser backend
HTML_PARSER = 'lxml'


@dataclass
class TableRow:
    """One table row: ordered cell texts plus the parallel raw markup."""

    cells: List[str] = field(default_factory=list)
    raw_cells: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(cell.strip() for cell in self.cells)


def _render_cell_text(node: Tag) -> str:
    """
    Render a cell's inline markup to text with embedded newlines.

    Walks the cell tree so that <br>, block tags and list items keep
    their line structure instead of being concatenated.
    """
    parts: List[str] = []

    def _walk(element) -> None:
        if isinstance(element, NavigableString):
            parts.append(str(element))
            return
        if not isinstance(element, Tag):
            return

        name = element.name.lower() if element.name else ''
        if name in ('script', 'style'):
            return
        if name == 'br':
            parts.append('\n')
            return
        if name == 'li':
            parts.append('\n- ')
            for child in element.children:
                _walk(child)
            parts.append('\n')
            return

        is_block = name in BLOCK_TAGS
        if is_block:
            parts.append('\n')
        for child in element.children:
            _walk(child)
        if is_block:
            parts.append('\n')

    for child in node.children:
        _walk(child)

    text = normalize_line_endings(''.join(parts))
    text = normalize_whitespace(text)
    return normalize_bullets(text)


def extract_table_rows(html: str) -> List[TableRow]:
    """
    Extract every row of every top-level table in document order.

    Args:
        html: Tagged HTML from the conversion collaborator

    Returns:
        List of TableRow (rows with only blank cells are dropped)

    Example:
        >>> rows = extract_table_rows("<table><tr><td>10.1 Physics</td></tr></table>")
        >>> rows[0].cells
        ['10.1 Physics']
    """
    if not html or not html.strip():
        return []

    soup = BeautifulSoup(html, HTML_PARSER)
    rows: List[TableRow] = []

    tables = [t for t in soup.find_all('table') if t.find_parent('table') is None]
    for table in tables:
        for tr in table.find_all('tr'):
            # Skip rows belonging to a nested table
            if tr.find_parent('table') is not table:
                continue

            row = TableRow()
            for cell in tr.find_all(['td', 'th'], recursive=False):
                row.cells.append(_render_cell_text(cell))
                row.raw_cells.append(str(cell))

            if not row.is_empty():
                rows.append(row)

    logger.debug(f"Extracted {len(rows)} table rows from {len(tables)} tables")
    return rows


def has_tables(html: str) -> bool:
    """Check whether the markup contains at least one table with rows."""
    if not html:
        return False
    soup = BeautifulSoup(html, HTML_PARSER)
    return any(table.find('tr') for table in soup.find_all('table'))


def html_to_text(html: str) -> str:
    """
    Flatten HTML into normalized text for the line-based path.

    Table cells are emitted one per line in reading order.

    Example:
        >>> html_to_text("<p>10.1 General Physics</p><ul><li>Knows units</li></ul>")
        '10.1 General Physics\\n\\n- Knows units'
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, HTML_PARSER)
    body = soup.body or soup
    for cell in body.find_all(['td', 'th']):
        cell.insert_after('\n')
    return normalize_text(_render_cell_text(body))


def split_cell_items(cell_text: str, raw_cell: str = "") -> List[str]:
    """
    Split a table cell into its bullet items.

    List items in the raw markup take precedence; otherwise the cell text
    is split on line breaks. Bullet markers are stripped from each item.

    Example:
        >>> split_cell_items("- Measuring length\\n- Recording results")
        ['Measuring length', 'Recording results']
    """
    if raw_cell:
        fragment = BeautifulSoup(raw_cell, HTML_PARSER)
        list_items = fragment.find_all('li')
        if list_items:
            items = [normalize_whitespace(_render_cell_text(li)).replace('\n', ' ') for li in list_items]
            return [_strip_bullet(item) for item in items if _strip_bullet(item)]

    items = []
    for line in (cell_text or "").split('\n'):
        item = _strip_bullet(line)
        if item:
            items.append(item)
    return items


def _strip_bullet(text: str) -> str:
    text = normalize_bullets(text.strip())
    if text.startswith('-'):
        text = text[1:]
    return text.strip()


__all__ = [
    'TableRow',
    'extract_table_rows',
    'has_tables',
    'html_to_text',
    'split_cell_items',
]
