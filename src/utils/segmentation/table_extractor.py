"""
Table Extraction for Structure Extraction

Cell-grid entry path for tagged-table input. Column position is not
trusted: merged source cells make conversion shift later columns left.
Instead each cell is tokenized independently and the hierarchy level comes
from its numbering segment count:

- first cell with a 2-segment number -> the row's Topic signal
- first cell with a 3-segment number -> the row's Subtopic signal
- first cell with a 4-segment number -> the row's Outcome signal

The cells immediately after the Outcome cell are its content buckets,
each split into bullet items:

- competency-based: learning activities, expected standards
- outcome-based:    knowledge, skills, values

A row with no numbering signal while an Outcome is open is a continuation
row (the Outcome cell was merged across rows); its trailing cells are
appended to the open Outcome's buckets.

Repeated Topic/Subtopic labels reuse the existing node.
"""

from typing import Dict, List, Optional, Sequence

from src.models import (
    CBC,
    EXPECTED_STANDARD,
    KNOWLEDGE,
    LEARNING_ACTIVITY,
    OBC,
    SKILLS,
    VALUES,
    Topic,
)
from src.utils.cleanup.html_normalizer import TableRow, split_cell_items
from src.utils.cleanup.text_normalizer import normalize_lines
from src.utils.logging_config import logger
from src.utils.segmentation.content_classifier import ContentClassifier
from src.utils.segmentation.heading_patterns import (
    BULLET_LINE_PATTERN,
    LEVEL_KINDS,
    MARKER_BULLET,
    MARKER_SUB_ITEM,
    SUB_ITEM_PATTERN,
    UNIT_CONTENT,
    HierarchyTokenizer,
    ParseUnit,
    is_denylisted,
    match_number,
)
from src.utils.segmentation.hierarchy_builder import STATE_IN_OUTCOME, TreeBuilder


# Buckets of the cells following the Outcome cell, in column order
BUCKET_COLUMNS = {
    CBC: (LEARNING_ACTIVITY, EXPECTED_STANDARD),
    OBC: (KNOWLEDGE, SKILLS, VALUES),
}


def _starts_unit(line: str, top_levels: Optional[set]) -> bool:
    return bool(
        match_number(line, top_levels)
        or BULLET_LINE_PATTERN.match(line)
        or SUB_ITEM_PATTERN.match(line)
        or is_denylisted(line)
    )


def join_wrapped_lines(lines: Sequence[str], top_levels: Optional[set] = None) -> List[str]:
    """
    Rejoin caption text that the cell width wrapped onto following lines.

    A line that starts a new unit (number, bullet, sub-item, boilerplate)
    stays on its own; any other line continues the previous one.

    Example:
        >>> join_wrapped_lines(["10.1.1.1 Distinguish base", "and derived units", "a) prefixes"], {10})
        ['10.1.1.1 Distinguish base and derived units', 'a) prefixes']
    """
    joined: List[str] = []
    for line in lines:
        if joined and not _starts_unit(line, top_levels):
            joined[-1] = f"{joined[-1]} {line}"
        else:
            joined.append(line)
    return joined


def tokenize_cell(cell_text: str, top_levels: Optional[set] = None) -> List[ParseUnit]:
    """
    Tokenize one cell.

    Numbers flattened together inside a cell are split apart first, so a
    cell listing several outcomes yields several units; wrapped caption
    lines are rejoined.

    Example:
        >>> [u.number for u in tokenize_cell("10.1.1.1 Define units 10.1.1.2 State SI units", {10})]
        ['10.1.1.1', '10.1.1.2']
    """
    lines = normalize_lines(cell_text or "", top_levels)
    if not lines:
        return []
    tokenizer = HierarchyTokenizer(top_levels)
    return tokenizer.tokenize(join_wrapped_lines(lines, top_levels))


def _row_signals(units_per_cell: List[List[ParseUnit]]) -> Dict[int, int]:
    """
    Map each structural level to the index of the first cell carrying it.

    A merged cell can carry several levels ("10.1 Physics" over "10.1.1
    Units"); each of them is a signal of that cell.
    """
    signals: Dict[int, int] = {}
    for index, units in enumerate(units_per_cell):
        for unit in units:
            if unit.is_structural:
                signals.setdefault(unit.level, index)
    return signals


def _is_header_row(row: TableRow) -> bool:
    cells = [cell for cell in row.cells if cell.strip()]
    return bool(cells) and all(is_denylisted(' '.join(cell.split())) for cell in cells)


class TableExtractor:
    """
    Builds the syllabus tree from a sequence of table rows.

    Example:
        >>> rows = [TableRow(cells=["10.1 Physics", "10.1.1 Units", "10.1.1.1 Define units", "- Measure", "- States"])]
        >>> topics = TableExtractor("cbc", {10}).extract(rows)
        >>> topics[0].subtopics[0].specific_competences[0].learning_activities
        ['Measure']
    """

    def __init__(
        self,
        curriculum_type: str,
        top_levels: Optional[set] = None,
        classifier: Optional[ContentClassifier] = None,
    ):
        if curriculum_type not in BUCKET_COLUMNS:
            raise ValueError(f"Unknown curriculum type: {curriculum_type}")
        self.curriculum_type = curriculum_type
        self.top_levels = set(top_levels) if top_levels is not None else None
        self.bucket_columns = BUCKET_COLUMNS[curriculum_type]
        self.builder = TreeBuilder(curriculum_type, classifier=classifier, reuse_existing=True)
        self.continuation_rows = 0

    def extract(self, rows: Sequence[TableRow]) -> List[Topic]:
        """
        Process all rows in order and return the Topic list.

        Returns:
            Ordered Topic list (empty on structural failure)
        """
        for row in rows:
            self._process_row(row)

        topics = self.builder.build()
        logger.debug(
            f"Table extraction: {len(rows)} rows, {len(topics)} topics, "
            f"{self.continuation_rows} continuation rows"
        )
        return topics

    def _process_row(self, row: TableRow) -> None:
        if row.is_empty() or _is_header_row(row):
            return

        units_per_cell = [tokenize_cell(cell, self.top_levels) for cell in row.cells]
        signals = _row_signals(units_per_cell)

        if not signals:
            if self.builder.state == STATE_IN_OUTCOME:
                self.continuation_rows += 1
                self._add_trailing_buckets(row)
            return

        outcome_attached = False
        for level in sorted(signals):
            index = signals[level]
            kind = LEVEL_KINDS[level]
            for unit in units_per_cell[index]:
                if unit.kind == kind:
                    attached = self.builder.add(unit)
                    if level == 4:
                        outcome_attached = outcome_attached or attached
                elif level == 4 and unit.kind == UNIT_CONTENT and unit.marker == MARKER_SUB_ITEM:
                    self.builder.add(unit)

        # Buckets of a discarded Outcome must not land on an earlier one
        if 4 in signals and outcome_attached:
            outcome_index = signals[4]
            following = range(outcome_index + 1, outcome_index + 1 + len(self.bucket_columns))
            for bucket, cell_index in zip(self.bucket_columns, following):
                if cell_index < len(row.cells):
                    self._add_bucket_cell(row, cell_index, bucket)

    def _add_trailing_buckets(self, row: TableRow) -> None:
        count = min(len(self.bucket_columns), len(row.cells))
        buckets = self.bucket_columns[len(self.bucket_columns) - count:]
        start = len(row.cells) - count
        for offset, bucket in enumerate(buckets):
            self._add_bucket_cell(row, start + offset, bucket)

    def _add_bucket_cell(self, row: TableRow, cell_index: int, bucket: str) -> None:
        raw = row.raw_cells[cell_index] if cell_index < len(row.raw_cells) else ""
        for item in split_cell_items(row.cells[cell_index], raw):
            if is_denylisted(item):
                continue
            self.builder.add(ParseUnit(kind=UNIT_CONTENT, text=item, marker=MARKER_BULLET, bucket=bucket))


def extract_table(
    rows: Sequence[TableRow],
    curriculum_type: str,
    top_levels: Optional[set] = None,
    classifier: Optional[ContentClassifier] = None,
) -> List[Topic]:
    """Table entry path: build the tree from extracted table rows."""
    return TableExtractor(curriculum_type, top_levels, classifier).extract(rows)


__all__ = [
    'BUCKET_COLUMNS',
    'TableExtractor',
    'join_wrapped_lines',
    'tokenize_cell',
    'extract_table',
]
