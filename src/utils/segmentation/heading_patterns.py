"""
Hierarchy Numbering Detection

Regex-based tokenization of normalized syllabus lines (or table cell texts)
into parse units for the tree builder.

Each line is classified as one of:
- Topic / Subtopic / Outcome candidate (2 / 3 / 4 dot-separated segments)
- Content (bullet line or lettered sub-item)
- Ignorable (header/footer boilerplate or unrecognized prose)

A numbering token is only recognized when its first segment is a valid
top-level number (grade/form) for the curriculum, so stray decimals and
dates are treated as prose.

Key Functions:
- match_number: Split a line into (number, trailing text)
- is_denylisted: Detect column headers, page headers and banners
- classify_line: Stateless classification of one line or cell
- HierarchyTokenizer: Line-stream tokenizer with pending-number merging
- parse_grade_range: Derive the valid top-level numbers from "Grades 10-12"
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from src.config import get_top_level_range
from src.models import extends_number
from src.utils.logging_config import logger


# Parse unit kinds
UNIT_TOPIC = "topic"
UNIT_SUBTOPIC = "subtopic"
UNIT_OUTCOME = "outcome"
UNIT_CONTENT = "content"
UNIT_IGNORABLE = "ignorable"

# Content markers
MARKER_BULLET = "bullet"
MARKER_SUB_ITEM = "sub_item"

# Segment count -> structural unit kind
LEVEL_KINDS = {
    2: UNIT_TOPIC,
    3: UNIT_SUBTOPIC,
    4: UNIT_OUTCOME,
}

# "10.1", "10.1.2:", "10.1.2.3) Caption"
NUMBER_PATTERN = re.compile(r'^(\d{1,2}(?:\.\d{1,2}){1,3})[.:)]?(?:\s+(.*))?$')

BULLET_LINE_PATTERN = re.compile(r'^-\s*(.*)$')

# "a) ...", "(ii) ...", "b. ..."
SUB_ITEM_PATTERN = re.compile(r'^(?:\(?(?:[a-z]|[ivx]{1,4})\)|[a-z]\.)\s+(.+)$', re.IGNORECASE)

# Header/footer boilerplate, evaluated before number matching
DEFAULT_DENYLIST = [
    # Table column headers
    r'(?:sub[- ]?)?topics?',
    r'specific (?:learning )?(?:outcomes?|competences?|competencies)',
    r'(?:suggested )?learning activities',
    r'expected standards?',
    r'knowledge',
    r'skills',
    r'values',
    r'content',
    r'scope of lessons?',
    r'(?:knowledge|skills|values)(?:\s*(?:[,/&]|\band\b)\s*(?:and\s+)?(?:knowledge|skills|values))+',
    # Page headers and footers
    r'page \d+(?: of \d+)?',
    r'-?\s*\d{1,3}\s*-?',
    # Curriculum banners
    r'ministry of (?:general )?education.*',
    r'republic of zambia.*',
    r'curriculum development cent(?:re|er).*',
    r'.*\bsyllabus\b.*\bgrades?\s+\d+\s*-\s*\d+.*',
    r'.*\bsyllabus\b.*\bforms?\s+\d+\s*-\s*\d+.*',
]


def compile_denylist(patterns: Iterable[str]) -> List[Pattern]:
    """Compile denylist patterns as case-insensitive full-line matches."""
    return [re.compile(rf'^(?:{p})[:.]?$', re.IGNORECASE) for p in patterns]


DENYLIST_PATTERNS = compile_denylist(DEFAULT_DENYLIST)


@dataclass
class ParseUnit:
    """
    One tokenized line or cell.

    ``kind`` is one of the UNIT_* constants. For structural units ``number``
    holds the numbering token and ``text`` the caption; for content units
    ``text`` is the content string with its marker stripped and ``marker``
    records whether it was a bullet or a lettered sub-item. ``bucket`` is
    preset by the table path where the cell position already fixes it.
    """

    kind: str
    text: str = ""
    number: Optional[str] = None
    marker: Optional[str] = None
    bucket: Optional[str] = None

    @property
    def level(self) -> Optional[int]:
        if self.number is None:
            return None
        return self.number.count('.') + 1

    @property
    def label(self) -> str:
        """Node name: the number kept as a visible prefix of the caption."""
        if self.number and self.text:
            return f"{self.number} {self.text}"
        return self.number or self.text

    @property
    def is_structural(self) -> bool:
        return self.kind in (UNIT_TOPIC, UNIT_SUBTOPIC, UNIT_OUTCOME)


def parse_grade_range(descriptor: Optional[str]) -> Optional[Set[int]]:
    """
    Derive the valid top-level numbers from a grade/form range descriptor.

    Args:
        descriptor: Free-form range such as "Grades 10-12", "Forms 1-4",
            "Form 1" or "Grade 8 to 9"

    Returns:
        Inclusive set of numbers, or None if no number is found

    Example:
        >>> sorted(parse_grade_range("Grades 10-12"))
        [10, 11, 12]
        >>> parse_grade_range("Form 1")
        {1}
        >>> parse_grade_range("ECE") is None
        True
    """
    if not descriptor:
        return None

    numbers = [int(n) for n in re.findall(r'\d{1,2}', descriptor)]
    if not numbers:
        return None

    low, high = min(numbers), max(numbers)
    if re.search(r'\d\s*(?:-|–|to)\s*\d', descriptor):
        return set(range(low, high + 1))
    return set(numbers)


def resolve_top_levels(
    grade_range: Optional[str] = None,
    category: Optional[str] = None
) -> Set[int]:
    """
    Resolve the valid top-level numbers for one document.

    The grade range descriptor wins; otherwise the category's configured
    range is used, falling back to the default range.

    Example:
        >>> sorted(resolve_top_levels("Grades 10-12"))
        [10, 11, 12]
        >>> sorted(resolve_top_levels(category="early-childhood"))
        [0, 1, 2, 3, 4]
    """
    parsed = parse_grade_range(grade_range)
    if parsed:
        return parsed
    low, high = get_top_level_range(category)
    return set(range(low, high + 1))


def match_number(line: str, top_levels: Optional[Set[int]] = None) -> Optional[Tuple[str, str]]:
    """
    Split a line into its numbering token and trailing text.

    Args:
        line: Trimmed line or cell text
        top_levels: Valid first-segment numbers; None accepts any

    Returns:
        Tuple of (number, trailing_text) or None. trailing_text is "" for a
        line consisting only of a numbering token.

    Example:
        >>> match_number("10.1.1 Units", {10, 11, 12})
        ('10.1.1', 'Units')
        >>> match_number("10.1", {10})
        ('10.1', '')
        >>> match_number("3.14 is pi", {10, 11, 12}) is None
        True
    """
    if not line:
        return None

    match = NUMBER_PATTERN.match(line.strip())
    if not match:
        return None

    number = match.group(1)
    if top_levels is not None and int(number.split('.')[0]) not in top_levels:
        return None

    return (number, (match.group(2) or "").strip())


def is_denylisted(line: str, patterns: Optional[Sequence[Pattern]] = None) -> bool:
    """
    Check a line against the header/footer denylist.

    Example:
        >>> is_denylisted("SPECIFIC OUTCOMES")
        True
        >>> is_denylisted("Page 12")
        True
        >>> is_denylisted("10.1 General Physics")
        False
    """
    text = ' '.join(line.split())
    if not text:
        return False
    for pattern in (patterns if patterns is not None else DENYLIST_PATTERNS):
        if pattern.match(text):
            return True
    return False


def strip_bullet(line: str) -> str:
    """Remove a leading '- ' bullet marker."""
    match = BULLET_LINE_PATTERN.match(line.strip())
    return match.group(1).strip() if match else line.strip()


def classify_line(
    line: str,
    top_levels: Optional[Set[int]] = None,
    denylist: Optional[Sequence[Pattern]] = None,
) -> ParseUnit:
    """
    Classify one line or cell without carry-over state.

    Order: denylist, numbering token, bullet, sub-item, prose.

    Args:
        line: Normalized line or cell text
        top_levels: Valid first-segment numbers for this curriculum
        denylist: Compiled denylist (defaults to DENYLIST_PATTERNS)

    Returns:
        ParseUnit

    Example:
        >>> classify_line("10.1.1 Units", {10}).kind
        'subtopic'
        >>> classify_line("- Knows the SI base units", {10}).text
        'Knows the SI base units'
    """
    text = (line or "").strip()
    if not text or is_denylisted(text, denylist):
        return ParseUnit(kind=UNIT_IGNORABLE, text=text)

    numbered = match_number(text, top_levels)
    if numbered:
        number, caption = numbered
        kind = LEVEL_KINDS.get(number.count('.') + 1)
        if kind is None:
            return ParseUnit(kind=UNIT_IGNORABLE, text=text)
        return ParseUnit(kind=kind, text=strip_bullet(caption) if caption else "", number=number)

    bullet = BULLET_LINE_PATTERN.match(text)
    if bullet:
        content = bullet.group(1).strip()
        if not content:
            return ParseUnit(kind=UNIT_IGNORABLE, text=text)
        return ParseUnit(kind=UNIT_CONTENT, text=content, marker=MARKER_BULLET)

    sub_item = SUB_ITEM_PATTERN.match(text)
    if sub_item:
        return ParseUnit(kind=UNIT_CONTENT, text=sub_item.group(1).strip(), marker=MARKER_SUB_ITEM)

    return ParseUnit(kind=UNIT_IGNORABLE, text=text)


class HierarchyTokenizer:
    """
    Tokenizer for a stream of normalized lines.

    Holds the pending-number slot: a numbering token seen alone on a line is
    held back and merged with the caption on the next non-number line.
    Instances are per document; nothing is shared between invocations.

    Example:
        >>> tokenizer = HierarchyTokenizer({10, 11, 12})
        >>> tokenizer.feed("10.1")
        []
        >>> tokenizer.feed("General Physics")[0].label
        '10.1 General Physics'
    """

    def __init__(
        self,
        top_levels: Optional[Iterable[int]] = None,
        denylist: Optional[Sequence[Pattern]] = None,
    ):
        self.top_levels = set(top_levels) if top_levels is not None else None
        self.denylist = denylist
        self.pending_number: Optional[str] = None

    def feed(self, line: str) -> List[ParseUnit]:
        """
        Tokenize one line, honouring and updating the pending number.

        A pending number directly followed by one of its own children is
        emitted without a caption, so the child keeps its parent.

        Returns:
            Up to two parse units in document order (none while only a
            number is pending)
        """
        text = (line or "").strip()
        if not text:
            return []

        if is_denylisted(text, self.denylist):
            return [ParseUnit(kind=UNIT_IGNORABLE, text=text)]

        numbered = match_number(text, self.top_levels)
        units: List[ParseUnit] = []

        if self.pending_number and numbered:
            pending = self.pending_number
            self.pending_number = None
            if extends_number(numbered[0], pending):
                units.append(classify_line(pending, self.top_levels, self.denylist))
            elif numbered[0] == pending:
                logger.debug(f"Pending number {pending} dropped: next line repeats it")
            else:
                logger.debug(f"Pending number {pending} dropped before numbered line {numbered[0]}")

        if numbered and not numbered[1]:
            self.pending_number = numbered[0]
            return units

        if self.pending_number:
            text = f"{self.pending_number} {strip_bullet(text)}"
            self.pending_number = None

        units.append(classify_line(text, self.top_levels, self.denylist))
        return units

    def finish(self) -> List[ParseUnit]:
        """Flush at end of input; a number still pending is dropped."""
        if self.pending_number:
            logger.debug(f"Pending number {self.pending_number} dropped at end of input")
            self.pending_number = None
        return []

    def tokenize(self, lines: Iterable[str]) -> List[ParseUnit]:
        """Tokenize a whole line sequence in order."""
        units: List[ParseUnit] = []
        for line in lines:
            units.extend(self.feed(line))
        units.extend(self.finish())
        return units


__all__ = [
    'UNIT_TOPIC',
    'UNIT_SUBTOPIC',
    'UNIT_OUTCOME',
    'UNIT_CONTENT',
    'UNIT_IGNORABLE',
    'MARKER_BULLET',
    'MARKER_SUB_ITEM',
    'DEFAULT_DENYLIST',
    'DENYLIST_PATTERNS',
    'ParseUnit',
    'HierarchyTokenizer',
    'compile_denylist',
    'parse_grade_range',
    'resolve_top_levels',
    'match_number',
    'is_denylisted',
    'strip_bullet',
    'classify_line',
]
