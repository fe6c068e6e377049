"""
Segmentation Utilities (Step 2)

Tokenization, content classification and tree building for both entry
paths (line stream and table cell grid).
"""

from src.utils.segmentation.heading_patterns import (
    UNIT_TOPIC,
    UNIT_SUBTOPIC,
    UNIT_OUTCOME,
    UNIT_CONTENT,
    UNIT_IGNORABLE,
    DEFAULT_DENYLIST,
    ParseUnit,
    HierarchyTokenizer,
    compile_denylist,
    parse_grade_range,
    resolve_top_levels,
    match_number,
    is_denylisted,
    classify_line,
)

from src.utils.segmentation.content_classifier import (
    ContentClassifier,
    get_default_classifier,
)

from src.utils.segmentation.hierarchy_builder import (
    TreeBuilder,
    LineStreamAdapter,
    parse_lines,
)

from src.utils.segmentation.table_extractor import (
    TableExtractor,
    tokenize_cell,
    extract_table,
)

__all__ = [
    # heading_patterns
    'UNIT_TOPIC',
    'UNIT_SUBTOPIC',
    'UNIT_OUTCOME',
    'UNIT_CONTENT',
    'UNIT_IGNORABLE',
    'DEFAULT_DENYLIST',
    'ParseUnit',
    'HierarchyTokenizer',
    'compile_denylist',
    'parse_grade_range',
    'resolve_top_levels',
    'match_number',
    'is_denylisted',
    'classify_line',
    # content_classifier
    'ContentClassifier',
    'get_default_classifier',
    # hierarchy_builder
    'TreeBuilder',
    'LineStreamAdapter',
    'parse_lines',
    # table_extractor
    'TableExtractor',
    'tokenize_cell',
    'extract_table',
]
