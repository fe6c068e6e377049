"""
Content Classification for Leaf Buckets

Assigns a freeform content line to one semantic bucket using lexical
heuristics on its leading words. This is best-effort classification, not
semantic understanding: content whose leading words match no keyword stem
falls into the curriculum's default bucket ("knowledge" for outcome-based,
"expected-standard" for competency-based curricula).

Rules are ordered; the first rule with a stem matching one of the leading
words wins. Keyword lists can be overridden from a JSON file:

    {
        "obc": {"rules": [["values", ["appreciat", ...]], ["skills", [...]]],
                "default": "knowledge"},
        "cbc": {...}
    }
"""

import json
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from src.config import CLASSIFIER_LEADING_WORDS, CLASSIFIER_RULES_PATH
from src.models import (
    CBC,
    COMPETENCE_STATEMENT,
    EXPECTED_STANDARD,
    KNOWLEDGE,
    LEARNING_ACTIVITY,
    OBC,
    SKILLS,
    VALUES,
)
from src.utils.logging_config import logger


Rule = Tuple[str, Tuple[str, ...]]

# Outcome-based: values checked before skills, knowledge is the default
OBC_RULES: List[Rule] = [
    (VALUES, (
        'appreciat', 'value', 'respect', 'care', 'aware', 'honest', 'cooperat',
        'responsib', 'patien', 'toleran', 'commit', 'curios', 'confiden',
    )),
    (SKILLS, (
        'measur', 'demonstrat', 'calculat', 'draw', 'construct', 'investigat',
        'observ', 'experiment', 'handl', 'use', 'using', 'plot', 'record',
        'comput', 'solv', 'practic', 'perform',
    )),
]

# Competency-based: competence statements before learning activities
CBC_RULES: List[Rule] = [
    (COMPETENCE_STATEMENT, (
        'explain', 'describe', 'define', 'state', 'identify', 'outline',
        'distinguish', 'classify',
    )),
    (LEARNING_ACTIVITY, (
        'demonstrat', 'investigat', 'practic', 'experiment', 'conduct', 'carry',
        'perform', 'observ', 'measur', 'visit', 'research', 'role',
    )),
]

DEFAULT_BUCKETS = {
    OBC: KNOWLEDGE,
    CBC: EXPECTED_STANDARD,
}

WORD_PATTERN = re.compile(r"[a-z][a-z'-]*")


class ContentClassifier:
    """
    Ordered keyword-stem classifier for content lines.

    Example:
        >>> classifier = ContentClassifier()
        >>> classifier.classify("Appreciate the use of SI units", "obc")
        'values'
        >>> classifier.classify("Knows the SI base units", "obc")
        'knowledge'
    """

    def __init__(
        self,
        rules: Optional[Dict[str, Sequence[Rule]]] = None,
        defaults: Optional[Dict[str, str]] = None,
        leading_words: int = CLASSIFIER_LEADING_WORDS,
    ):
        self.rules = {
            OBC: list(OBC_RULES),
            CBC: list(CBC_RULES),
        }
        if rules:
            self.rules.update({kind: list(kind_rules) for kind, kind_rules in rules.items()})
        self.defaults = dict(DEFAULT_BUCKETS)
        if defaults:
            self.defaults.update(defaults)
        self.leading_words = leading_words

    @classmethod
    def from_json(cls, path: Union[str, Path], leading_words: int = CLASSIFIER_LEADING_WORDS) -> "ContentClassifier":
        """
        Build a classifier with keyword lists loaded from a JSON file.

        Curriculum kinds missing from the file keep the built-in rules.

        Raises:
            ValueError: If the file is not a valid rules document
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Classifier rules must be a JSON object: {path}")

        rules: Dict[str, List[Rule]] = {}
        defaults: Dict[str, str] = {}
        for kind, section in data.items():
            if kind not in DEFAULT_BUCKETS or not isinstance(section, dict):
                raise ValueError(f"Invalid classifier section {kind!r} in {path}")
            parsed = []
            for entry in section.get('rules', []):
                if not (isinstance(entry, list) and len(entry) == 2 and isinstance(entry[1], list)):
                    raise ValueError(f"Invalid classifier rule in {path}: {entry!r}")
                bucket, stems = entry
                parsed.append((str(bucket), tuple(str(s).lower() for s in stems)))
            rules[kind] = parsed
            if section.get('default'):
                defaults[kind] = str(section['default'])

        logger.info(f"Loaded classifier rules from {path}")
        return cls(rules=rules, defaults=defaults, leading_words=leading_words)

    def classify(self, content: str, curriculum_type: str) -> str:
        """
        Return exactly one bucket name for a content string.

        Args:
            content: Trimmed content string, bullet marker already stripped
            curriculum_type: "obc" or "cbc"

        Returns:
            Bucket name
        """
        if curriculum_type not in self.defaults:
            raise ValueError(f"Unknown curriculum type: {curriculum_type}")

        words = WORD_PATTERN.findall(content.lower())[:self.leading_words]
        for bucket, stems in self.rules.get(curriculum_type, []):
            for word in words:
                if word.startswith(stems):
                    return bucket

        return self.defaults[curriculum_type]


def get_default_classifier() -> ContentClassifier:
    """Build the classifier from configuration (override file if set)."""
    if CLASSIFIER_RULES_PATH is not None:
        return ContentClassifier.from_json(CLASSIFIER_RULES_PATH)
    return ContentClassifier()


__all__ = [
    'OBC_RULES',
    'CBC_RULES',
    'DEFAULT_BUCKETS',
    'ContentClassifier',
    'get_default_classifier',
]
